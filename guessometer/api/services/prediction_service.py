"""
PredictionService -- prediction CRUD plus the social and catalogue data
hanging off it (likes, comments, users, categories, community content).

Every prediction mutation follows the same sequence:
    1. Commit the mutation.
    2. Recompute the owner's UserStats via StatsService.
    3. Hand the change to the SyncDispatcher (fire-and-forget).

A failed recompute is logged and does not undo the committed mutation;
the next trigger for that user recomputes from scratch anyway.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guessometer.api.services.stats_service import StatsService, StatsUnavailableError
from guessometer.db.models import (
    Category,
    Comment,
    CommunityContent,
    Like,
    Prediction,
    User,
)
from guessometer.stats.resolution import normalize_outcome
from guessometer.sync.airtable import SyncDispatcher

logger = logging.getLogger(__name__)

DISPLAY_NAME_MAX_LENGTH = 50

_UPDATABLE_FIELDS = frozenset(
    {
        "prediction_text",
        "description",
        "category",
        "confidence_level",
        "target_date",
        "outcome",
        "is_public",
    }
)


class PredictionNotFoundError(KeyError):
    """No prediction with this id (or not owned by the caller)."""


class UserNotFoundError(KeyError):
    """No user with this id."""


class PredictionService:
    """Prediction, social and catalogue operations on a single session.

    The caller (FastAPI dependency or script) manages session lifecycle.
    ``dispatcher`` may be omitted, in which case nothing is synced.
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[SyncDispatcher] = None,
    ) -> None:
        self.session = session
        self.dispatcher = dispatcher or SyncDispatcher(None)

    async def _recompute(self, user_id: Optional[str]) -> None:
        if not user_id:
            return
        try:
            await StatsService(self.session).calculate_user_stats(user_id)
        except StatsUnavailableError as exc:
            logger.warning("Stats recompute skipped for user %s: %s", user_id, exc)

    # -------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------

    async def get_prediction(self, prediction_id: str) -> Prediction:
        prediction = await self.session.get(Prediction, prediction_id)
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)
        return prediction

    async def list_public_predictions(
        self, limit: int = 50, offset: int = 0
    ) -> list[tuple[Prediction, Optional[str]]]:
        """Public predictions, newest first, paired with the author's display name."""
        result = await self.session.execute(
            select(Prediction, User.display_name)
            .outerjoin(User, Prediction.user_id == User.id)
            .where(Prediction.is_public.is_(True))
            .order_by(Prediction.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return [(prediction, name) for prediction, name in result.all()]

    async def list_user_predictions(self, user_id: str) -> list[Prediction]:
        """All of a user's predictions, public and private, newest first."""
        result = await self.session.execute(
            select(Prediction)
            .where(Prediction.user_id == user_id)
            .order_by(Prediction.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_prediction(self, user_id: str, data: dict[str, Any]) -> Prediction:
        """Persist a new prediction for *user_id*.

        Args:
            user_id: Owner of the prediction.
            data: Column values; ``outcome`` is normalized and defaults to pending.

        Returns:
            The persisted Prediction (detached from the session).
        """
        values = {k: v for k, v in data.items() if k in _UPDATABLE_FIELDS}
        values["outcome"] = normalize_outcome(values.get("outcome")).value
        if not values.get("description"):
            values["description"] = values.get("prediction_text")

        prediction = Prediction(user_id=user_id, **values)
        self.session.add(prediction)
        await self.session.commit()
        # Detached so a failed recompute's rollback cannot expire it.
        self.session.expunge(prediction)

        logger.info("Created prediction %s for user %s", prediction.id, user_id)

        await self._recompute(user_id)
        self.dispatcher.dispatch_create(prediction)
        return prediction

    async def update_prediction(
        self,
        prediction_id: str,
        updates: dict[str, Any],
        owner_id: Optional[str] = None,
    ) -> Prediction:
        """Apply a partial update.

        Args:
            prediction_id: Prediction to update.
            updates: Column values to change; unknown keys are ignored.
            owner_id: When given, only a prediction owned by this user matches.

        Raises:
            PredictionNotFoundError: If no matching prediction exists.
        """
        stmt = select(Prediction).where(Prediction.id == prediction_id)
        if owner_id is not None:
            stmt = stmt.where(Prediction.user_id == owner_id)
        prediction = (await self.session.execute(stmt)).scalar_one_or_none()
        if prediction is None:
            raise PredictionNotFoundError(prediction_id)

        changes = {k: v for k, v in updates.items() if k in _UPDATABLE_FIELDS}
        if "outcome" in changes:
            changes["outcome"] = normalize_outcome(changes["outcome"]).value
        for key, value in changes.items():
            setattr(prediction, key, value)

        await self.session.commit()
        self.session.expunge(prediction)

        logger.info("Updated prediction %s (%s)", prediction_id, ", ".join(sorted(changes)))

        await self._recompute(prediction.user_id)
        self.dispatcher.dispatch_update(prediction, changes)
        return prediction

    async def delete_prediction(
        self, prediction_id: str, owner_id: Optional[str] = None
    ) -> bool:
        """Delete a prediction together with its likes and comments.

        All three deletes run in one transaction; a failure in any of them
        rolls back the whole set and re-raises.

        Returns:
            False if no matching prediction exists, True once deleted.
        """
        stmt = select(Prediction).where(Prediction.id == prediction_id)
        if owner_id is not None:
            stmt = stmt.where(Prediction.user_id == owner_id)
        prediction = (await self.session.execute(stmt)).scalar_one_or_none()
        if prediction is None:
            return False

        user_id = prediction.user_id
        airtable_id = prediction.airtable_id

        try:
            await self.session.execute(delete(Like).where(Like.prediction_id == prediction_id))
            await self.session.execute(
                delete(Comment).where(Comment.prediction_id == prediction_id)
            )
            await self.session.execute(delete(Prediction).where(Prediction.id == prediction_id))
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to delete prediction %s: %s", prediction_id, exc)
            raise

        logger.info("Deleted prediction %s", prediction_id)

        await self._recompute(user_id)
        self.dispatcher.dispatch_delete(airtable_id)
        return True

    # -------------------------------------------------------------------
    # Likes
    # -------------------------------------------------------------------

    async def toggle_like(self, user_id: str, prediction_id: str) -> tuple[bool, int]:
        """Flip *user_id*'s like on a prediction.

        Returns:
            ``(liked, count)`` after the toggle.

        Raises:
            PredictionNotFoundError: If the prediction does not exist.
        """
        await self.get_prediction(prediction_id)

        result = await self.session.execute(
            select(Like).where(Like.user_id == user_id, Like.prediction_id == prediction_id)
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            self.session.add(Like(user_id=user_id, prediction_id=prediction_id))
            liked = True
        else:
            await self.session.delete(existing)
            liked = False
        await self.session.commit()

        return liked, await self.like_count(prediction_id)

    async def like_count(self, prediction_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Like.id)).where(Like.prediction_id == prediction_id)
        )
        return int(result.scalar_one())

    async def has_user_liked(self, user_id: str, prediction_id: str) -> bool:
        result = await self.session.execute(
            select(Like.id).where(Like.user_id == user_id, Like.prediction_id == prediction_id)
        )
        return result.first() is not None

    # -------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------

    async def add_comment(self, user_id: str, prediction_id: str, content: str) -> Comment:
        """Attach a comment to a prediction.

        Raises:
            ValueError: If *content* is blank.
            PredictionNotFoundError: If the prediction does not exist.
        """
        text = (content or "").strip()
        if not text:
            raise ValueError("Comment content cannot be empty")
        await self.get_prediction(prediction_id)

        comment = Comment(user_id=user_id, prediction_id=prediction_id, content=text)
        self.session.add(comment)
        await self.session.commit()
        return comment

    async def list_comments(self, prediction_id: str) -> list[tuple[Comment, Optional[str]]]:
        """Comments newest first, paired with the commenter's display name."""
        result = await self.session.execute(
            select(Comment, User.display_name)
            .outerjoin(User, Comment.user_id == User.id)
            .where(Comment.prediction_id == prediction_id)
            .order_by(Comment.created_at.desc())
        )
        return [(comment, name) for comment, name in result.all()]

    async def comment_count(self, prediction_id: str) -> int:
        result = await self.session.execute(
            select(func.count(Comment.id)).where(Comment.prediction_id == prediction_id)
        )
        return int(result.scalar_one())

    async def delete_comment(self, comment_id: str) -> bool:
        comment = await self.session.get(Comment, comment_id)
        if comment is None:
            return False
        await self.session.delete(comment)
        await self.session.commit()
        logger.info("Deleted comment %s", comment_id)
        return True

    # -------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def upsert_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> User:
        """Insert or refresh a user's identity fields.

        Matches by id first, then by email. A custom display name already
        stored is kept; the id of an email match is never changed.
        """
        user = await self.session.get(User, user_id)
        if user is None and email:
            result = await self.session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

        if user is None:
            user = User(
                id=user_id,
                email=email,
                display_name=display_name,
                first_name=first_name,
                last_name=last_name,
                profile_image_url=profile_image_url,
            )
            self.session.add(user)
        else:
            if email:
                user.email = email
            user.display_name = user.display_name or display_name
            user.first_name = first_name
            user.last_name = last_name
            user.profile_image_url = profile_image_url

        await self.session.commit()
        return user

    async def update_display_name(self, user_id: str, display_name: str) -> User:
        """Rename a user.

        Raises:
            ValueError: If the stripped name is empty or longer than 50 characters.
            UserNotFoundError: If the user does not exist.
        """
        name = (display_name or "").strip()
        if not name:
            raise ValueError("Display name cannot be empty")
        if len(name) > DISPLAY_NAME_MAX_LENGTH:
            raise ValueError(
                f"Display name must be {DISPLAY_NAME_MAX_LENGTH} characters or fewer"
            )

        user = await self.get_user(user_id)
        user.display_name = name
        await self.session.commit()
        logger.info("User %s renamed", user_id)
        return user

    async def list_users(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    # -------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        result = await self.session.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def create_category(self, name: str, color: Optional[str] = None) -> Category:
        category = Category(name=name.strip(), color=color)
        self.session.add(category)
        await self.session.commit()
        return category

    # -------------------------------------------------------------------
    # Community content
    # -------------------------------------------------------------------

    async def get_community_content(self) -> Optional[dict[str, Any]]:
        result = await self.session.execute(
            select(CommunityContent).order_by(CommunityContent.created_at).limit(1)
        )
        row = result.scalar_one_or_none()
        return row.content if row is not None else None

    async def save_community_content(self, content: dict[str, Any]) -> CommunityContent:
        """Replace the single community document, creating it if absent."""
        result = await self.session.execute(
            select(CommunityContent).order_by(CommunityContent.created_at).limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = CommunityContent(content=content)
            self.session.add(row)
        else:
            row.content = content
        await self.session.commit()
        logger.info("Community content saved")
        return row

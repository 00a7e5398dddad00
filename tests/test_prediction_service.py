"""
Tests for PredictionService: mutation -> stats recompute -> sync dispatch,
atomic cascade delete, likes, comments, users, categories and community
content.

Runs against a temporary SQLite database; the sync dispatcher is a mock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Delete

from guessometer.api.services.prediction_service import (
    PredictionNotFoundError,
    PredictionService,
    UserNotFoundError,
)
from guessometer.api.services.stats_service import StatsService, StatsUnavailableError
from guessometer.db.models import Comment, Like, Prediction, UserStats


def _new_prediction_data(**overrides) -> dict:
    data = {
        "prediction_text": "The bill passes before March",
        "category": "politics",
        "confidence_level": 70,
        "target_date": datetime.now(timezone.utc) + timedelta(days=60),
        "is_public": True,
    }
    data.update(overrides)
    return data


async def _stats_row(session, user_id: str) -> UserStats:
    result = await session.execute(
        select(UserStats)
        .where(UserStats.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _count(session, model, **filters) -> int:
    stmt = select(func.count()).select_from(model)
    for key, value in filters.items():
        stmt = stmt.where(getattr(model, key) == value)
    return (await session.execute(stmt)).scalar_one()


# -----------------------------------------------------------------------
# Prediction CRUD
# -----------------------------------------------------------------------


class TestPredictionMutations:
    @pytest.mark.asyncio
    async def test_create_recomputes_and_dispatches(self, session, add_user) -> None:
        await add_user("alice")
        dispatcher = MagicMock()
        service = PredictionService(session, dispatcher)

        prediction = await service.create_prediction("alice", _new_prediction_data())

        assert prediction.outcome == "pending"
        assert prediction.description == prediction.prediction_text
        stats = await _stats_row(session, "alice")
        assert stats.total_predictions == 1
        assert stats.pending_predictions == 1
        dispatcher.dispatch_create.assert_called_once_with(prediction)

    @pytest.mark.asyncio
    async def test_update_resolves_and_recomputes(self, session, add_user) -> None:
        await add_user("alice")
        dispatcher = MagicMock()
        service = PredictionService(session, dispatcher)
        prediction = await service.create_prediction("alice", _new_prediction_data(confidence_level=80))

        updated = await service.update_prediction(
            prediction.id, {"outcome": "correct", "bogus": 1}, owner_id="alice"
        )

        assert updated.outcome == "correct"
        stats = await _stats_row(session, "alice")
        assert stats.correct_predictions == 1
        assert Decimal(str(stats.accuracy)) == Decimal("100")
        assert Decimal(str(stats.brier_score)) == Decimal("0.04")
        dispatcher.dispatch_update.assert_called_once()
        _, changes = dispatcher.dispatch_update.call_args.args
        assert changes == {"outcome": "correct"}

    @pytest.mark.asyncio
    async def test_update_other_users_prediction_rejected(self, session, add_user) -> None:
        await add_user("alice")
        await add_user("bob")
        service = PredictionService(session)
        prediction = await service.create_prediction("alice", _new_prediction_data())

        with pytest.raises(PredictionNotFoundError):
            await service.update_prediction(prediction.id, {"outcome": "correct"}, owner_id="bob")

        # no owner filter: admin path
        updated = await service.update_prediction(prediction.id, {"confidence_level": 10})
        assert updated.confidence_level == 10

    @pytest.mark.asyncio
    async def test_recompute_failure_does_not_fail_mutation(self, session, add_user) -> None:
        await add_user("alice")
        service = PredictionService(session)

        with patch.object(
            StatsService, "calculate_user_stats", side_effect=StatsUnavailableError("boom")
        ):
            prediction = await service.create_prediction("alice", _new_prediction_data())

        assert prediction.id
        assert await _count(session, Prediction, user_id="alice") == 1

    @pytest.mark.asyncio
    async def test_unknown_outcome_normalized_to_pending(self, session, add_user) -> None:
        await add_user("alice")
        service = PredictionService(session)
        prediction = await service.create_prediction(
            "alice", _new_prediction_data(outcome="Resolved?")
        )
        assert prediction.outcome == "pending"

    @pytest.mark.asyncio
    async def test_list_public_and_user(self, session, add_user, add_prediction) -> None:
        await add_user("alice", display_name="Alice A")
        old = datetime.now(timezone.utc) - timedelta(days=2)
        await add_prediction("alice", text="older", created_at=old)
        await add_prediction("alice", text="newer")
        await add_prediction("alice", text="hidden", is_public=False)
        service = PredictionService(session)

        public = await service.list_public_predictions()
        assert [p.prediction_text for p, _ in public] == ["newer", "older"]
        assert {name for _, name in public} == {"Alice A"}

        paged = await service.list_public_predictions(limit=1, offset=1)
        assert [p.prediction_text for p, _ in paged] == ["older"]

        own = await service.list_user_predictions("alice")
        assert len(own) == 3


# -----------------------------------------------------------------------
# Cascade delete
# -----------------------------------------------------------------------


class TestDeletePrediction:
    @pytest.mark.asyncio
    async def test_cascade_removes_likes_and_comments(
        self, session, add_user, add_prediction
    ) -> None:
        await add_user("alice")
        await add_user("bob")
        prediction = await add_prediction("alice", 80, "correct")
        keep = await add_prediction("alice", 60, "incorrect")
        dispatcher = MagicMock()
        service = PredictionService(session, dispatcher)
        await service.toggle_like("bob", prediction.id)
        await service.add_comment("bob", prediction.id, "Bold call")
        await service.add_comment("bob", keep.id, "Hmm")

        assert await service.delete_prediction(prediction.id, owner_id="alice") is True

        assert await _count(session, Prediction, id=prediction.id) == 0
        assert await _count(session, Like, prediction_id=prediction.id) == 0
        assert await _count(session, Comment, prediction_id=prediction.id) == 0
        assert await _count(session, Comment, prediction_id=keep.id) == 1
        stats = await _stats_row(session, "alice")
        assert stats.total_predictions == 1
        assert stats.incorrect_predictions == 1
        dispatcher.dispatch_delete.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_missing_or_foreign_prediction(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        prediction = await add_prediction("alice")
        service = PredictionService(session)

        assert await service.delete_prediction("does-not-exist") is False
        assert await service.delete_prediction(prediction.id, owner_id="mallory") is False
        assert await _count(session, Prediction) == 1

    @pytest.mark.asyncio
    async def test_failure_rolls_back_all_deletes(
        self, session, add_user, add_prediction
    ) -> None:
        await add_user("alice")
        await add_user("bob")
        prediction = await add_prediction("alice")
        service = PredictionService(session)
        await service.toggle_like("bob", prediction.id)
        await service.add_comment("bob", prediction.id, "First!")

        real_execute = session.execute

        async def failing_execute(statement, *args, **kwargs):
            if isinstance(statement, Delete) and statement.table.name == "predictions":
                raise OperationalError("DELETE", {}, Exception("disk I/O error"))
            return await real_execute(statement, *args, **kwargs)

        session.execute = failing_execute
        with pytest.raises(OperationalError):
            await service.delete_prediction(prediction.id)
        session.execute = real_execute

        assert await _count(session, Prediction, id=prediction.id) == 1
        assert await _count(session, Like, prediction_id=prediction.id) == 1
        assert await _count(session, Comment, prediction_id=prediction.id) == 1


# -----------------------------------------------------------------------
# Likes and comments
# -----------------------------------------------------------------------


class TestSocial:
    @pytest.mark.asyncio
    async def test_toggle_like(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        await add_user("bob")
        prediction = await add_prediction("alice")
        service = PredictionService(session)

        assert await service.toggle_like("bob", prediction.id) == (True, 1)
        assert await service.has_user_liked("bob", prediction.id)
        assert await service.toggle_like("alice", prediction.id) == (True, 2)
        assert await service.toggle_like("bob", prediction.id) == (False, 1)
        assert not await service.has_user_liked("bob", prediction.id)
        assert await service.like_count(prediction.id) == 1

    @pytest.mark.asyncio
    async def test_like_missing_prediction(self, session, add_user) -> None:
        await add_user("bob")
        with pytest.raises(PredictionNotFoundError):
            await PredictionService(session).toggle_like("bob", "nope")

    @pytest.mark.asyncio
    async def test_comments(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        await add_user("bob", display_name="Robert")
        prediction = await add_prediction("alice")
        service = PredictionService(session)

        first = await service.add_comment("bob", prediction.id, "  Agreed  ")
        first.created_at = datetime.now(timezone.utc) - timedelta(minutes=5)
        await session.commit()
        await service.add_comment("alice", prediction.id, "Thanks")

        comments = await service.list_comments(prediction.id)
        assert [c.content for c, _ in comments] == ["Thanks", "Agreed"]
        assert comments[1][1] == "Robert"
        assert await service.comment_count(prediction.id) == 2

        assert await service.delete_comment(first.id) is True
        assert await service.delete_comment(first.id) is False
        assert await service.comment_count(prediction.id) == 1

    @pytest.mark.asyncio
    async def test_blank_comment_rejected(self, session, add_user, add_prediction) -> None:
        await add_user("alice")
        prediction = await add_prediction("alice")
        with pytest.raises(ValueError, match="empty"):
            await PredictionService(session).add_comment("alice", prediction.id, "   ")


# -----------------------------------------------------------------------
# Users, categories, community content
# -----------------------------------------------------------------------


class TestUsers:
    @pytest.mark.asyncio
    async def test_upsert_preserves_custom_display_name(self, session) -> None:
        service = PredictionService(session)
        user = await service.upsert_user("g-1", email="a@example.com", display_name="Google Name")
        assert user.display_name == "Google Name"

        await service.update_display_name("g-1", "Custom")
        again = await service.upsert_user(
            "g-1", email="a@example.com", display_name="Google Name", first_name="Ann"
        )
        assert again.display_name == "Custom"
        assert again.first_name == "Ann"

    @pytest.mark.asyncio
    async def test_upsert_matches_by_email(self, session, add_user) -> None:
        await add_user("legacy-id", email="a@example.com", display_name="Ann")
        user = await PredictionService(session).upsert_user(
            "new-google-id", email="a@example.com", display_name="Other"
        )
        assert user.id == "legacy-id"
        assert user.display_name == "Ann"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", "x" * 51])
    async def test_display_name_validation(self, session, add_user, name) -> None:
        await add_user("alice")
        with pytest.raises(ValueError):
            await PredictionService(session).update_display_name("alice", name)

    @pytest.mark.asyncio
    async def test_display_name_trimmed(self, session, add_user) -> None:
        await add_user("alice")
        user = await PredictionService(session).update_display_name("alice", "  " + "x" * 50 + " ")
        assert user.display_name == "x" * 50

    @pytest.mark.asyncio
    async def test_rename_unknown_user(self, session) -> None:
        with pytest.raises(UserNotFoundError):
            await PredictionService(session).update_display_name("ghost", "Casper")

    @pytest.mark.asyncio
    async def test_list_users(self, session, add_user) -> None:
        await add_user("alice")
        await add_user("bob")
        users = await PredictionService(session).list_users()
        assert {u.id for u in users} == {"alice", "bob"}


class TestCatalogue:
    @pytest.mark.asyncio
    async def test_categories_sorted_by_name(self, session) -> None:
        service = PredictionService(session)
        await service.create_category("Sports", "#00ff00")
        await service.create_category("Economy")
        names = [c.name for c in await service.list_categories()]
        assert names == ["Economy", "Sports"]

    @pytest.mark.asyncio
    async def test_community_content(self, session) -> None:
        service = PredictionService(session)
        assert await service.get_community_content() is None

        await service.save_community_content({"title": "Welcome"})
        await service.save_community_content({"title": "Hello", "body": "..."})

        assert await service.get_community_content() == {"title": "Hello", "body": "..."}

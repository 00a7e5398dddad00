"""
Airtable record sync.

Mirrors prediction create/update/delete to an Airtable table and imports
Airtable records back into the local store.

Outbound writes are best-effort: ``SyncDispatcher`` runs each call as a
background asyncio task so the primary write path never waits on, or rolls
back because of, the third-party API. Failures are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

import aiohttp
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from guessometer.api.services.stats_service import StatsService
from guessometer.db.models import Category, Prediction, User
from guessometer.settings import Settings
from guessometer.stats.resolution import AFFIRMATIVE, NEGATIVE, classify_outcome
from guessometer.stats.types import Outcome

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"
DEFAULT_CATEGORY_COLOR = "#666666"


class AirtableError(RuntimeError):
    """Non-2xx response from the Airtable API."""

    def __init__(self, status: int, reason: str, body: str = "") -> None:
        super().__init__(f"Airtable API error: {status} {reason} - {body[:200]}")
        self.status = status


# -----------------------------------------------------------------------
# Field mapping
# -----------------------------------------------------------------------


def _iso_date(value: Optional[datetime]) -> str:
    return (value or datetime.now(timezone.utc)).date().isoformat()


def prediction_to_fields(prediction: Prediction) -> dict[str, Any]:
    """Airtable fields for a newly created prediction."""
    return {
        "Prediction Text": prediction.prediction_text,
        "Confidence %": prediction.confidence_level,
        "Category": prediction.category,
        "Privacy": "Public" if prediction.is_public else "Private",
        "Prediction Date": _iso_date(prediction.prediction_date),
        "Outcome Known?": NEGATIVE,
        # Predictions are stated affirmatively; users flip this in Airtable.
        "Predicted Outcome": AFFIRMATIVE,
    }


def updates_to_fields(updates: dict[str, Any]) -> dict[str, Any]:
    """Airtable fields for a partial prediction update."""
    fields: dict[str, Any] = {}

    if "outcome" in updates:
        outcome = updates["outcome"]
        if outcome == Outcome.CORRECT.value:
            fields["Actual Outcome"] = AFFIRMATIVE
            fields["Outcome Known?"] = AFFIRMATIVE
        elif outcome == Outcome.INCORRECT.value:
            fields["Actual Outcome"] = NEGATIVE
            fields["Outcome Known?"] = AFFIRMATIVE
        else:
            fields["Outcome Known?"] = NEGATIVE

    if updates.get("confidence_level") is not None:
        fields["Confidence %"] = updates["confidence_level"]

    return fields


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(value), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_to_prediction_data(record: dict[str, Any]) -> dict[str, Any]:
    """Map an Airtable record to local Prediction column values.

    Missing fields fall back to defaults rather than failing the import.
    """
    fields = record.get("fields", {})
    user_field = fields.get("User")
    if isinstance(user_field, list):
        user_field = user_field[0] if user_field else None

    text = fields.get("Prediction Text") or ""
    now = datetime.now(timezone.utc)

    return {
        "airtable_id": record["id"],
        "user_id": user_field,
        "prediction_text": text,
        "description": text,
        "category": fields.get("Category") or "general",
        "confidence_level": fields.get("Confidence %") or 50,
        "target_date": _parse_datetime(fields.get("Remind Date")) or now,
        "outcome": classify_outcome(
            fields.get("Predicted Outcome"), fields.get("Outcome Known?")
        ).value,
        "is_public": fields.get("Privacy") != "Private",
        "prediction_date": (
            _parse_datetime(fields.get("Prediction Date"))
            or _parse_datetime(record.get("createdTime"))
            or now
        ),
    }


# -----------------------------------------------------------------------
# REST client
# -----------------------------------------------------------------------


class AirtableClient:
    """Minimal async client for one Airtable table."""

    def __init__(
        self,
        base_id: str,
        token: str,
        table: str,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = f"{AIRTABLE_API_URL}/{base_id}"
        self.table = table
        self._token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> AirtableClient:
        return cls(
            base_id=settings.airtable_base_id,
            token=settings.airtable_token,
            table=settings.airtable_table_name,
            timeout=settings.airtable_timeout,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        session = await self._get_session()
        url = f"{self.base_url}/{path}"
        logger.debug("Airtable %s %s", method, url)

        async with session.request(method, url, json=payload, params=params) as resp:
            if resp.status >= 400:
                body = await resp.text()
                raise AirtableError(resp.status, resp.reason or "", body)
            return await resp.json()

    async def list_records(self, filter_formula: Optional[str] = None) -> list[dict[str, Any]]:
        """Fetch every record in the table, following pagination offsets."""
        records: list[dict[str, Any]] = []
        params: dict[str, str] = {}
        if filter_formula:
            params["filterByFormula"] = filter_formula

        while True:
            page = await self._request("GET", self.table, params=params or None)
            records.extend(page.get("records", []))
            offset = page.get("offset")
            if not offset:
                break
            params["offset"] = offset

        logger.info("Fetched %d Airtable records from %s", len(records), self.table)
        return records

    async def create_record(self, fields: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", self.table, payload={"fields": fields})

    async def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"{self.table}/{record_id}", payload={"fields": fields})

    async def delete_record(self, record_id: str) -> None:
        await self._request("DELETE", f"{self.table}/{record_id}")


# -----------------------------------------------------------------------
# Fire-and-forget dispatch
# -----------------------------------------------------------------------


class SyncDispatcher:
    """Schedules outbound Airtable writes as background tasks.

    With no client (Airtable not configured) every dispatch is a no-op.
    Task references are held until completion so they are not collected
    mid-flight.
    """

    def __init__(
        self,
        client: Optional[AirtableClient],
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self.client = client
        self._session_factory = session_factory
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> Optional[asyncio.Task[Any]]:
        task = asyncio.create_task(coro, name=f"airtable-sync:{description}")
        self._tasks.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                logger.warning("Airtable sync cancelled: %s", description)
                return
            exc = t.exception()
            if exc is not None:
                logger.error("Failed to sync %s to Airtable: %s", description, exc)
            else:
                logger.info("Synced %s to Airtable", description)

        task.add_done_callback(_done)
        return task

    def dispatch_create(self, prediction: Prediction) -> Optional[asyncio.Task[Any]]:
        if self.client is None:
            logger.debug("Airtable sync disabled; skipping create of %s", prediction.id)
            return None
        fields = prediction_to_fields(prediction)
        return self._spawn(self._create(prediction.id, fields), f"create {prediction.id}")

    def dispatch_update(self, prediction: Prediction, updates: dict[str, Any]) -> Optional[asyncio.Task[Any]]:
        if self.client is None or not prediction.airtable_id:
            return None
        fields = updates_to_fields(updates)
        if not fields:
            return None
        return self._spawn(
            self.client.update_record(prediction.airtable_id, fields),
            f"update {prediction.id}",
        )

    def dispatch_delete(self, airtable_id: Optional[str]) -> Optional[asyncio.Task[Any]]:
        if self.client is None or not airtable_id:
            return None
        return self._spawn(self.client.delete_record(airtable_id), f"delete {airtable_id}")

    async def _create(self, prediction_id: str, fields: dict[str, Any]) -> None:
        assert self.client is not None
        record = await self.client.create_record(fields)
        if self._session_factory is None:
            return
        # Link the local row to its Airtable record for later update/delete.
        async with self._session_factory() as session:
            prediction = await session.get(Prediction, prediction_id)
            if prediction is not None:
                prediction.airtable_id = record["id"]
                await session.commit()

    async def drain(self) -> None:
        """Wait for in-flight sync tasks (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self.client is not None:
            await self.client.close()


# -----------------------------------------------------------------------
# Inbound import
# -----------------------------------------------------------------------


@dataclass
class ImportSummary:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    categories_created: int = 0
    users_touched: set[str] = field(default_factory=set)


async def pull_predictions(client: AirtableClient, session: AsyncSession) -> ImportSummary:
    """Upsert every Airtable record into the local store by ``airtable_id``.

    Records whose ``User`` is not a known local user are skipped. Commits
    the imported rows, then recomputes stats for each touched user.
    """
    summary = ImportSummary()
    records = await client.list_records()

    known_users = set((await session.execute(select(User.id))).scalars().all())
    known_categories = set((await session.execute(select(Category.name))).scalars().all())

    for record in records:
        data = record_to_prediction_data(record)
        user_id = data["user_id"]
        if user_id not in known_users:
            logger.warning("Skipping Airtable record %s: unknown user %r", record.get("id"), user_id)
            summary.skipped += 1
            continue

        result = await session.execute(
            select(Prediction).where(Prediction.airtable_id == data["airtable_id"])
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            session.add(Prediction(**data))
            summary.created += 1
        else:
            # A reassigned record also changes the previous owner's stats.
            if existing.user_id and existing.user_id != user_id:
                summary.users_touched.add(existing.user_id)
            for key, value in data.items():
                setattr(existing, key, value)
            summary.updated += 1
        summary.users_touched.add(user_id)

        if data["category"] not in known_categories:
            session.add(Category(name=data["category"], color=DEFAULT_CATEGORY_COLOR))
            known_categories.add(data["category"])
            summary.categories_created += 1

    await session.commit()

    stats = StatsService(session)
    for user_id in sorted(summary.users_touched):
        await stats.calculate_user_stats(user_id)

    logger.info(
        "Airtable import: %d created, %d updated, %d skipped, %d categories",
        summary.created,
        summary.updated,
        summary.skipped,
        summary.categories_created,
    )
    return summary

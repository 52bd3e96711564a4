"""Daily per-model usage counters.

Counters live in one document per owner and start over whenever the UTC
date differs from the day they were last reset.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from parseai.agent.config import ModelOption
from parseai.models.chat import UsageRecord
from parseai.models.schemas import ModelInfo
from parseai.storage.documents import DocumentStore

logger = logging.getLogger(__name__)

USAGE_COLLECTION = "userUsage"


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class UsageLimitExceeded(Exception):
    """Raised when an owner has used up today's calls for a model."""

    def __init__(self, model: ModelOption, used: int) -> None:
        super().__init__(f"Daily limit of {model.daily_limit} reached for {model.id}")
        self.model = model
        self.used = used


class UsageService:
    """Tracks model calls per owner and UTC day."""

    def __init__(self, store: DocumentStore, clock: Callable[[], str] = utc_today) -> None:
        """Initialize the usage service.

        Args:
            store: Backing document store.
            clock: Returns today's UTC date as YYYY-MM-DD.
        """
        self._store = store
        self._clock = clock

    def _read(self, data: dict[str, Any] | None) -> UsageRecord | None:
        if data is None:
            return None
        try:
            return UsageRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding malformed usage record: {e}")
            return None

    def get_usage(self, owner: str) -> dict[str, int]:
        """Return today's counters, resetting stale or missing records."""
        today = self._clock()
        record = self._read(self._store.get(USAGE_COLLECTION, owner))

        if record is None or record.last_reset != today:
            record = UsageRecord(last_reset=today)
            self._store.set(USAGE_COLLECTION, owner, record.model_dump())
            return {}

        return dict(record.usage)

    def record_usage(self, owner: str, model_id: str) -> int:
        """Count one call and return the model's new total for today."""
        today = self._clock()

        def increment(data: dict[str, Any] | None) -> dict[str, Any]:
            record = self._read(data)
            if record is None or record.last_reset != today:
                record = UsageRecord(last_reset=today)
            record.usage[model_id] = record.usage.get(model_id, 0) + 1
            return record.model_dump()

        data = self._store.update(USAGE_COLLECTION, owner, increment)
        return data["usage"][model_id]

    def remaining(self, owner: str, model: ModelOption) -> int | None:
        """Calls left today, or None when the model is unlimited."""
        if model.daily_limit is None:
            return None
        used = self.get_usage(owner).get(model.id, 0)
        return max(model.daily_limit - used, 0)

    def describe(self, owner: str | None, models: Sequence[ModelOption]) -> list[ModelInfo]:
        """The model catalog with today's usage; zero usage for anonymous callers."""
        used = self.get_usage(owner) if owner else {}
        described: list[ModelInfo] = []
        for option in models:
            count = used.get(option.id, 0)
            remaining = None if option.daily_limit is None else max(option.daily_limit - count, 0)
            described.append(
                ModelInfo(
                    id=option.id,
                    label=option.label,
                    daily_limit=option.daily_limit,
                    used=count,
                    remaining=remaining,
                )
            )
        return described

    def check_quota(self, owner: str, model: ModelOption) -> None:
        """Raise UsageLimitExceeded when today's calls are used up."""
        if model.daily_limit is None:
            return
        used = self.get_usage(owner).get(model.id, 0)
        if used >= model.daily_limit:
            raise UsageLimitExceeded(model, used)

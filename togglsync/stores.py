"""
Consumer-held snapshots of the latest timer and daily summary.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from togglsync.models import ProjectSummaryItem, TimeEntry

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_timer: Optional[TimeEntry] = None
    daily_summary: List[ProjectSummaryItem] = Field(default_factory=list)
    refreshed_at: Optional[datetime] = None


Subscriber = Callable[[Snapshot], None]


class SnapshotStore:
    """Holds one Snapshot; subscribers get the current value and every update."""

    def __init__(self):
        self._value = Snapshot()
        self._subscribers: List[Subscriber] = []

    @property
    def value(self) -> Snapshot:
        return self._value

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set(self, value: Snapshot) -> None:
        self._value = value
        for callback in list(self._subscribers):
            callback(value)


async def refresh_snapshot(api, store: SnapshotStore) -> Snapshot:
    """Fetch the running timer and today's summary into ``store``."""
    current_timer = await api.get_current_timer()
    daily_summary = await api.get_daily_summary()
    snapshot = Snapshot(
        current_timer=current_timer,
        daily_summary=daily_summary,
        refreshed_at=datetime.now(timezone.utc),
    )
    store.set(snapshot)
    logger.debug(
        f"Snapshot refreshed: running={current_timer is not None} groups={len(daily_summary)}"
    )
    return snapshot

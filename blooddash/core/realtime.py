from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"
EVENT_TYPES = {"INSERT", "UPDATE", "DELETE"}


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str  # INSERT | UPDATE | DELETE
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None


@dataclass(eq=False)
class Subscription:
    table: str
    event: str
    callback: Callable[[ChangeEvent], None]
    _feed: Optional["ChangeFeed"] = field(default=None, repr=False)

    def matches(self, ev: ChangeEvent) -> bool:
        return self.table == ev.table and self.event in (ALL_EVENTS, ev.event_type)

    def unsubscribe(self) -> None:
        if self._feed is not None:
            self._feed.remove(self)
            self._feed = None


class ChangeFeed:
    """
    Row-change notifications keyed by table.

    Callbacks run on the publishing thread; subscribers that live on an
    event loop must hand the event over themselves (call_soon_threadsafe).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subs: List[Subscription] = []

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None], event: str = ALL_EVENTS) -> Subscription:
        if event != ALL_EVENTS and event not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event}")
        sub = Subscription(table=table, event=event, callback=callback, _feed=self)
        with self._lock:
            self._subs.append(sub)
        return sub

    def remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            return sum(1 for s in self._subs if table is None or s.table == table)

    def publish(self, ev: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subs if s.matches(ev)]

        for sub in targets:
            try:
                sub.callback(ev)
            except Exception:
                # one broken subscriber must not stop delivery to the rest
                logger.exception("change feed subscriber failed", extra={"table": ev.table})


change_feed = ChangeFeed()

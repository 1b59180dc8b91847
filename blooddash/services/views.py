# blooddash/services/views.py
"""
Live views: a view fetches its data on mount, subscribes to shortage
changes and re-fetches everything on any notification until unmounted.

There is no ordering between a feed-driven reload and a manual
filter change; whichever replaces the state last wins.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from blooddash.core.realtime import ALL_EVENTS, ChangeEvent, ChangeFeed, Subscription, change_feed
from blooddash.services.listing import Action, ListingState, Loaded, reduce, render

logger = logging.getLogger(__name__)

Notify = Callable[[ChangeEvent], None]


class LiveView:
    table = "shortages"

    def __init__(self, feed: ChangeFeed = change_feed):
        self.feed = feed
        self._sub: Optional[Subscription] = None
        self._notify: Optional[Notify] = None

    @property
    def mounted(self) -> bool:
        return self._sub is not None

    def load(self) -> None:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Any]:
        raise NotImplementedError

    def mount(self, notify: Optional[Notify] = None) -> None:
        """
        notify replaces the in-place reload; async hosts use it to move the
        reload onto their own loop.
        """
        self._notify = notify
        self.load()
        self._sub = self.feed.subscribe(self.table, self._on_change, event=ALL_EVENTS)

    def unmount(self) -> None:
        if self._sub is not None:
            self._sub.unsubscribe()
            self._sub = None
        self._notify = None

    def _on_change(self, ev: ChangeEvent) -> None:
        logger.debug("view refresh", extra={"table": ev.table, "event_type": ev.event_type})
        if self._notify is not None:
            self._notify(ev)
        else:
            self.load()


class ListingView(LiveView):
    """Public listing; fetch returns (rows, districts)."""

    def __init__(
        self,
        fetch: Callable[[], Tuple[Sequence[Dict[str, Any]], Sequence[str]]],
        feed: ChangeFeed = change_feed,
    ):
        super().__init__(feed)
        self._fetch = fetch
        self.state = ListingState()

    def load(self) -> None:
        rows, districts = self._fetch()
        self.state = reduce(self.state, Loaded(rows=rows, districts=districts))

    def dispatch(self, action: Action) -> None:
        self.state = reduce(self.state, action)

    def snapshot(self) -> Dict[str, Any]:
        return render(self.state)


class DashboardView(LiveView):
    def __init__(self, fetch: Callable[[], Dict[str, Any]], feed: ChangeFeed = change_feed):
        super().__init__(feed)
        self._fetch = fetch
        self.data: Dict[str, Any] = {}
        self.loading = True

    def load(self) -> None:
        self.data = self._fetch()
        self.loading = False

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.data, loading=self.loading)



#blooddash/api/v1/realtime.py
"""
Websocket hosts for live views.

The change feed calls back on whatever thread committed the write, so
notifications are handed to the connection's loop with
call_soon_threadsafe and every (blocking) fetch runs in the threadpool.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from blooddash.api.v1.common import fail, ok
from blooddash.auth.provider import IdentityProvider, get_identity_provider
from blooddash.core.errors import ActionError
from blooddash.db.session import get_db
from blooddash.policies.rbac import Principal
from blooddash.services import pages_service
from blooddash.services.listing import Action, Cleared, FilterChanged, SearchChanged
from blooddash.services.views import DashboardView, ListingView, LiveView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime")

# client filter names -> listing filter keys
_FILTER_KEYS = {"bloodType": "blood_type", "district": "district", "status": "status"}


def listing_action(msg: Dict[str, Any]) -> Action:
    kind = msg.get("type")
    if kind == "filter":
        key = msg.get("key")
        return FilterChanged(key=_FILTER_KEYS.get(key, key), value=msg.get("value"))
    if kind == "search":
        return SearchChanged(query=msg.get("query") or "")
    if kind == "clear":
        return Cleared()
    raise ValueError(f"Unknown message type: {kind}")


def _fresh(db: Session, fetch: Callable[[], Any]) -> Callable[[], Any]:
    def run():
        try:
            return fetch()
        finally:
            # end the read so the next fetch sees newly committed rows
            db.rollback()

    return run


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    try:
        while True:
            await queue.put(("message", await websocket.receive_text()))
    except WebSocketDisconnect:
        await queue.put(("closed", None))


async def serve_view(
    websocket: WebSocket,
    view: LiveView,
    on_message: Optional[Callable[[LiveView, Dict[str, Any]], None]] = None,
) -> None:
    """
    Mount, push a snapshot, then push a new snapshot after every change
    notification and every handled client message. Unmounts on exit.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def notify(ev) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, ("change", ev))

    try:
        await run_in_threadpool(view.mount, notify)
    except ActionError as e:
        await websocket.send_json(fail(e.message))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    logger.info("live view mounted", extra={"view": type(view).__name__})
    receiver = asyncio.create_task(_pump(websocket, queue))
    try:
        await websocket.send_json(ok(view.snapshot()))
        while True:
            kind, payload = await queue.get()
            if kind == "closed":
                break

            if kind == "change":
                try:
                    await run_in_threadpool(view.load)
                except ActionError as e:
                    await websocket.send_json(fail(e.message))
                    continue
            else:
                if on_message is None:
                    continue
                try:
                    on_message(view, json.loads(payload))
                except (ValueError, TypeError, AttributeError) as e:
                    await websocket.send_json(fail(str(e)))
                    continue

            await websocket.send_json(ok(view.snapshot()))
    finally:
        view.unmount()
        logger.info("live view unmounted", extra={"view": type(view).__name__})
        receiver.cancel()


@router.websocket("/shortages")
async def shortages_feed(websocket: WebSocket, db: Session = Depends(get_db)):
    await websocket.accept()

    view = ListingView(fetch=_fresh(db, lambda: pages_service.listing_rows(db)))

    def handle(v: ListingView, msg: Dict[str, Any]) -> None:
        v.dispatch(listing_action(msg))

    await serve_view(websocket, view, handle)


@router.websocket("/dashboard")
async def dashboard_feed(
    websocket: WebSocket,
    token: str = Query(""),
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await websocket.accept()

    found = await run_in_threadpool(provider.get_user, token) if token else None
    if found is None:
        await websocket.send_json(fail("Not authenticated"))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    identity, session_id = found
    principal = Principal(user_id=identity.id, session_id=session_id, email=identity.email)

    view = DashboardView(fetch=_fresh(db, lambda: pages_service.dashboard_page(db, principal, use_cache=False)))
    await serve_view(websocket, view)

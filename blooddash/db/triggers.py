"""
Store-side triggers implemented as ORM session events.

- every insert/update/delete of an audited table appends an audit_logs row
  in the same transaction (actor taken from session.info, see bind_actor)
- row changes of feed tables are published to the change feed only after
  the transaction commits; a rollback discards them
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from blooddash.core.realtime import ChangeEvent, change_feed

AUDITED_TABLES = {"centers", "shortages"}
FEED_TABLES = {"centers", "shortages", "user_centers"}
TRACKED_TABLES = AUDITED_TABLES | FEED_TABLES

_ACTOR_KEY = "audit_actor"
_AUDIT_KEY = "pending_audit"
_CHANGES_KEY = "pending_changes"


@dataclass(frozen=True)
class AuditActor:
    user_id: Optional[uuid.UUID]
    ip_address: Optional[str]


def bind_actor(db: Session, user_id: Optional[uuid.UUID], ip_address: Optional[str]) -> None:
    db.info[_ACTOR_KEY] = AuditActor(user_id=user_id, ip_address=ip_address)


def _jsonable(v: Any) -> Any:
    if isinstance(v, uuid.UUID):
        return str(v)
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, Decimal):
        return float(v)
    if isinstance(v, Enum):
        return v.value
    return v


def _snapshot(obj) -> Dict[str, Any]:
    state = inspect(obj)
    out: Dict[str, Any] = {}
    for attr in state.mapper.column_attrs:
        if attr.key in state.dict:
            out[attr.key] = _jsonable(state.dict[attr.key])
    return out


def _old_snapshot(obj) -> Optional[Dict[str, Any]]:
    """Pre-update values; None when no column actually changed."""
    state = inspect(obj)
    old: Dict[str, Any] = {}
    changed = False
    for attr in state.mapper.column_attrs:
        hist = state.attrs[attr.key].history
        if hist.has_changes():
            changed = True
        if hist.deleted:
            old[attr.key] = _jsonable(hist.deleted[0])
        elif not hist.added and attr.key in state.dict:
            old[attr.key] = _jsonable(state.dict[attr.key])
    return old if changed else None


def _center_ref(table: str, obj, action: str) -> Optional[uuid.UUID]:
    if table == "shortages":
        return obj.center_id
    if table == "centers" and action != "delete":
        return obj.id
    # a deleted center cannot be referenced by its own audit row
    return None


def _pending(db: Session, key: str) -> List:
    return db.info.setdefault(key, [])


def _cascade_center_children(db: Session) -> None:
    # the database would drop these silently; delete them here so they are audited and published
    for obj in list(db.deleted):
        if getattr(obj, "__tablename__", None) != "centers":
            continue
        for child in list(obj.shortages) + list(obj.memberships):
            if child not in db.deleted:
                db.delete(child)


@event.listens_for(Session, "before_flush")
def _load_deleted_rows(db: Session, flush_context, instances) -> None:
    _cascade_center_children(db)

    # deleted rows are snapshotted after their DELETE ran; load them while they exist
    for obj in db.deleted:
        if getattr(obj, "__tablename__", None) not in TRACKED_TABLES:
            continue
        state = inspect(obj)
        for attr in state.mapper.column_attrs:
            if attr.key in state.expired_attributes:
                getattr(obj, attr.key)
                break


@event.listens_for(Session, "after_flush")
def _collect_changes(db: Session, flush_context) -> None:
    audit = _pending(db, _AUDIT_KEY)
    changes = _pending(db, _CHANGES_KEY)

    # audit rows must not point at centers removed in this same flush
    gone_centers = {
        obj.id for obj in db.deleted if getattr(obj, "__tablename__", None) == "centers"
    }

    batches = (
        ("create", "INSERT", db.new),
        ("update", "UPDATE", db.dirty),
        ("delete", "DELETE", db.deleted),
    )
    for action, event_type, objs in batches:
        for obj in objs:
            table = getattr(obj, "__tablename__", None)
            if table not in TRACKED_TABLES:
                continue

            old: Optional[Dict[str, Any]] = None
            new: Optional[Dict[str, Any]] = None
            if action == "create":
                new = _snapshot(obj)
            elif action == "update":
                old = _old_snapshot(obj)
                if old is None:
                    continue
                new = _snapshot(obj)
            else:
                old = _snapshot(obj)

            if table in AUDITED_TABLES:
                center_ref = _center_ref(table, obj, action)
                audit.append(
                    {
                        "action": action,
                        "table_name": table,
                        "center_id": None if center_ref in gone_centers else center_ref,
                        "old_data": old,
                        "new_data": new,
                    }
                )
            if table in FEED_TABLES:
                changes.append(ChangeEvent(table=table, event_type=event_type, new=new, old=old))


@event.listens_for(Session, "after_flush_postexec")
def _write_audit_rows(db: Session, flush_context) -> None:
    rows = db.info.pop(_AUDIT_KEY, None)
    if not rows:
        return

    from blooddash.models.audit_log import AuditLog

    actor: Optional[AuditActor] = db.info.get(_ACTOR_KEY)
    for r in rows:
        db.add(
            AuditLog(
                user_id=actor.user_id if actor else None,
                ip_address=actor.ip_address if actor else None,
                **r,
            )
        )


@event.listens_for(Session, "after_commit")
def _publish_changes(db: Session) -> None:
    for ev in db.info.pop(_CHANGES_KEY, []):
        change_feed.publish(ev)


@event.listens_for(Session, "after_soft_rollback")
def _discard_changes(db: Session, previous_transaction) -> None:
    db.info.pop(_AUDIT_KEY, None)
    db.info.pop(_CHANGES_KEY, None)

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from blooddash.core.errors import Forbidden, NO_CENTER_ASSIGNED
from blooddash.models.enums import MembershipRole
from blooddash.models.user_center import UserCenter
from blooddash.policies.rbac import Principal, denial_message, is_allowed


def find_membership(db: Session, user_id: uuid.UUID) -> Optional[UserCenter]:
    """A user has at most one membership; the oldest wins if the store ever holds more."""
    return db.execute(
        select(UserCenter)
        .where(UserCenter.user_id == user_id)
        .order_by(UserCenter.created_at.asc())
        .limit(1)
    ).scalar_one_or_none()


def require_membership(db: Session, principal: Principal, message: str = NO_CENTER_ASSIGNED) -> UserCenter:
    m = find_membership(db, principal.user_id)
    if not m:
        raise Forbidden(message)
    return m


def enforce_action(
    *,
    db: Session,
    principal: Principal,
    action: str,
    center_id: Optional[uuid.UUID] = None,
) -> UserCenter:
    """
    Role check plus, when center_id is given, same-center check.
    Runs before any mutation; the store may still apply its own policies.
    """
    m = find_membership(db, principal.user_id)
    if not m:
        if is_allowed(MembershipRole.editor.value, action):
            raise Forbidden(NO_CENTER_ASSIGNED)
        raise Forbidden(denial_message(action))
    if not is_allowed(m.role, action):
        raise Forbidden(denial_message(action))

    if center_id is not None:
        enforce_same_center(m, center_id, action)

    return m


def enforce_same_center(m: UserCenter, center_id: uuid.UUID, action: str) -> None:
    if m.center_id != center_id:
        raise Forbidden(f"You can only {action} for your own center")

#blooddash/policies/rbac.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Set

from blooddash.models.enums import MembershipRole


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    session_id: uuid.UUID
    email: str


# --- Core action constants ---
ACTION_CREATE_SHORTAGE = "create shortages"
ACTION_UPDATE_SHORTAGE = "update shortages"
ACTION_DELETE_SHORTAGE = "delete shortages"
ACTION_CREATE_CENTER = "create centers"
ACTION_UPDATE_CENTER = "update centers"
ACTION_DELETE_CENTER = "delete centers"
ACTION_VIEW_OFFICIALS = "view officials"
ACTION_VIEW_AUDIT = "view audit logs"


def allowed_actions(role: str) -> Set[str]:
    """
    Pure RBAC: which actions a membership role may attempt.
    """

    if role == MembershipRole.admin.value:
        return {
            ACTION_CREATE_SHORTAGE,
            ACTION_UPDATE_SHORTAGE,
            ACTION_DELETE_SHORTAGE,
            ACTION_CREATE_CENTER,
            ACTION_UPDATE_CENTER,
            ACTION_DELETE_CENTER,
            ACTION_VIEW_OFFICIALS,
            ACTION_VIEW_AUDIT,
        }

    if role == MembershipRole.editor.value:
        return {ACTION_CREATE_SHORTAGE, ACTION_UPDATE_SHORTAGE}

    return set()


def is_allowed(role: str, action: str) -> bool:
    return action in allowed_actions(role)


def denial_message(action: str) -> str:
    # "Only admins can delete shortages"
    return f"Only admins can {action}"

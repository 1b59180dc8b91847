# blooddash/api/v1/common.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from blooddash.core.errors import ValidationFailed
from blooddash.services.listing import ALL


def ok(data: Any = None) -> Dict[str, Any]:
    return {"data": data, "error": None}


def fail(message: str) -> Dict[str, Any]:
    return {"data": None, "error": message}


def optional_filter(v: Optional[str]) -> Optional[str]:
    """'' and 'all' both mean no constraint."""
    if v is None:
        return None
    v = v.strip()
    return None if not v or v == ALL else v


def parse_uuid(raw: Optional[str], message: str) -> Optional[uuid.UUID]:
    raw = optional_filter(raw)
    if raw is None:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationFailed(message)


def parse_datetime(raw: Optional[str], name: str) -> Optional[datetime]:
    raw = optional_filter(raw)
    if raw is None:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed(f"{name} must be an ISO date or datetime")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

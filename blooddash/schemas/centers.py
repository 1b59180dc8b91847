#blooddash/schemas/centers.py
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


class CenterForm(BaseModel):
    name: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    # object or JSON-encoded string: {"monday": "8:00-16:00"}
    opening_hours: Optional[Union[Dict[str, str], str]] = None

    @field_validator("address", "phone", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("opening_hours", mode="before")
    @classmethod
    def _parse_hours(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                raise ValueError("opening_hours must be a JSON object")
        if not isinstance(v, dict):
            raise ValueError("opening_hours must be a JSON object")
        return {str(k): str(h) for k, h in v.items()}


class CenterBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    district: str

    @field_validator("id", mode="before")
    @classmethod
    def _uuid_str(cls, v):
        return str(v)


class CenterOut(CenterBrief):
    address: Optional[str] = None
    phone: Optional[str] = None
    opening_hours: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

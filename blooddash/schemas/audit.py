from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from blooddash.schemas.centers import CenterBrief


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    center_id: Optional[str] = None
    action: str
    table_name: str
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    timestamp: datetime
    ip_address: Optional[str] = None

    centers: Optional[CenterBrief] = Field(default=None, validation_alias=AliasChoices("center", "centers"))

    @field_validator("id", "user_id", "center_id", mode="before")
    @classmethod
    def _uuid_str(cls, v):
        return str(v) if v is not None else None

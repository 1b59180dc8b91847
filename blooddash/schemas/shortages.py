#blooddash/schemas/shortages.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from blooddash.schemas.centers import CenterBrief, CenterOut


class ShortageForm(BaseModel):
    blood_type: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ShortageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    center_id: str
    blood_type: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "center_id", mode="before")
    @classmethod
    def _uuid_str(cls, v):
        return str(v)


class ShortageWithCenter(ShortageOut):
    centers: Optional[CenterOut] = Field(default=None, validation_alias=AliasChoices("center", "centers"))


class MembershipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    center_id: str
    role: str
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", "center_id", mode="before")
    @classmethod
    def _uuid_str(cls, v):
        return str(v)


class MembershipWithCenter(MembershipOut):
    centers: Optional[CenterOut] = Field(default=None, validation_alias=AliasChoices("center", "centers"))


class OfficialOut(MembershipOut):
    centers: Optional[CenterBrief] = Field(default=None, validation_alias=AliasChoices("center", "centers"))

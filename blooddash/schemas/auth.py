from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class SignupForm(BaseModel):
    # all optional: the action reports missing fields with its own messages
    role: Optional[str] = Field(default=None, description="blood_bank | official")
    email: Optional[str] = None
    password: Optional[str] = None

    # blood_bank
    center_name: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    # official
    center_id: Optional[str] = None


class LoginForm(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class OtpRequestForm(BaseModel):
    email: Optional[str] = None


class OtpVerifyForm(BaseModel):
    email: Optional[str] = None
    token: Optional[str] = None


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str

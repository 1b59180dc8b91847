# blooddash/services/auth_service.py
"""
Signup, login (password and one-time code), email confirmation, sign-out.

Signup is a three step sequence that is not wrapped in one transaction:
center (committed) -> auth identity (committed by the provider) -> membership.
When the membership insert fails the identity is deleted again; the center
is left in place.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blooddash.auth.provider import (
    PURPOSE_EMAIL,
    PURPOSE_SIGNUP,
    IdentityProvider,
    IssuedSession,
)
from blooddash.core.config import get_settings
from blooddash.core.errors import (
    ActionError,
    Forbidden,
    LinkFailed,
    NO_CENTER_ASSIGNED,
    ProviderError,
    ValidationFailed,
    store_message,
)
from blooddash.core.revalidate import revalidate_path
from blooddash.models.center import Center
from blooddash.models.enums import AccountType, ROLE_FOR_ACCOUNT
from blooddash.models.user_center import UserCenter
from blooddash.policies.membership_policy import find_membership
from blooddash.policies.rbac import Principal
from blooddash.schemas.auth import LoginForm, OtpRequestForm, OtpVerifyForm, SignupForm

logger = logging.getLogger(__name__)

CONFIRMATION_MESSAGE = (
    "Account created! Please check your email to verify your account before signing in."
)


def _blank(v: Optional[str]) -> bool:
    return v is None or not str(v).strip()


def session_payload(s: IssuedSession) -> Dict[str, Any]:
    return {
        "access_token": s.access_token,
        "token_type": s.token_type,
        "user_id": str(s.user.id),
        "email": s.user.email,
    }


def validate_signup(form: SignupForm) -> AccountType:
    """
    Input checks that run before any store or provider call.
    """
    try:
        account = AccountType(form.role or "")
    except ValueError:
        raise ValidationFailed("Please select a valid account type")

    if _blank(form.email) or not form.password:
        raise ValidationFailed("Email and password are required")

    min_length = get_settings().min_password_length
    if len(form.password) < min_length:
        raise ValidationFailed(f"Password must be at least {min_length} characters")

    if account == AccountType.blood_bank:
        if _blank(form.center_name) or _blank(form.district):
            raise ValidationFailed("Center name and district are required")
    else:
        if _blank(form.center_id):
            raise ValidationFailed("Please select a blood bank center")

    return account


def link_membership(db: Session, *, user_id: uuid.UUID, center_id: uuid.UUID, role: str) -> UserCenter:
    m = UserCenter(user_id=user_id, center_id=center_id, role=role)
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


class AuthService:
    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    # ------------------------------------------------------------------
    # signup
    # ------------------------------------------------------------------
    def signup(self, db: Session, form: SignupForm) -> Dict[str, Any]:
        account = validate_signup(form)

        # Step 1: resolve or create the center
        if account == AccountType.blood_bank:
            center = self._create_signup_center(db, form)
        else:
            center = self._resolve_center(db, form.center_id)
        center_id, center_name = center.id, center.name

        # Step 2: auth identity
        created = self.provider.sign_up(form.email, form.password)
        user = created.user

        # Step 3: membership
        role = ROLE_FOR_ACCOUNT[account].value
        try:
            link_membership(db, user_id=user.id, center_id=center_id, role=role)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "failed to link user to center",
                extra={"user_id": str(user.id), "center_id": str(center_id), "role": role, "error": str(e)},
            )
            self._compensate(user.id)
            raise LinkFailed(f"Failed to link account to center: {store_message(e)}")

        logger.info(
            "account created",
            extra={"user_id": str(user.id), "center_id": str(center_id), "role": role},
        )

        revalidate_path("/", layout=True)
        revalidate_path("/dashboard", layout=True)

        if not user.is_confirmed or created.session is None:
            return {
                "success": True,
                "message": CONFIRMATION_MESSAGE,
                "requiresEmailConfirmation": True,
                "centerName": center_name,
            }

        return {
            "success": True,
            "requiresEmailConfirmation": False,
            "redirectTo": "/dashboard",
            "centerName": center_name,
            "session": session_payload(created.session),
        }

    def _create_signup_center(self, db: Session, form: SignupForm) -> Center:
        c = Center(
            name=form.center_name.strip(),
            district=form.district.strip(),
            address=None if _blank(form.address) else form.address,
            phone=None if _blank(form.phone) else form.phone,
        )
        db.add(c)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("failed to create center", extra={"error": str(e)})
            raise ActionError(store_message(e) or "Failed to create blood bank center")
        db.refresh(c)
        return c

    def _resolve_center(self, db: Session, raw_id: str) -> Center:
        try:
            cid = uuid.UUID(str(raw_id).strip())
        except ValueError:
            raise ValidationFailed("Selected blood bank center does not exist")

        c = db.execute(select(Center).where(Center.id == cid)).scalar_one_or_none()
        if not c:
            raise ValidationFailed("Selected blood bank center does not exist")
        return c

    def _compensate(self, user_id: uuid.UUID) -> None:
        # best effort; a failure here is only logged
        try:
            self.provider.delete_user(user_id)
        except (ProviderError, SQLAlchemyError):
            logger.exception("compensating identity delete failed", extra={"user_id": str(user_id)})
        else:
            logger.info("identity removed after link failure", extra={"user_id": str(user_id)})

    # ------------------------------------------------------------------
    # login
    # ------------------------------------------------------------------
    def login(self, db: Session, form: LoginForm) -> Dict[str, Any]:
        if _blank(form.email) or not form.password:
            raise ValidationFailed("Email and password are required")

        session = self.provider.sign_in_with_password(form.email, form.password)
        return self._require_center(db, session)

    def send_otp(self, form: OtpRequestForm) -> Dict[str, Any]:
        if _blank(form.email):
            raise ValidationFailed("Email is required")

        self.provider.sign_in_with_otp(form.email, should_create_user=False)
        return {"success": True, "message": "OTP sent to your email"}

    def verify_otp(self, db: Session, form: OtpVerifyForm) -> Dict[str, Any]:
        if _blank(form.email) or _blank(form.token):
            raise ValidationFailed("Email and code are required")

        session = self.provider.verify_otp(form.email, form.token.strip(), type=PURPOSE_EMAIL)
        return self._require_center(db, session)

    def confirm_email(self, db: Session, email: str, token: str) -> Dict[str, Any]:
        if _blank(email) or _blank(token):
            raise ValidationFailed("Email and code are required")

        session = self.provider.verify_otp(email, token.strip(), type=PURPOSE_SIGNUP)
        return self._require_center(db, session)

    def _require_center(self, db: Session, session: IssuedSession) -> Dict[str, Any]:
        """
        Shared tail of every sign-in path: no membership means no session.
        """
        m = find_membership(db, session.user.id)
        if not m:
            self.provider.sign_out(session.session_id)
            logger.warning("sign-in without membership", extra={"user_id": str(session.user.id)})
            raise Forbidden(NO_CENTER_ASSIGNED)

        revalidate_path("/", layout=True)
        return {
            "redirectTo": "/dashboard",
            "role": m.role,
            "centerId": str(m.center_id),
            "session": session_payload(session),
        }

    # ------------------------------------------------------------------
    # sign out
    # ------------------------------------------------------------------
    def sign_out(self, principal: Principal) -> Dict[str, Any]:
        self.provider.sign_out(principal.session_id)
        revalidate_path("/", layout=True)
        return {"redirectTo": "/login"}

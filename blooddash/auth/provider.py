# blooddash/auth/provider.py
"""
Identity provider: password and one-time-code sign-in, email confirmation,
revocable sessions.

The provider owns the auth_* tables and opens its own DB sessions, so its
writes are committed independently of whatever the calling action is doing.
Failures are raised as ProviderError with the provider's message; callers
pass that message through unchanged.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional, Tuple
from urllib.parse import urlencode

from jose import JWTError
from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from blooddash.auth.mailer import Mailer, build_mailer
from blooddash.auth.models import AuthUser, AuthSession, OneTimeCode
from blooddash.core.config import Settings, get_settings
from blooddash.core.errors import ProviderError
from blooddash.core.security import (
    generate_code,
    hash_secret,
    issue_session_token,
    read_session_token,
    unusable_password,
    verify_secret,
)

logger = logging.getLogger(__name__)

PURPOSE_SIGNUP = "signup"
PURPOSE_EMAIL = "email"

MSG_ALREADY_REGISTERED = "User already registered"
MSG_INVALID_EMAIL = "Unable to validate email address: invalid format"
MSG_INVALID_CREDENTIALS = "Invalid login credentials"
MSG_NOT_CONFIRMED = "Email not confirmed"
MSG_OTP_SIGNUP_DISABLED = "Signups not allowed for otp"
MSG_TOKEN_INVALID = "Token has expired or is invalid"
MSG_USER_NOT_FOUND = "User not found"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    email: str
    email_confirmed_at: Optional[datetime]

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


@dataclass(frozen=True)
class IssuedSession:
    access_token: str
    session_id: uuid.UUID
    user: Identity
    token_type: str = "bearer"


@dataclass(frozen=True)
class SignUpResult:
    user: Identity
    session: Optional[IssuedSession]  # None until the email is confirmed


def _identity(u: AuthUser) -> Identity:
    return Identity(id=u.id, email=u.email, email_confirmed_at=_aware(u.email_confirmed_at))


class IdentityProvider:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        mailer: Mailer,
        settings: Optional[Settings] = None,
    ):
        self._session_factory = session_factory
        self.mailer = mailer
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # sign up / confirmation
    # ------------------------------------------------------------------
    def sign_up(self, email: str, password: str) -> SignUpResult:
        email = _normalize_email(email)
        if "@" not in email:
            raise ProviderError(MSG_INVALID_EMAIL)

        needs_confirmation = self.settings.auth_require_email_confirmation

        with self._session_factory() as db:
            exists = db.execute(select(AuthUser.id).where(AuthUser.email == email)).first()
            if exists:
                raise ProviderError(MSG_ALREADY_REGISTERED)

            u = AuthUser(
                email=email,
                password_hash=hash_secret(password),
                email_confirmed_at=None if needs_confirmation else _now(),
            )
            db.add(u)
            db.commit()
            db.refresh(u)

            if needs_confirmation:
                code = self._issue_code(db, u, PURPOSE_SIGNUP)
                db.commit()
                link = f"{self.settings.site_url}{self.settings.api_prefix}/auth/confirm?" + urlencode(
                    {"email": email, "token": code}
                )
                self.mailer.send(
                    to=email,
                    subject="Confirm your signup",
                    body=f"Confirm your account with code {code} or open {link}",
                )
                logger.info("identity created, confirmation pending", extra={"user_id": str(u.id)})
                return SignUpResult(user=_identity(u), session=None)

            session = self._start_session(db, u)
            db.commit()
            return SignUpResult(user=_identity(u), session=session)

    # ------------------------------------------------------------------
    # sign in
    # ------------------------------------------------------------------
    def sign_in_with_password(self, email: str, password: str) -> IssuedSession:
        email = _normalize_email(email)
        with self._session_factory() as db:
            u = db.execute(select(AuthUser).where(AuthUser.email == email)).scalar_one_or_none()
            if not u or not verify_secret(password or "", u.password_hash):
                raise ProviderError(MSG_INVALID_CREDENTIALS)
            if u.email_confirmed_at is None:
                raise ProviderError(MSG_NOT_CONFIRMED)

            session = self._start_session(db, u)
            db.commit()
            return session

    def sign_in_with_otp(self, email: str, should_create_user: bool = False) -> None:
        email = _normalize_email(email)
        with self._session_factory() as db:
            u = db.execute(select(AuthUser).where(AuthUser.email == email)).scalar_one_or_none()
            if not u:
                if not should_create_user:
                    raise ProviderError(MSG_OTP_SIGNUP_DISABLED)
                u = AuthUser(email=email, password_hash=unusable_password())
                db.add(u)
                db.flush()

            code = self._issue_code(db, u, PURPOSE_EMAIL)
            db.commit()

        self.mailer.send(
            to=email,
            subject="Your login code",
            body=f"Your login code is {code}. It expires in {self.settings.otp_expiry_minutes} minutes.",
        )

    def verify_otp(self, email: str, token: str, type: str = PURPOSE_EMAIL) -> IssuedSession:
        """
        Consumes a matching code, confirms the email and opens a session.
        type: "email" for passwordless login, "signup" for confirmation links.
        """
        email = _normalize_email(email)
        now = _now()
        with self._session_factory() as db:
            u = db.execute(select(AuthUser).where(AuthUser.email == email)).scalar_one_or_none()
            if not u or not token:
                raise ProviderError(MSG_TOKEN_INVALID)

            codes = db.execute(
                select(OneTimeCode)
                .where(
                    OneTimeCode.user_id == u.id,
                    OneTimeCode.purpose == type,
                    OneTimeCode.consumed_at.is_(None),
                )
                .order_by(OneTimeCode.created_at.desc())
            ).scalars().all()

            match = None
            for c in codes:
                if _aware(c.expires_at) <= now:
                    continue
                if verify_secret(token, c.code_hash):
                    match = c
                    break
            if match is None:
                raise ProviderError(MSG_TOKEN_INVALID)

            match.consumed_at = now
            if u.email_confirmed_at is None:
                u.email_confirmed_at = now

            session = self._start_session(db, u)
            db.commit()
            return session

    # ------------------------------------------------------------------
    # sessions
    # ------------------------------------------------------------------
    def get_user(self, access_token: str) -> Optional[Tuple[Identity, uuid.UUID]]:
        """Identity and session id behind a live access token, else None."""
        try:
            user_id, session_id = read_session_token(access_token)
        except (JWTError, ValueError, TypeError):
            return None

        with self._session_factory() as db:
            s = db.get(AuthSession, session_id)
            if not s or s.revoked_at is not None or s.user_id != user_id:
                return None
            u = db.get(AuthUser, user_id)
            if not u:
                return None
            return _identity(u), session_id

    def sign_out(self, session_id: uuid.UUID) -> None:
        with self._session_factory() as db:
            db.execute(
                update(AuthSession)
                .where(AuthSession.id == session_id, AuthSession.revoked_at.is_(None))
                .values(revoked_at=_now())
            )
            db.commit()

    # ------------------------------------------------------------------
    # admin
    # ------------------------------------------------------------------
    def delete_user(self, user_id: uuid.UUID) -> None:
        with self._session_factory() as db:
            u = db.get(AuthUser, user_id)
            if not u:
                raise ProviderError(MSG_USER_NOT_FOUND)
            db.execute(delete(OneTimeCode).where(OneTimeCode.user_id == user_id))
            db.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
            db.delete(u)
            db.commit()

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[Identity]:
        with self._session_factory() as db:
            u = db.get(AuthUser, user_id)
            return _identity(u) if u else None

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _issue_code(self, db: Session, u: AuthUser, purpose: str) -> str:
        now = _now()
        # a new code supersedes any outstanding one
        db.execute(
            update(OneTimeCode)
            .where(
                OneTimeCode.user_id == u.id,
                OneTimeCode.purpose == purpose,
                OneTimeCode.consumed_at.is_(None),
            )
            .values(consumed_at=now)
        )
        code = generate_code(self.settings.otp_length)
        db.add(
            OneTimeCode(
                user_id=u.id,
                purpose=purpose,
                code_hash=hash_secret(code),
                created_at=now,
                expires_at=now + timedelta(minutes=self.settings.otp_expiry_minutes),
            )
        )
        return code

    def _start_session(self, db: Session, u: AuthUser) -> IssuedSession:
        s = AuthSession(user_id=u.id)
        db.add(s)
        u.last_sign_in_at = _now()
        db.flush()

        token = issue_session_token(u.id, s.id, u.email)
        return IssuedSession(access_token=token, session_id=s.id, user=_identity(u))


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider:
    from blooddash.db.session import SessionLocal

    settings = get_settings()
    return IdentityProvider(SessionLocal, build_mailer(settings), settings)

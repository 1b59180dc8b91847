#blooddash/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from blooddash.api.v1.common import ok
from blooddash.auth.provider import IdentityProvider, get_identity_provider
from blooddash.core.auth_deps import get_actor_db, get_current_principal
from blooddash.db.session import get_db
from blooddash.policies.membership_policy import find_membership
from blooddash.policies.rbac import Principal
from blooddash.schemas.auth import LoginForm, OtpRequestForm, OtpVerifyForm, SignupForm
from blooddash.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


def get_auth_service(provider: IdentityProvider = Depends(get_identity_provider)) -> AuthService:
    return AuthService(provider)


@router.post("/signup")
def signup(
    form: SignupForm,
    db: Session = Depends(get_actor_db),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.signup(db, form))


@router.post("/login")
def login(
    form: LoginForm,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.login(db, form))


@router.post("/otp/send")
def send_otp(form: OtpRequestForm, service: AuthService = Depends(get_auth_service)):
    return ok(service.send_otp(form))


@router.post("/otp/verify")
def verify_otp(
    form: OtpVerifyForm,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.verify_otp(db, form))


@router.get("/confirm")
def confirm_email(
    email: str = Query(""),
    token: str = Query(""),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.confirm_email(db, email, token))


@router.post("/logout")
def logout(
    principal: Principal = Depends(get_current_principal),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.sign_out(principal))


@router.get("/me")
def me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    m = find_membership(db, principal.user_id)
    return ok({
        "userId": str(principal.user_id),
        "email": principal.email,
        "role": m.role if m else None,
        "centerId": str(m.center_id) if m else None,
    })

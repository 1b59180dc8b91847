import uuid
from datetime import datetime, timezone

from jose import jwt
from sqlalchemy import select

from blooddash.auth.models import AuthSession, AuthUser
from blooddash.core.config import get_settings
from blooddash.core.errors import NO_CENTER_ASSIGNED
from blooddash.tests.helpers import API, auth, signup, signup_and_login, token_of


def test_login_before_confirmation_is_refused(client):
    signup(client)

    r = client.post(f"{API}/auth/login", json={"email": "admin@bank.lk", "password": "secret123"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email not confirmed"


def test_login_with_wrong_password(client, mailer):
    signup_and_login(client, mailer)

    r = client.post(f"{API}/auth/login", json={"email": "admin@bank.lk", "password": "nope-nope"})
    assert r.status_code == 400
    assert r.json() == {"data": None, "error": "Invalid login credentials"}


def test_login_requires_email_and_password(client):
    r = client.post(f"{API}/auth/login", json={"email": "admin@bank.lk"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email and password are required"


def test_password_login_returns_role_and_center(client, mailer):
    data = signup_and_login(client, mailer)

    assert data["redirectTo"] == "/dashboard"
    assert data["role"] == "admin"
    assert data["centerId"]

    me = client.get(f"{API}/auth/me", headers=auth(token_of(data)))
    assert me.status_code == 200
    assert me.json()["data"]["centerId"] == data["centerId"]


def test_login_without_membership_terminates_session(client, provider, db):
    provider.sign_up("lonely@bank.lk", "secret123")
    u = db.execute(select(AuthUser).where(AuthUser.email == "lonely@bank.lk")).scalar_one()
    u.email_confirmed_at = datetime.now(timezone.utc)
    db.commit()

    r = client.post(f"{API}/auth/login", json={"email": "lonely@bank.lk", "password": "secret123"})

    assert r.status_code == 403
    assert r.json() == {"data": None, "error": NO_CENTER_ASSIGNED}

    sessions = db.execute(select(AuthSession).where(AuthSession.user_id == u.id)).scalars().all()
    assert len(sessions) == 1
    assert sessions[0].revoked_at is not None


def test_otp_login(client, mailer):
    signup_and_login(client, mailer, email="otp@bank.lk")

    r = client.post(f"{API}/auth/otp/send", json={"email": "otp@bank.lk"})
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "OTP sent to your email"

    code = mailer.last_code("otp@bank.lk")
    r = client.post(f"{API}/auth/otp/verify", json={"email": "otp@bank.lk", "token": code})
    assert r.status_code == 200, r.text
    assert r.json()["data"]["role"] == "admin"

    # codes are single use
    again = client.post(f"{API}/auth/otp/verify", json={"email": "otp@bank.lk", "token": code})
    assert again.status_code == 400
    assert again.json()["error"] == "Token has expired or is invalid"


def test_otp_for_unknown_email_does_not_create_user(client, db):
    r = client.post(f"{API}/auth/otp/send", json={"email": "nobody@bank.lk"})
    assert r.status_code == 400
    assert r.json()["error"] == "Signups not allowed for otp"
    assert db.execute(select(AuthUser)).first() is None


def test_otp_login_honours_membership_check(client, provider, mailer):
    provider.sign_up("nomember@bank.lk", "secret123")
    client.post(f"{API}/auth/otp/send", json={"email": "nomember@bank.lk"})

    code = mailer.last_code("nomember@bank.lk")
    r = client.post(f"{API}/auth/otp/verify", json={"email": "nomember@bank.lk", "token": code})

    assert r.status_code == 403
    assert r.json()["error"] == NO_CENTER_ASSIGNED


def test_logout_revokes_token(client, mailer):
    token = token_of(signup_and_login(client, mailer))

    r = client.post(f"{API}/auth/logout", headers=auth(token))
    assert r.status_code == 200
    assert r.json()["data"]["redirectTo"] == "/login"

    me = client.get(f"{API}/auth/me", headers=auth(token))
    assert me.status_code == 401
    assert me.json()["error"] == "Not authenticated"


def test_malformed_tokens_are_rejected(client, provider):
    garbage = jwt.encode({"sub": "x"}, "wrong-key", algorithm="HS256")
    no_session = jwt.encode({"sub": str(uuid.uuid4())}, get_settings().jwt_secret_key, algorithm="HS256")

    for token in ("not-a-jwt", garbage, no_session):
        assert provider.get_user(token) is None
        assert client.get(f"{API}/auth/me", headers=auth(token)).status_code == 401

import re

from blooddash.auth.mailer import Mailer
from blooddash.core.config import get_settings

API = get_settings().api_prefix


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []

    def send(self, to: str, subject: str, body: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "body": body})
        return True

    def last_code(self, to: str) -> str:
        for m in reversed(self.sent):
            if m["to"] == to.lower():
                return re.search(r"code (?:is )?(\d+)", m["body"]).group(1)
        raise AssertionError(f"no mail sent to {to}")


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client, *, role="blood_bank", email="admin@bank.lk", password="secret123", **fields):
    body = {"role": role, "email": email, "password": password}
    if role == "blood_bank":
        body["center_name"] = fields.pop("center_name", "Colombo Blood Bank")
        body["district"] = fields.pop("district", "Colombo")
    body.update(fields)
    return client.post(f"{API}/auth/signup", json=body)


def signup_and_login(client, mailer, *, email="admin@bank.lk", password="secret123", **fields):
    """
    Full signup -> confirm -> login round. Returns the login payload
    (redirectTo, role, centerId, session).
    """
    r = signup(client, email=email, password=password, **fields)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["requiresEmailConfirmation"] is True

    code = mailer.last_code(email)
    r = client.get(f"{API}/auth/confirm", params={"email": email, "token": code})
    assert r.status_code == 200, r.text

    r = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def token_of(login: dict) -> str:
    return login["session"]["access_token"]

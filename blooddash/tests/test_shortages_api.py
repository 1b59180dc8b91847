from sqlalchemy import select

from blooddash.models.shortage import Shortage
from blooddash.tests.helpers import API, auth, signup_and_login, token_of


def _admin_and_editor(client, mailer):
    admin = signup_and_login(client, mailer, email="admin@bank.lk")
    editor = signup_and_login(
        client, mailer, role="official", email="editor@gov.lk", center_id=admin["centerId"]
    )
    return admin, editor


def test_editor_can_create_and_update(client, mailer):
    admin, editor = _admin_and_editor(client, mailer)
    assert editor["role"] == "editor"

    r = client.post(
        f"{API}/shortages",
        json={"blood_type": "O-", "status": "critical", "notes": "urgent"},
        headers=auth(token_of(editor)),
    )
    assert r.status_code == 200, r.text
    created = r.json()["data"]
    assert created["center_id"] == admin["centerId"]

    r = client.patch(
        f"{API}/shortages/{created['id']}",
        json={"blood_type": "O-", "status": "low", "notes": ""},
        headers=auth(token_of(editor)),
    )
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "low"
    assert r.json()["data"]["notes"] is None


def test_non_admin_delete_is_refused_and_nothing_is_deleted(client, mailer, db):
    admin, editor = _admin_and_editor(client, mailer)
    r = client.post(f"{API}/shortages", json={"blood_type": "A+"}, headers=auth(token_of(admin)))
    sid = r.json()["data"]["id"]

    r = client.delete(f"{API}/shortages/{sid}", headers=auth(token_of(editor)))

    assert r.status_code == 403
    assert r.json() == {"data": None, "error": "Only admins can delete shortages"}
    assert len(db.execute(select(Shortage)).scalars().all()) == 1


def test_admin_can_delete(client, mailer, db):
    admin = signup_and_login(client, mailer)
    sid = client.post(f"{API}/shortages", json={"blood_type": "B+"}, headers=auth(token_of(admin))).json()["data"]["id"]

    r = client.delete(f"{API}/shortages/{sid}", headers=auth(token_of(admin)))

    assert r.status_code == 200
    assert db.execute(select(Shortage)).first() is None


def test_admin_cannot_touch_other_centers(client, mailer):
    a = signup_and_login(client, mailer, email="a@bank.lk", center_name="A", district="Colombo")
    b = signup_and_login(client, mailer, email="b@bank.lk", center_name="B", district="Kandy")
    sid = client.post(f"{API}/shortages", json={"blood_type": "B+"}, headers=auth(token_of(a))).json()["data"]["id"]

    r = client.delete(f"{API}/shortages/{sid}", headers=auth(token_of(b)))
    assert r.status_code == 403
    assert r.json()["error"] == "You can only delete shortages for your own center"

    r = client.patch(f"{API}/shortages/{sid}", json={"blood_type": "B+", "status": "low"}, headers=auth(token_of(b)))
    assert r.status_code == 403


def test_invalid_blood_type_and_status(client, mailer):
    token = token_of(signup_and_login(client, mailer))

    r = client.post(f"{API}/shortages", json={"blood_type": "C+"}, headers=auth(token))
    assert r.status_code == 400
    assert r.json()["error"].startswith("Blood type must be one of")

    r = client.post(f"{API}/shortages", json={"blood_type": "O+", "status": "urgent"}, headers=auth(token))
    assert r.status_code == 400
    assert r.json()["error"] == "Status must be one of critical, low, normal"


def test_create_requires_authentication(client):
    r = client.post(f"{API}/shortages", json={"blood_type": "O+"})
    assert r.status_code == 401
    assert r.json() == {"data": None, "error": "Not authenticated"}


def test_update_missing_shortage(client, mailer):
    token = token_of(signup_and_login(client, mailer))
    r = client.patch(
        f"{API}/shortages/6f1c1a0e-0c3b-4bb5-9d8e-3f0f4c9a1b2c",
        json={"blood_type": "O+", "status": "low"},
        headers=auth(token),
    )
    assert r.status_code == 404
    assert r.json()["error"] == "Shortage not found"


def test_listing_filters_and_by_center(client, mailer):
    admin = signup_and_login(client, mailer, district="Kandy", center_name="Kandy GH")
    token = token_of(admin)
    client.post(f"{API}/shortages", json={"blood_type": "O-", "status": "critical"}, headers=auth(token))
    client.post(f"{API}/shortages", json={"blood_type": "A+", "status": "normal"}, headers=auth(token))

    r = client.get(f"{API}/shortages", params={"status": "critical"})
    rows = r.json()["data"]
    assert [s["blood_type"] for s in rows] == ["O-"]
    assert rows[0]["centers"]["district"] == "Kandy"

    r = client.get(f"{API}/shortages", params={"district": "Kandy", "bloodType": "all"})
    assert len(r.json()["data"]) == 2

    r = client.get(f"{API}/centers/{admin['centerId']}/shortages")
    assert {s["blood_type"] for s in r.json()["data"]} == {"O-", "A+"}


def test_officials_are_admin_only(client, mailer):
    admin, editor = _admin_and_editor(client, mailer)
    center_id = admin["centerId"]

    r = client.get(f"{API}/centers/{center_id}/officials", headers=auth(token_of(editor)))
    assert r.status_code == 403
    assert r.json()["error"] == "Only admins can view officials"

    r = client.get(f"{API}/centers/{center_id}/officials", headers=auth(token_of(admin)))
    assert r.status_code == 200
    assert sorted(m["role"] for m in r.json()["data"]) == ["admin", "editor"]


def test_me_center(client, mailer):
    admin = signup_and_login(client, mailer, center_name="Galle Bank", district="Galle")

    r = client.get(f"{API}/me/center", headers=auth(token_of(admin)))
    assert r.status_code == 200
    assert r.json()["data"]["centers"]["name"] == "Galle Bank"

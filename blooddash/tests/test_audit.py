from sqlalchemy import select

from blooddash.db.triggers import bind_actor
from blooddash.models.audit_log import AuditLog
from blooddash.models.center import Center
from blooddash.models.shortage import Shortage
from blooddash.tests.helpers import API, auth, signup_and_login, token_of


def test_triggers_write_audit_rows_for_shortage_changes(db):
    c = Center(name="NBC", district="Colombo")
    db.add(c)
    db.commit()

    bind_actor(db, None, "10.0.0.7")
    s = Shortage(center_id=c.id, blood_type="O-", status="critical")
    db.add(s)
    db.commit()

    assert s.status == "critical"
    s.status = "low"
    db.commit()

    db.delete(s)
    db.commit()

    rows = db.execute(
        select(AuditLog).where(AuditLog.table_name == "shortages").order_by(AuditLog.timestamp.asc())
    ).scalars().all()

    assert [r.action for r in rows] == ["create", "update", "delete"]
    assert all(r.center_id == c.id for r in rows)
    assert rows[0].old_data is None and rows[0].new_data["blood_type"] == "O-"
    assert rows[1].old_data["status"] == "critical" and rows[1].new_data["status"] == "low"
    assert rows[2].new_data is None and rows[2].old_data["status"] == "low"
    assert rows[1].ip_address == "10.0.0.7"


def test_unchanged_update_writes_nothing(db):
    c = Center(name="NBC", district="Colombo")
    db.add(c)
    db.commit()

    assert c.name == "NBC"
    c.name = "NBC"
    db.commit()

    actions = db.execute(select(AuditLog.action).where(AuditLog.table_name == "centers")).scalars().all()
    assert actions == ["create"]


def test_api_writes_are_attributed_to_caller(client, mailer, db):
    admin = signup_and_login(client, mailer)
    client.post(f"{API}/shortages", json={"blood_type": "AB-", "status": "critical"}, headers=auth(token_of(admin)))

    row = db.execute(
        select(AuditLog).where(AuditLog.table_name == "shortages", AuditLog.action == "create")
    ).scalar_one()
    assert str(row.user_id) == admin["session"]["user_id"]


def test_admin_sees_audit_logs_newest_first(client, mailer):
    admin = signup_and_login(client, mailer)
    token = token_of(admin)
    sid = client.post(f"{API}/shortages", json={"blood_type": "A-"}, headers=auth(token)).json()["data"]["id"]
    client.patch(f"{API}/shortages/{sid}", json={"blood_type": "A-", "status": "critical"}, headers=auth(token))

    r = client.get(f"{API}/dashboard/audit", headers=auth(token))
    assert r.status_code == 200, r.text
    data = r.json()["data"]

    shortage_rows = [l for l in data["logs"] if l["table_name"] == "shortages"]
    assert [l["action"] for l in shortage_rows] == ["update", "create"]
    assert shortage_rows[0]["centers"]["name"] == "Colombo Blood Bank"
    assert [c["name"] for c in data["centers"]] == ["Colombo Blood Bank"]

    r = client.get(f"{API}/dashboard/audit", params={"action": "create", "centerId": "all"}, headers=auth(token))
    assert {l["action"] for l in r.json()["data"]["logs"]} == {"create"}


def test_audit_filters_validate_input(client, mailer):
    token = token_of(signup_and_login(client, mailer))

    r = client.get(f"{API}/dashboard/audit", params={"action": "truncate"}, headers=auth(token))
    assert r.status_code == 400

    r = client.get(f"{API}/dashboard/audit", params={"startDate": "yesterday"}, headers=auth(token))
    assert r.status_code == 400
    assert r.json()["error"] == "startDate must be an ISO date or datetime"

    r = client.get(f"{API}/dashboard/audit", params={"startDate": "2099-01-01"}, headers=auth(token))
    assert r.json()["data"]["logs"] == []


def test_non_admin_is_refused_audit_logs(client, mailer):
    admin = signup_and_login(client, mailer)
    editor = signup_and_login(client, mailer, role="official", email="ed@gov.lk", center_id=admin["centerId"])

    r = client.get(f"{API}/dashboard/audit", headers=auth(token_of(editor)))

    assert r.status_code == 403
    assert r.json() == {"data": None, "error": "Only admins can view audit logs"}

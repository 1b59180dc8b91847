from blooddash.core.errors import NO_CENTER_ASSIGNED
from blooddash.tests.helpers import API, auth, signup_and_login, token_of


def _seed(client, mailer):
    kandy = signup_and_login(client, mailer, email="k@bank.lk", center_name="Kandy GH", district="Kandy")
    colombo = signup_and_login(client, mailer, email="c@bank.lk", center_name="NBC", district="Colombo")
    client.post(f"{API}/shortages", json={"blood_type": "O-", "status": "critical"}, headers=auth(token_of(kandy)))
    client.post(f"{API}/shortages", json={"blood_type": "A+", "status": "normal"}, headers=auth(token_of(colombo)))
    return kandy, colombo


def test_public_listing_composes_filters(client, mailer):
    _seed(client, mailer)

    page = client.get(f"{API}/public").json()["data"]
    assert page["total"] == 2
    assert page["districts"] == ["Colombo", "Kandy"]
    assert page["criticalCount"] == 1
    assert page["showBanner"] is True
    assert page["hasFilters"] is False

    page = client.get(f"{API}/public", params={"status": "critical", "district": "Colombo"}).json()["data"]
    assert page["matched"] == 0
    assert page["showBanner"] is False

    page = client.get(f"{API}/public", params={"q": "o+", "bloodType": "all"}).json()["data"]
    assert page["matched"] == 0

    page = client.get(f"{API}/public", params={"q": "nbc"}).json()["data"]
    assert [s["blood_type"] for s in page["shortages"]] == ["A+"]


def test_public_listing_is_revalidated_after_writes(client, mailer):
    kandy, _ = _seed(client, mailer)
    assert client.get(f"{API}/public").json()["data"]["total"] == 2

    client.post(f"{API}/shortages", json={"blood_type": "B-", "status": "low"}, headers=auth(token_of(kandy)))

    page = client.get(f"{API}/public").json()["data"]
    assert page["total"] == 3
    assert page["lowCount"] == 1


def test_empty_public_listing(client):
    page = client.get(f"{API}/public").json()["data"]
    assert page["shortages"] == []
    assert page["emptyMessage"] == "No blood shortages reported at this time."


def test_dashboard_for_admin_includes_officials(client, mailer):
    kandy, _ = _seed(client, mailer)
    signup_and_login(client, mailer, role="official", email="ed@gov.lk", center_id=kandy["centerId"])

    data = client.get(f"{API}/dashboard", headers=auth(token_of(kandy))).json()["data"]

    assert data["isAdmin"] is True
    assert data["center"]["name"] == "Kandy GH"
    assert [s["blood_type"] for s in data["shortages"]] == ["O-"]
    assert len(data["officials"]) == 2
    assert data["membership"]["role"] == "admin"


def test_dashboard_for_editor_hides_officials(client, mailer):
    kandy, _ = _seed(client, mailer)
    editor = signup_and_login(client, mailer, role="official", email="ed@gov.lk", center_id=kandy["centerId"])

    data = client.get(f"{API}/dashboard", headers=auth(token_of(editor))).json()["data"]

    assert data["isAdmin"] is False
    assert data["officials"] is None
    assert data["criticalCount"] == 1


def test_dashboard_without_membership(client, provider):
    provider.settings = provider.settings.model_copy(update={"auth_require_email_confirmation": False})
    created = provider.sign_up("orphan@bank.lk", "secret123")

    r = client.get(f"{API}/dashboard", headers=auth(created.session.access_token))

    assert r.status_code == 403
    assert r.json()["error"] == NO_CENTER_ASSIGNED


def test_dashboard_requires_login(client):
    assert client.get(f"{API}/dashboard").status_code == 401


def test_health_echoes_request_id(client):
    r = client.get(f"{API}/health", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["request_id"] == "abc-123"
    assert r.headers["X-Request-Id"] == "abc-123"

"""
assettrack/test_asset_routes.py

HTTP tests for the scan flow: challenge, verification, asset-scoped
sessions, scan recording and the JSON API.

Run: pytest assettrack/test_asset_routes.py -v
"""

from fastapi.testclient import TestClient


def scan_count(tracker, name="desk-1") -> int:
    return tracker.registry.require(name).scan_count


def verify(client, name="desk-1", password="pw", **kwargs):
    return client.post(f"/asset/verify/{name}", data={"password": password}, **kwargs)


class TestScanFlow:
    """Create -> anonymous view -> challenge -> verify -> recorded scan -> admin scan."""

    def test_full_flow(self, app, admin_client, create_asset, tracker):
        assert create_asset("desk-1", "pw").status_code == 200
        assert len(tracker.registry) == 1

        visitor = TestClient(app, headers={"User-Agent": "PhoneCam/1.0"})

        # Plain view: informational, nothing recorded
        resp = visitor.get("/asset/desk-1")
        assert resp.status_code == 200
        assert "Scanned 0 time(s)" in resp.text
        assert scan_count(tracker) == 0

        # Scan-flagged view without a session: challenge, nothing recorded
        resp = visitor.get("/asset/desk-1?scan=true")
        assert resp.status_code == 200
        assert "Enter the password for desk-1" in resp.text
        assert scan_count(tracker) == 0

        # Correct secret: asset-scoped cookie + redirect, still nothing recorded
        resp = verify(visitor, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/asset/desk-1?scan=true"
        set_cookie = resp.headers["set-cookie"]
        assert "assetSessionId=" in set_cookie
        assert "Path=/asset/desk-1" in set_cookie
        assert "HttpOnly" in set_cookie
        assert scan_count(tracker) == 0

        # Following the redirect records exactly one scan
        resp = visitor.get(resp.headers["location"])
        assert resp.status_code == 200
        assert "Scanned 1 time(s)" in resp.text
        assert scan_count(tracker) == 1
        assert tracker.registry.require("desk-1").last_scan.device == "PhoneCam/1.0"

        # Wrong secret: 401 challenge, history unchanged
        other = TestClient(app)
        resp = verify(other, password="wrong")
        assert resp.status_code == 401
        assert "Incorrect password" in resp.text
        assert scan_count(tracker) == 1

        # Admin scan: no prompt, recorded
        resp = admin_client.get("/asset/desk-1?scan=true")
        assert resp.status_code == 200
        assert "Enter the password" not in resp.text
        assert scan_count(tracker) == 2

    def test_verify_then_follow_redirect_records_once(self, app, admin_client, create_asset, tracker):
        create_asset()
        visitor = TestClient(app)

        resp = verify(visitor)

        assert resp.status_code == 200
        assert scan_count(tracker) == 1

    def test_verified_visitor_records_every_scan(self, app, admin_client, create_asset, tracker):
        create_asset()
        visitor = TestClient(app)
        verify(visitor)

        visitor.get("/asset/desk-1?scan=true")
        visitor.get("/asset/desk-1?scan=true")
        # Unflagged views never record
        visitor.get("/asset/desk-1")

        assert scan_count(tracker) == 3

    def test_admin_plain_view_does_not_record(self, admin_client, create_asset, tracker):
        create_asset()
        admin_client.get("/asset/desk-1")
        admin_client.get("/asset/desk-1?scan=false")
        assert scan_count(tracker) == 0

    def test_blank_secret_is_rejected(self, app, admin_client, create_asset, tracker):
        create_asset()
        resp = verify(TestClient(app), password="")
        assert resp.status_code == 400
        assert "Please enter the asset password" in resp.text
        assert scan_count(tracker) == 0

    def test_session_for_one_asset_does_not_open_another(self, app, admin_client, create_asset, tracker):
        create_asset("asset-a", "pw-a")
        create_asset("asset-b", "pw-b")

        resp = verify(TestClient(app), "asset-a", "pw-a", follow_redirects=False)
        token = resp.cookies.get("assetSessionId")
        assert token

        # Present A's token for B explicitly
        replay = TestClient(app)
        resp = replay.get("/asset/asset-b?scan=true", headers={"Cookie": f"assetSessionId={token}"})

        assert resp.status_code == 200
        assert "Enter the password for asset-b" in resp.text
        assert scan_count(tracker, "asset-b") == 0

        # The same token still works for A
        resp = replay.get("/asset/asset-a?scan=true", headers={"Cookie": f"assetSessionId={token}"})
        assert "Scanned 1 time(s)" in resp.text

    def test_secret_for_another_asset_fails(self, app, admin_client, create_asset, tracker):
        create_asset("asset-a", "pw-a")
        create_asset("asset-b", "pw-b")

        resp = verify(TestClient(app), "asset-b", "pw-a")

        assert resp.status_code == 401
        assert scan_count(tracker, "asset-b") == 0

    def test_secret_change_revokes_asset_sessions(self, app, admin_client, create_asset, tracker):
        create_asset()
        visitor = TestClient(app)
        verify(visitor)
        assert scan_count(tracker) == 1

        resp = admin_client.post("/change-password/desk-1", data={"newPassword": "new-pw"})
        assert resp.status_code == 200

        resp = visitor.get("/asset/desk-1?scan=true")
        assert "Enter the password for desk-1" in resp.text
        assert verify(visitor, password="pw").status_code == 401
        assert verify(visitor, password="new-pw").status_code == 200
        assert scan_count(tracker) == 2


class TestUnknownAssets:
    def test_detail_view_404(self, client):
        resp = client.get("/asset/ghost?scan=true")
        assert resp.status_code == 404
        assert "Asset not found" in resp.text

    def test_verify_404(self, client):
        assert verify(client, "ghost").status_code == 404

    def test_api_404_body(self, client):
        resp = client.get("/api/asset/ghost")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Asset not found", "id": "ghost"}


class TestApi:
    def test_api_record_without_secret(self, app, admin_client, create_asset, client):
        create_asset("desk-1", "pw", id="A-001", department="IT", desktopSetupDate="2024-01-15")
        verify(TestClient(app))

        resp = client.get("/api/asset/desk-1")

        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == "A-001"
        assert data["name"] == "desk-1"
        assert data["department"] == "IT"
        assert data["desktopSetupDate"] == "2024-01-15"
        assert data["scanCount"] == 1
        assert len(data["scanHistory"]) == 1
        assert "assetPassword" not in data
        assert "secret_hash" not in data
        assert "$2" not in resp.text

    def test_api_never_records(self, admin_client, create_asset, client, tracker):
        create_asset()
        client.get("/api/asset/desk-1")
        assert scan_count(tracker) == 0


class TestNamesNeedingEscapes:
    def test_space_in_name(self, admin_client, create_asset, client, tracker):
        assert create_asset("Desk 7", "pw").status_code == 200

        resp = client.get("/asset/Desk%207")

        assert resp.status_code == 200
        assert "Desk 7" in resp.text
        assert tracker.registry.get("Desk 7") is not None

    def test_verify_redirect_is_escaped(self, app, admin_client, create_asset):
        create_asset("Desk 7", "pw")
        resp = verify(TestClient(app), "Desk%207", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/asset/Desk%207?scan=true"


class TestScanPage:
    def test_scan_page_public(self, client):
        resp = client.get("/scan")
        assert resp.status_code == 200
        assert "jsQR" in resp.text

"""
Shared fixtures: every test gets its own app, registry snapshot and
session table, so nothing leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from assettrack.application import create_app
from assettrack.credentials import CredentialStore
from assettrack.registry import AssetRegistry
from assettrack.store import SnapshotStore

ADMIN_ID = "admin"
ADMIN_PASSWORD = "s3cret-admin"

# Lowest cost bcrypt accepts; keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "assets.json"


@pytest.fixture
def credentials():
    return CredentialStore(admin_id=ADMIN_ID, admin_password=ADMIN_PASSWORD, rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def registry(data_file, credentials):
    reg = AssetRegistry(SnapshotStore(data_file), credentials)
    reg.load()
    return reg


@pytest.fixture
def app(data_file):
    return create_app(
        data_file=data_file,
        admin_id=ADMIN_ID,
        admin_password=ADMIN_PASSWORD,
        base_url="http://testserver",
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )


@pytest.fixture
def tracker(app):
    return app.state.tracker


@pytest.fixture
def client(app):
    """Anonymous client (empty cookie jar)."""
    return TestClient(app)


@pytest.fixture
def admin_client(app):
    """Client holding an admin session cookie."""
    c = TestClient(app)
    resp = c.post("/login", data={"id": ADMIN_ID, "password": ADMIN_PASSWORD}, follow_redirects=False)
    assert resp.status_code == 303, f"Login failed: {resp.text}"
    return c


@pytest.fixture
def create_asset(admin_client):
    """Submit the create form as the admin; returns the response."""
    def _create(name="desk-1", secret="pw", **fields):
        form = {
            "id": fields.get("id", f"ID-{name}"),
            "name": name,
            "location": fields.get("location", "Floor 2"),
            "department": fields.get("department", ""),
            "desktopSetupDate": fields.get("desktopSetupDate", ""),
            "assetPassword": secret,
        }
        return admin_client.post("/generate", data=form)

    return _create

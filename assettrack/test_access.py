"""
assettrack/test_access.py

Access gate: caller classification, the decision table and the scan
recorder's once-per-request rule.

Run: pytest assettrack/test_access.py -v
"""

import pytest
from starlette.requests import Request

from assettrack.auth_context import CredentialCarrier, classify
from assettrack.authz import (
    ANONYMOUS,
    DECISION_TABLE,
    AccessContext,
    AccessState,
    Decision,
    Operation,
    decide,
    detail_operation,
)
from assettrack.scan_recorder import ScanRecorder, device_descriptor
from assettrack.sessions import SessionTable

FIELDS = {"id": "A-001", "location": "Floor 2"}


def make_request(user_agent=None) -> Request:
    headers = [(b"user-agent", user_agent.encode())] if user_agent else []
    return Request({"type": "http", "method": "GET", "path": "/asset/desk-1", "query_string": b"", "headers": headers})


class TestClassify:
    def test_no_tokens_is_anonymous(self):
        assert classify(CredentialCarrier(), SessionTable(), "desk-1") == ANONYMOUS

    def test_admin_token_is_admin(self):
        table = SessionTable()
        carrier = CredentialCarrier(admin=table.create_admin_session())
        assert classify(carrier, table, "desk-1").state is AccessState.ADMIN
        assert classify(carrier, table).is_admin

    def test_asset_token_for_same_asset(self):
        table = SessionTable()
        carrier = CredentialCarrier(asset=table.create_asset_session("desk-1"))

        ctx = classify(carrier, table, "desk-1")

        assert ctx.state is AccessState.ASSET_VERIFIED
        assert ctx.asset_name == "desk-1"
        assert ctx.is_verified_for_asset

    def test_asset_token_for_other_asset_is_anonymous(self):
        table = SessionTable()
        carrier = CredentialCarrier(asset=table.create_asset_session("desk-1"))
        assert classify(carrier, table, "desk-2") == ANONYMOUS

    def test_asset_token_without_target_asset_is_anonymous(self):
        table = SessionTable()
        carrier = CredentialCarrier(asset=table.create_asset_session("desk-1"))
        assert classify(carrier, table) == ANONYMOUS

    def test_tokens_in_the_wrong_slot_grant_nothing(self):
        table = SessionTable()
        admin_token = table.create_admin_session()
        asset_token = table.create_asset_session("desk-1")

        assert classify(CredentialCarrier(admin=asset_token), table, "desk-1") == ANONYMOUS
        assert classify(CredentialCarrier(asset=admin_token), table, "desk-1") == ANONYMOUS

    def test_destroyed_session_is_anonymous(self):
        table = SessionTable()
        token = table.create_admin_session()
        table.destroy(token)
        assert classify(CredentialCarrier(admin=token), table) == ANONYMOUS


class TestDecisionTable:
    def test_every_pair_is_covered(self):
        assert len(DECISION_TABLE) == len(Operation) * len(AccessState)

    @pytest.mark.parametrize(
        "state,operation,expected",
        [
            (AccessState.ANONYMOUS, Operation.MANAGE_ASSETS, Decision.DENY),
            (AccessState.ASSET_VERIFIED, Operation.MANAGE_ASSETS, Decision.DENY),
            (AccessState.ADMIN, Operation.MANAGE_ASSETS, Decision.ALLOW),
            (AccessState.ANONYMOUS, Operation.VIEW_ASSET, Decision.ALLOW),
            (AccessState.ANONYMOUS, Operation.VIEW_ASSET_SCAN, Decision.CHALLENGE),
            (AccessState.ASSET_VERIFIED, Operation.VIEW_ASSET_SCAN, Decision.RECORD),
            (AccessState.ADMIN, Operation.VIEW_ASSET_SCAN, Decision.RECORD),
            (AccessState.ANONYMOUS, Operation.VERIFY_SECRET, Decision.VERIFY),
        ],
    )
    def test_decisions(self, state, operation, expected):
        assert decide(AccessContext(state, "desk-1" if state is AccessState.ASSET_VERIFIED else None), operation) is expected

    def test_detail_operation(self):
        assert detail_operation(True) is Operation.VIEW_ASSET_SCAN
        assert detail_operation(False) is Operation.VIEW_ASSET


class TestScanRecorder:
    def test_device_descriptor(self):
        assert device_descriptor(make_request("Mozilla/5.0 (Android)")) == "Mozilla/5.0 (Android)"
        assert device_descriptor(make_request()) == "Unknown Device"

    @pytest.mark.parametrize("decision", [Decision.ALLOW, Decision.CHALLENGE, Decision.DENY, Decision.VERIFY])
    def test_only_record_decision_records(self, registry, decision):
        registry.create("desk-1", FIELDS, "pw")
        recorder = ScanRecorder(registry)

        assert recorder.record_if_qualified(make_request("phone"), "desk-1", decision) is None
        assert registry.require("desk-1").scan_count == 0

    def test_records_once_per_request(self, registry):
        registry.create("desk-1", FIELDS, "pw")
        recorder = ScanRecorder(registry)
        request = make_request("phone")

        first = recorder.record_if_qualified(request, "desk-1", Decision.RECORD)
        second = recorder.record_if_qualified(request, "desk-1", Decision.RECORD)

        assert first is not None and first.device == "phone"
        assert second is None
        assert registry.require("desk-1").scan_count == 1

        # A separate request records again
        recorder.record_if_qualified(make_request("phone"), "desk-1", Decision.RECORD)
        assert registry.require("desk-1").scan_count == 2

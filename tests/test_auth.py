"""Tests for authorization gates."""

import time

import jwt
import pytest

from usps_tracking.auth import CapabilityGate, TokenGate
from usps_tracking.config import TrackingConfig
from usps_tracking.models import ActionType, Caller, STAFF_ACTIONS


@pytest.fixture
def gate():
    return CapabilityGate("manage_woocommerce")


@pytest.fixture
def token_gate():
    return TokenGate(TrackingConfig(auth_secret="test-secret", auth_token_ttl=60))


class TestCapabilityGate:
    """Tests for CapabilityGate."""

    @pytest.mark.parametrize("action", list(ActionType))
    def test_staff_allowed_everything(self, gate, staff, action):
        assert gate.is_authorized(staff, action) is True

    @pytest.mark.parametrize("action", sorted(STAFF_ACTIONS))
    def test_customer_denied_staff_actions(self, gate, customer, store, action):
        assert gate.is_authorized(customer, action, store.get("1001")) is False

    def test_customer_views_own_order(self, gate, customer, store):
        assert gate.is_authorized(customer, ActionType.VIEW_ORDER, store.get("1001")) is True

    def test_customer_view_needs_order(self, gate, customer):
        assert gate.is_authorized(customer, ActionType.VIEW_ORDER) is False

    def test_anonymous_denied(self, gate, store):
        assert gate.is_authorized(None, ActionType.VIEW_ORDER, store.get("1001")) is False

    def test_custom_capability(self, staff):
        gate = CapabilityGate("edit_shop_orders")
        assert gate.is_authorized(staff, ActionType.ADD_NUMBER) is False


class TestTokenGate:
    """Tests for TokenGate."""

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            TokenGate(TrackingConfig(auth_secret=""))

    def test_issue_and_verify(self, token_gate, staff):
        caller = token_gate.verify(token_gate.issue(staff))

        assert caller.caller_id == "staff-1"
        assert caller.capabilities == ["manage_woocommerce"]

    def test_missing_token(self, token_gate):
        assert token_gate.verify(None) is None
        assert token_gate.verify("") is None

    def test_wrong_secret(self, token_gate, staff):
        other = TokenGate(TrackingConfig(auth_secret="another-secret"))
        assert token_gate.verify(other.issue(staff)) is None

    def test_expired_token(self, token_gate):
        token = jwt.encode(
            {"sub": "staff-1", "capabilities": [], "exp": 1},
            "test-secret",
            algorithm="HS256",
        )
        assert token_gate.verify(token) is None

    def test_garbage_token(self, token_gate):
        assert token_gate.verify("not.a.token") is None

    @pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
    @pytest.mark.parametrize("tz", ["America/New_York", "Asia/Tokyo", "UTC"])
    def test_round_trip_in_local_timezone(self, monkeypatch, staff, tz):
        gate = TokenGate(TrackingConfig(auth_secret="test-secret", auth_token_ttl=60))
        monkeypatch.setenv("TZ", tz)
        time.tzset()
        try:
            caller = gate.verify(gate.issue(staff))
        finally:
            monkeypatch.undo()
            time.tzset()

        assert caller is not None
        assert caller.caller_id == "staff-1"

    def test_claims_use_epoch_seconds(self, token_gate, staff):
        before = int(time.time())
        payload = jwt.decode(
            token_gate.issue(staff), "test-secret", algorithms=["HS256"]
        )

        assert before <= payload["iat"] <= int(time.time())
        assert payload["exp"] - payload["iat"] == 60

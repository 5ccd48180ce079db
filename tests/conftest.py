"""Shared fixtures for tracking tests."""

import pytest

from usps_tracking.auth import CapabilityGate
from usps_tracking.dispatcher import ActionDispatcher
from usps_tracking.models import Caller
from usps_tracking.service import TrackingService
from usps_tracking.store import InMemoryOrderStore
from usps_tracking.tracking import TrackingCollectionManager


@pytest.fixture
def manager():
    """Collection manager with the default USPS URL template."""
    return TrackingCollectionManager()


@pytest.fixture
def store():
    """In-memory store with one order owned by customer-1."""
    store = InMemoryOrderStore()
    store.create("1001", customer_id="customer-1")
    return store


@pytest.fixture
def staff():
    return Caller(caller_id="staff-1", capabilities=["manage_woocommerce"])


@pytest.fixture
def customer():
    return Caller(caller_id="customer-1", capabilities=["read"])


@pytest.fixture
def service(store, manager):
    return TrackingService(store, CapabilityGate(), manager)


@pytest.fixture
def dispatcher(service):
    return ActionDispatcher(service)

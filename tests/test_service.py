"""Tests for the tracking service and action dispatcher."""

import pytest

from usps_tracking.models import ActionRequest, ActionType, ErrorKind
from usps_tracking.store import OrderStoreError


VALID_1 = "9400100000000000000000"
VALID_2 = "9205500000000000000001"
VALID_3 = "EC123456789US1234567"


class CountingStore:
    """Wraps a store and counts writes."""

    def __init__(self, store):
        self._store = store
        self.puts = 0

    def get(self, order_id):
        order = self._store.get(order_id)
        if order is not None:
            order._store = self
        return order

    def put(self, order_id, tracking_numbers):
        self.puts += 1
        self._store.put(order_id, tracking_numbers)

    def create(self, order_id, customer_id=None):
        return self._store.create(order_id, customer_id)


@pytest.fixture
def counting_store(store):
    return CountingStore(store)


@pytest.fixture
def counted_service(counting_store, manager):
    from usps_tracking.auth import CapabilityGate
    from usps_tracking.service import TrackingService

    return TrackingService(counting_store, CapabilityGate(), manager)


class TestAddNumber:
    """Tests for adding a single number through the service."""

    def test_add_persists(self, service, store, staff):
        response = service.add_number("1001", "9400 1000 0000 0000 0000 00", staff)

        assert response.success is True
        assert response.message == "Tracking number added successfully!"
        assert store.get("1001").get_tracking_numbers() == [VALID_1]

    def test_add_saves_once(self, counted_service, counting_store, staff):
        counted_service.add_number("1001", VALID_1, staff)
        assert counting_store.puts == 1

    def test_failure_does_not_save(self, counted_service, counting_store, staff):
        response = counted_service.add_number("1001", "short", staff)

        assert response.success is False
        assert response.error_kind == ErrorKind.INVALID_FORMAT
        assert counting_store.puts == 0

    def test_duplicate(self, service, staff):
        service.add_number("1001", VALID_1, staff)
        response = service.add_number("1001", VALID_1.lower(), staff)

        assert response.error_kind == ErrorKind.DUPLICATE
        assert response.message == "This tracking number already exists."

    def test_empty(self, service, staff):
        response = service.add_number("1001", "", staff)
        assert response.error_kind == ErrorKind.EMPTY_INPUT

    def test_unknown_order(self, service, staff):
        response = service.add_number("9999", VALID_1, staff)
        assert response.error_kind == ErrorKind.ORDER_NOT_FOUND

    def test_customer_cannot_add(self, service, store, customer):
        response = service.add_number("1001", VALID_1, customer)

        assert response.error_kind == ErrorKind.UNAUTHORIZED
        assert store.get("1001").get_tracking_numbers() == []

    def test_anonymous_unknown_order_is_unauthorized(self, service):
        response = service.add_number("9999", VALID_1, None)
        assert response.error_kind == ErrorKind.UNAUTHORIZED


class TestAddBulk:
    """Tests for bulk add through the service."""

    def test_bulk_result(self, service, store, staff):
        response = service.add_bulk("1001", f"{VALID_1}\n{VALID_1},{VALID_2} junk", staff)

        assert response.success is True
        assert response.data == {
            "added": 2,
            "skipped": 1,
            "invalid": 1,
            "errors": [f"Already exists: {VALID_1}", "Invalid format: junk"],
        }
        assert store.get("1001").get_tracking_numbers() == [VALID_1, VALID_2]

    def test_bulk_saves_once(self, counted_service, counting_store, staff):
        counted_service.add_bulk("1001", f"{VALID_1} {VALID_2} {VALID_3}", staff)
        assert counting_store.puts == 1

    def test_nothing_added_does_not_save(self, counted_service, counting_store, staff):
        response = counted_service.add_bulk("1001", "bad another", staff)

        assert response.success is True
        assert response.data["invalid"] == 2
        assert counting_store.puts == 0

    def test_empty_block(self, service, staff):
        response = service.add_bulk("1001", " , \n", staff)
        assert response.error_kind == ErrorKind.EMPTY_INPUT


class TestDeleteNumber:
    """Tests for deleting through the service."""

    def test_delete(self, service, store, staff):
        service.add_bulk("1001", f"{VALID_1} {VALID_2} {VALID_3}", staff)
        response = service.delete_number("1001", 0, staff)

        assert response.success is True
        assert response.message == "Tracking number deleted successfully!"
        assert store.get("1001").get_tracking_numbers() == [VALID_2, VALID_3]

    @pytest.mark.parametrize("index", [5, -1, None])
    def test_index_not_found(self, counted_service, counting_store, staff, index):
        counted_service.add_bulk("1001", f"{VALID_1} {VALID_2} {VALID_3}", staff)
        response = counted_service.delete_number("1001", index, staff)

        assert response.error_kind == ErrorKind.INDEX_NOT_FOUND
        assert counting_store.puts == 1


class TestListing:
    """Tests for staff and customer listings."""

    def test_get_numbers(self, service, staff):
        service.add_number("1001", VALID_3, staff)
        response = service.get_numbers("1001", staff)

        assert response.data == [{
            "index": 0,
            "number": VALID_3,
            "tracking_url": (
                "https://tools.usps.com/go/TrackConfirmAction?qtc_tLabels1=" + VALID_3
            ),
        }]

    def test_customer_views_own_order(self, service, staff, customer):
        service.add_number("1001", VALID_1, staff)
        response = service.view_order("1001", customer)

        assert response.success is True
        assert [entry["number"] for entry in response.data] == [VALID_1]

    def test_customer_cannot_view_other_order(self, service, store, customer):
        store.create("2002", customer_id="customer-2")
        response = service.view_order("2002", customer)
        assert response.error_kind == ErrorKind.UNAUTHORIZED

    def test_customer_cannot_use_staff_listing(self, service, customer):
        response = service.get_numbers("1001", customer)
        assert response.error_kind == ErrorKind.UNAUTHORIZED

    def test_empty_listing(self, service, staff):
        response = service.get_numbers("1001", staff)
        assert response.success is True
        assert response.data == []


class TestStoreErrors:
    """Store failures propagate to the transport."""

    def test_save_error_raised(self, service, store, staff, monkeypatch):
        def broken_put(order_id, numbers):
            raise OrderStoreError("disk full")

        monkeypatch.setattr(store, "put", broken_put)

        with pytest.raises(OrderStoreError):
            service.add_number("1001", VALID_1, staff)


class TestActionDispatcher:
    """Tests for action routing."""

    def test_routes_add(self, dispatcher, store, staff):
        response = dispatcher.dispatch(
            ActionRequest(
                action="usps_tracking_add_number",
                order_id="1001",
                tracking_number=VALID_1,
            ),
            staff,
        )

        assert response.success is True
        assert store.get("1001").get_tracking_numbers() == [VALID_1]

    def test_unknown_action(self, dispatcher, staff):
        response = dispatcher.dispatch(
            ActionRequest(action="usps_tracking_nope", order_id="1001"),
            staff,
        )
        assert response.error_kind == ErrorKind.UNKNOWN_ACTION

    @pytest.mark.parametrize("action", [
        ActionType.ADD_NUMBER,
        ActionType.ADD_BULK,
        ActionType.DELETE_NUMBER,
    ])
    def test_missing_fields(self, dispatcher, staff, action):
        response = dispatcher.dispatch(
            ActionRequest(action=action.value, order_id="1001"),
            staff,
        )
        assert response.error_kind == ErrorKind.MISSING_DATA

    def test_missing_order_id(self, dispatcher, staff):
        response = dispatcher.dispatch(
            ActionRequest(action=ActionType.GET_NUMBERS.value, order_id=""),
            staff,
        )
        assert response.error_kind == ErrorKind.MISSING_DATA

    def test_every_action_has_handler(self, dispatcher):
        assert set(dispatcher.handlers) == set(ActionType)

    def test_handler_table_is_read_only(self, dispatcher):
        with pytest.raises(TypeError):
            dispatcher.handlers[ActionType.ADD_NUMBER] = lambda request, caller: None

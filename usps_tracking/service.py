"""
Tracking service.
Request handlers that tie the collection manager to the order store
and the authorization gate.
"""

from typing import Optional

from usps_tracking.auth import AuthorizationGate
from usps_tracking.logging_config import RequestLogger
from usps_tracking.models import (
    ActionResponse,
    ActionType,
    Caller,
    ErrorKind,
    TrackingEntry,
)
from usps_tracking.store import Order, OrderStore, OrderStoreError
from usps_tracking.tracking import TrackingCollectionManager, TrackingError


class TrackingService:
    """
    Handles tracking actions for one order per call.

    Each mutating handler reads the order's tracking numbers once,
    applies a single manager operation, and saves once on success.
    Nothing is written when the operation fails.
    """

    SUCCESS_ADD = "Tracking number added successfully!"
    SUCCESS_DELETE = "Tracking number deleted successfully!"
    SUCCESS_BULK = "Bulk operation completed successfully!"

    def __init__(
        self,
        store: OrderStore,
        gate: AuthorizationGate,
        manager: Optional[TrackingCollectionManager] = None,
    ):
        self.store = store
        self.gate = gate
        self.manager = manager or TrackingCollectionManager()

    def _load_order(
        self,
        action: ActionType,
        order_id: str,
        caller: Optional[Caller],
        log: RequestLogger,
    ) -> tuple[Optional[Order], Optional[ActionResponse]]:
        """Fetch the order and check the caller may act on it."""
        order = self.store.get(order_id)

        if order is None:
            # Only callers allowed to act on orders learn whether one exists
            if self.gate.is_authorized(caller, action):
                log.debug("Order not found")
                return None, ActionResponse.fail(ErrorKind.ORDER_NOT_FOUND)
            log.debug("Unauthorized request for unknown order")
            return None, ActionResponse.fail(ErrorKind.UNAUTHORIZED)

        if not self.gate.is_authorized(caller, action, order):
            log.warning(f"Caller {caller.caller_id if caller else 'anonymous'} not authorized")
            return None, ActionResponse.fail(ErrorKind.UNAUTHORIZED)

        return order, None

    def _persist(self, order: Order, numbers: list[str], log: RequestLogger):
        order.set_tracking_numbers(numbers)
        try:
            order.save()
        except OrderStoreError as e:
            log.error(f"Failed to save order: {e}")
            raise

    def _entries(self, numbers: list[str]) -> list[dict]:
        return [
            TrackingEntry(
                index=index,
                number=number,
                tracking_url=self.manager.tracking_url(number),
            ).model_dump()
            for index, number in self.manager.list_entries(numbers)
        ]

    def add_number(
        self,
        order_id: str,
        tracking_number: Optional[str],
        caller: Optional[Caller],
    ) -> ActionResponse:
        """Add one tracking number to an order."""
        log = RequestLogger(ActionType.ADD_NUMBER.value, order_id)
        log.debug(f"Adding tracking number: {tracking_number!r}")

        order, error = self._load_order(ActionType.ADD_NUMBER, order_id, caller, log)
        if error:
            return error

        try:
            numbers = self.manager.add_one(order.get_tracking_numbers(), tracking_number or "")
        except TrackingError as e:
            log.debug(f"Rejected: {e}")
            return ActionResponse.fail(e.kind, str(e))

        self._persist(order, numbers, log)
        log.info(f"Tracking number added ({len(numbers)} total)")
        return ActionResponse.ok(self.SUCCESS_ADD)

    def add_bulk(
        self,
        order_id: str,
        raw_block: Optional[str],
        caller: Optional[Caller],
    ) -> ActionResponse:
        """Add every valid, new tracking number from a block of text."""
        log = RequestLogger(ActionType.ADD_BULK.value, order_id)

        order, error = self._load_order(ActionType.ADD_BULK, order_id, caller, log)
        if error:
            return error

        try:
            numbers, result = self.manager.add_bulk(order.get_tracking_numbers(), raw_block or "")
        except TrackingError as e:
            log.debug(f"Rejected: {e}")
            return ActionResponse.fail(e.kind, str(e))

        if result.added:
            self._persist(order, numbers, log)

        log.info(
            f"Bulk add: {result.added} added, {result.skipped} skipped, "
            f"{result.invalid} invalid"
        )
        for diagnostic in result.errors:
            log.debug(diagnostic)

        return ActionResponse.ok(self.SUCCESS_BULK, data=result.model_dump())

    def delete_number(
        self,
        order_id: str,
        index: Optional[int],
        caller: Optional[Caller],
    ) -> ActionResponse:
        """Delete the tracking number at a position."""
        log = RequestLogger(ActionType.DELETE_NUMBER.value, order_id)
        log.debug(f"Deleting tracking number at index: {index}")

        order, error = self._load_order(ActionType.DELETE_NUMBER, order_id, caller, log)
        if error:
            return error

        if index is None:
            return ActionResponse.fail(ErrorKind.INDEX_NOT_FOUND)

        try:
            numbers = self.manager.delete_at(order.get_tracking_numbers(), index)
        except TrackingError as e:
            log.debug(f"Rejected: {e}")
            return ActionResponse.fail(e.kind, str(e))

        self._persist(order, numbers, log)
        log.info(f"Tracking number deleted ({len(numbers)} remaining)")
        return ActionResponse.ok(self.SUCCESS_DELETE)

    def get_numbers(self, order_id: str, caller: Optional[Caller]) -> ActionResponse:
        """List an order's tracking numbers for the staff screen."""
        return self._list(ActionType.GET_NUMBERS, order_id, caller)

    def view_order(self, order_id: str, caller: Optional[Caller]) -> ActionResponse:
        """List an order's tracking numbers for its customer."""
        return self._list(ActionType.VIEW_ORDER, order_id, caller)

    def _list(
        self,
        action: ActionType,
        order_id: str,
        caller: Optional[Caller],
    ) -> ActionResponse:
        log = RequestLogger(action.value, order_id)

        order, error = self._load_order(action, order_id, caller, log)
        if error:
            return error

        entries = self._entries(order.get_tracking_numbers())
        log.debug(f"{len(entries)} tracking numbers")
        return ActionResponse.ok(data=entries)

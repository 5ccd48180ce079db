"""
Action dispatcher.
Routes deserialized requests to tracking service handlers.
"""

from types import MappingProxyType
from typing import Callable, Mapping, Optional
from loguru import logger

from usps_tracking.models import (
    ActionRequest,
    ActionResponse,
    ActionType,
    Caller,
    ErrorKind,
)
from usps_tracking.service import TrackingService


Handler = Callable[[ActionRequest, Optional[Caller]], ActionResponse]


class ActionDispatcher:
    """
    Maps action names to handlers.

    The handler table is built once from a TrackingService and is
    read-only afterwards; transports receive the dispatcher instance
    rather than registering handlers themselves.
    """

    # Request fields each action cannot run without
    REQUIRED_FIELDS: dict[ActionType, tuple[str, ...]] = {
        ActionType.ADD_NUMBER: ("tracking_number",),
        ActionType.ADD_BULK: ("raw_block",),
        ActionType.DELETE_NUMBER: ("index",),
        ActionType.GET_NUMBERS: (),
        ActionType.VIEW_ORDER: (),
    }

    def __init__(self, service: TrackingService):
        self.service = service
        self._handlers: Mapping[ActionType, Handler] = MappingProxyType({
            ActionType.ADD_NUMBER: self._handle_add_number,
            ActionType.ADD_BULK: self._handle_add_bulk,
            ActionType.DELETE_NUMBER: self._handle_delete_number,
            ActionType.GET_NUMBERS: self._handle_get_numbers,
            ActionType.VIEW_ORDER: self._handle_view_order,
        })
        logger.debug(f"Dispatcher ready with {len(self._handlers)} actions")

    @property
    def handlers(self) -> Mapping[ActionType, Handler]:
        return self._handlers

    @property
    def actions(self) -> list[str]:
        return [action.value for action in self._handlers]

    def dispatch(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        """
        Run the handler for a request.

        Args:
            request: Deserialized caller input
            caller: Authenticated caller, or None

        Returns:
            ActionResponse from the handler, or an error response
        """
        try:
            action = ActionType(request.action)
        except ValueError:
            logger.warning(f"Unknown action: {request.action}")
            return ActionResponse.fail(ErrorKind.UNKNOWN_ACTION)

        if not request.order_id:
            return ActionResponse.fail(ErrorKind.MISSING_DATA)

        missing = [
            name for name in self.REQUIRED_FIELDS[action]
            if getattr(request, name) is None
        ]
        if missing:
            logger.debug(f"{action.value} missing fields: {', '.join(missing)}")
            return ActionResponse.fail(ErrorKind.MISSING_DATA)

        return self._handlers[action](request, caller)

    def _handle_add_number(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        return self.service.add_number(request.order_id, request.tracking_number, caller)

    def _handle_add_bulk(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        return self.service.add_bulk(request.order_id, request.raw_block, caller)

    def _handle_delete_number(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        return self.service.delete_number(request.order_id, request.index, caller)

    def _handle_get_numbers(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        return self.service.get_numbers(request.order_id, caller)

    def _handle_view_order(self, request: ActionRequest, caller: Optional[Caller]) -> ActionResponse:
        return self.service.view_order(request.order_id, caller)

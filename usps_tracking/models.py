"""
Data models for USPS order tracking.
Defines error kinds, request/response shapes, and bulk results.

Request flow:
1. Transport deserializes an ActionRequest
2. Dispatcher routes it to a TrackingService handler
3. Handler validates/mutates the order's tracking numbers
4. Handler returns an ActionResponse for the transport to serialize
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Kinds of errors reported back to the caller."""
    
    # === Collection errors ===
    EMPTY_INPUT = "empty_input"
    INVALID_FORMAT = "invalid_format"
    DUPLICATE = "duplicate"
    INDEX_NOT_FOUND = "index_not_found"
    
    # === Request errors ===
    ORDER_NOT_FOUND = "order_not_found"
    UNAUTHORIZED = "unauthorized"
    MISSING_DATA = "missing_data"
    UNKNOWN_ACTION = "unknown_action"


ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_INPUT: "Tracking number cannot be empty",
    ErrorKind.INVALID_FORMAT: (
        "Invalid USPS tracking number format. "
        "Please enter a valid 20-22 character tracking number."
    ),
    ErrorKind.DUPLICATE: "This tracking number already exists.",
    ErrorKind.INDEX_NOT_FOUND: "Tracking number not found",
    ErrorKind.ORDER_NOT_FOUND: "Order not found",
    ErrorKind.UNAUTHORIZED: "Insufficient permissions",
    ErrorKind.MISSING_DATA: "Missing required data",
    ErrorKind.UNKNOWN_ACTION: "Unknown action",
}


class ActionType(str, Enum):
    """Actions accepted by the request transport."""
    
    # Staff (order edit screen)
    ADD_NUMBER = "usps_tracking_add_number"
    ADD_BULK = "usps_tracking_add_bulk"
    DELETE_NUMBER = "usps_tracking_delete_number"
    GET_NUMBERS = "usps_tracking_get_numbers"
    
    # Customer (order details page)
    VIEW_ORDER = "usps_tracking_view_order"


STAFF_ACTIONS = frozenset({
    ActionType.ADD_NUMBER,
    ActionType.ADD_BULK,
    ActionType.DELETE_NUMBER,
    ActionType.GET_NUMBERS,
})


class Caller(BaseModel):
    """The authenticated party making a request."""
    
    caller_id: str
    capabilities: list[str] = Field(default_factory=list)
    
    def can(self, capability: str) -> bool:
        return capability in self.capabilities


class BulkAddResult(BaseModel):
    """Outcome of a bulk add. Transient, never persisted."""
    
    added: int = 0
    skipped: int = 0  # duplicates
    invalid: int = 0
    errors: list[str] = Field(default_factory=list)
    
    @property
    def total(self) -> int:
        return self.added + self.skipped + self.invalid


class TrackingEntry(BaseModel):
    """A tracking number as presented to staff or customers."""
    
    index: int
    number: str
    tracking_url: str


class ActionRequest(BaseModel):
    """Deserialized caller input for one action."""
    
    action: str
    order_id: str
    tracking_number: Optional[str] = None
    raw_block: Optional[str] = None
    index: Optional[int] = None
    token: Optional[str] = None


class ActionResponse(BaseModel):
    """Result of an action, serialized back to the caller."""
    
    success: bool
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    data: Optional[Any] = None
    
    class Config:
        use_enum_values = True
    
    @classmethod
    def ok(cls, message: Optional[str] = None, data: Any = None) -> "ActionResponse":
        return cls(success=True, message=message, data=data)
    
    @classmethod
    def fail(cls, kind: ErrorKind, message: Optional[str] = None) -> "ActionResponse":
        return cls(
            success=False,
            error_kind=kind,
            message=message or ERROR_MESSAGES[kind],
        )

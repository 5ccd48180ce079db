"""
Authorization for tracking actions.

Staff holding the configured capability may perform every action.
Customers may only view tracking on their own orders.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
import jwt
from loguru import logger

from usps_tracking.config import TrackingConfig
from usps_tracking.models import ActionType, Caller, STAFF_ACTIONS
from usps_tracking.store import Order


class AuthorizationGate(ABC):
    """Base class for authorization checks."""

    @abstractmethod
    def is_authorized(
        self,
        caller: Optional[Caller],
        action: ActionType,
        order: Optional[Order] = None,
    ) -> bool:
        """Check whether the caller may perform an action on an order."""
        pass


class CapabilityGate(AuthorizationGate):
    """Grants actions based on the caller's capabilities."""

    def __init__(self, staff_capability: str = "manage_woocommerce"):
        self.staff_capability = staff_capability

    def is_authorized(
        self,
        caller: Optional[Caller],
        action: ActionType,
        order: Optional[Order] = None,
    ) -> bool:
        if caller is None:
            return False

        if caller.can(self.staff_capability):
            return True

        if action in STAFF_ACTIONS:
            logger.debug(f"Caller {caller.caller_id} lacks {self.staff_capability}")
            return False

        # Customer view: only the order's own customer
        if action == ActionType.VIEW_ORDER and order is not None:
            return order.get_customer_id() == caller.caller_id

        return False


class TokenGate:
    """
    Issues and verifies signed caller tokens.

    Tokens are HS256 JWTs carrying the caller id in ``sub`` and a
    ``capabilities`` list. A token that fails verification yields no caller,
    which every gate treats as unauthorized.
    """

    ALGORITHM = "HS256"

    def __init__(self, config: TrackingConfig):
        if not config.auth_secret:
            raise ValueError("AUTH_SECRET is required for token authentication")
        self.secret = config.auth_secret
        self.ttl = config.auth_token_ttl

    def issue(self, caller: Caller) -> str:
        """Generate a signed token for a caller."""
        now = datetime.now(timezone.utc).timestamp()
        payload = {
            "sub": caller.caller_id,
            "capabilities": caller.capabilities,
            "iat": int(now),
            "exp": int(now + self.ttl),
        }
        return jwt.encode(payload, self.secret, algorithm=self.ALGORITHM)

    def verify(self, token: Optional[str]) -> Optional[Caller]:
        """Decode a token into a Caller, or None if it is missing or invalid."""
        if not token:
            return None

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.ALGORITHM])
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

        return Caller(
            caller_id=str(payload.get("sub", "")),
            capabilities=list(payload.get("capabilities", [])),
        )

"""
HTTP transport for tracking actions.

Endpoints:
1. POST /ajax - staff actions, form or JSON body with an ``action`` field
2. GET /orders/{order_id}/tracking - customer view of an order's tracking
3. GET /health - liveness check

Callers authenticate with a signed token, sent as ``Authorization: Bearer``
or as a ``token`` field in the body.
"""

from typing import Optional
from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from usps_tracking import __version__
from usps_tracking.auth import CapabilityGate, TokenGate
from usps_tracking.config import TrackingConfig
from usps_tracking.dispatcher import ActionDispatcher
from usps_tracking.models import (
    ActionRequest,
    ActionResponse,
    ActionType,
    Caller,
    ErrorKind,
)
from usps_tracking.service import TrackingService
from usps_tracking.store import JsonFileOrderStore, OrderStoreError
from usps_tracking.tracking import TrackingCollectionManager


DISPATCHER_KEY = web.AppKey("dispatcher", ActionDispatcher)
TOKEN_GATE_KEY = web.AppKey("token_gate", TokenGate)


def _json_response(response: ActionResponse) -> web.Response:
    status = 403 if response.error_kind == ErrorKind.UNAUTHORIZED.value else 200
    return web.json_response(response.model_dump(exclude_none=True), status=status)


def _caller_from_request(request: web.Request, body: dict) -> Optional[Caller]:
    token = body.get("token")
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):]
    return request.app[TOKEN_GATE_KEY].verify(token)


async def _read_body(request: web.Request) -> dict:
    if request.content_type == "application/json":
        try:
            body = await request.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
    return dict(await request.post())


async def handle_ajax(request: web.Request) -> web.Response:
    """Handle a staff action posted admin-ajax style."""
    body = await _read_body(request)
    caller = _caller_from_request(request, body)

    if body.get("order_id") is not None:
        body["order_id"] = str(body["order_id"])

    try:
        action_request = ActionRequest(**body)
    except ValidationError as e:
        logger.debug(f"Malformed request: {e}")
        return web.json_response(
            ActionResponse.fail(ErrorKind.MISSING_DATA).model_dump(exclude_none=True),
            status=400,
        )

    try:
        response = request.app[DISPATCHER_KEY].dispatch(action_request, caller)
    except OrderStoreError as e:
        logger.error(f"Order store error on {action_request.action}: {e}")
        return web.json_response(
            {"success": False, "message": "Order storage unavailable"},
            status=500,
        )

    return _json_response(response)


async def handle_view_order(request: web.Request) -> web.Response:
    """Return an order's tracking numbers for its customer."""
    caller = _caller_from_request(request, {})
    action_request = ActionRequest(
        action=ActionType.VIEW_ORDER.value,
        order_id=request.match_info["order_id"],
    )

    try:
        response = request.app[DISPATCHER_KEY].dispatch(action_request, caller)
    except OrderStoreError as e:
        logger.error(f"Order store error on view: {e}")
        return web.json_response(
            {"success": False, "message": "Order storage unavailable"},
            status=500,
        )

    return _json_response(response)


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "ok",
        "version": __version__,
        "actions": request.app[DISPATCHER_KEY].actions,
    })


def create_app(dispatcher: ActionDispatcher, token_gate: TokenGate) -> web.Application:
    """Build the aiohttp application around a dispatcher."""
    app = web.Application()
    app[DISPATCHER_KEY] = dispatcher
    app[TOKEN_GATE_KEY] = token_gate

    app.router.add_post("/ajax", handle_ajax)
    app.router.add_get("/orders/{order_id}/tracking", handle_view_order)
    app.router.add_get("/health", handle_health)

    return app


def build_dispatcher(config: TrackingConfig) -> ActionDispatcher:
    """Wire store, gate, and manager from configuration."""
    store = JsonFileOrderStore(config.order_store_path)
    gate = CapabilityGate(config.staff_capability)
    manager = TrackingCollectionManager(config)
    return ActionDispatcher(TrackingService(store, gate, manager))


def run_server(config: TrackingConfig):
    """Run the HTTP transport until interrupted."""
    app = create_app(build_dispatcher(config), TokenGate(config))
    logger.info(f"Serving tracking actions on http://{config.server_host}:{config.server_port}")
    web.run_app(
        app,
        host=config.server_host,
        port=config.server_port,
        print=None,
    )

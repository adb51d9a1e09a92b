"""Request handlers for the connect → vehicles → request flow.

Each handler works on one :class:`Session` and the gateway and returns an
outcome. The router in :mod:`smartcar_demo.main` decides how an outcome turns
into an HTTP response, so these functions never touch FastAPI.
"""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from starlette.concurrency import run_in_threadpool

from .errors import GatewayError
from .gateway import SmartcarGateway, VehicleHandle, VehicleResponse
from .session import Session, VehicleEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class View:
    template: str
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Redirect:
    url: str


@dataclass(frozen=True)
class Failure:
    """Error descriptor rendered by the ``/error`` page."""

    action: str
    message: str

    @property
    def url(self) -> str:
        query = urllib.parse.urlencode({"action": self.action, "message": self.message})
        return f"/error?{query}"


Outcome = Union[View, Redirect, Failure]


class RequestType(str, Enum):
    INFO = "info"
    LOCATION = "location"
    ODOMETER = "odometer"
    LOCK = "lock"
    UNLOCK = "unlock"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RequestType"]:
        try:
            return cls(value)
        except ValueError:
            return None


def _failure(exc: GatewayError) -> Failure:
    logger.error("Smartcar %s failed: %s", exc.action, exc.message)
    return Failure(action=exc.action, message=exc.message)


def _request_info(handle: VehicleHandle) -> VehicleResponse:
    return handle.fetch_info()


def _request_location(handle: VehicleHandle) -> VehicleResponse:
    return handle.fetch_location()


def _request_odometer(handle: VehicleHandle) -> VehicleResponse:
    return handle.fetch_odometer()


def _request_lock(handle: VehicleHandle) -> VehicleResponse:
    handle.lock()
    return VehicleResponse(data={"action": "Lock request sent."})


def _request_unlock(handle: VehicleHandle) -> VehicleResponse:
    handle.unlock()
    return VehicleResponse(data={"action": "Unlock request sent."})


REQUEST_HANDLERS: Dict[RequestType, Callable[[VehicleHandle], VehicleResponse]] = {
    RequestType.INFO: _request_info,
    RequestType.LOCATION: _request_location,
    RequestType.ODOMETER: _request_odometer,
    RequestType.LOCK: _request_lock,
    RequestType.UNLOCK: _request_unlock,
}


def landing(session: Session, gateway: SmartcarGateway) -> View:
    return View(
        "home.html",
        {"authUrl": gateway.build_authorization_url(), "connected": session.connected},
    )


async def complete_authorization(
    session: Session,
    gateway: SmartcarGateway,
    code: Optional[str],
    error: Optional[str] = None,
    error_description: Optional[str] = None,
) -> Outcome:
    if error:
        logger.error("Authorization was not granted: %s", error)
        return Failure(
            action="authorize",
            message=error_description or "Access to the vehicle was not granted.",
        )
    if not code:
        return Redirect("/")

    try:
        access = await run_in_threadpool(gateway.exchange_code, code)
    except GatewayError as exc:
        return _failure(exc)

    session.authorize(access.access_token)
    logger.info("Authorization code exchanged for an access token")
    return Redirect("/vehicles")


async def list_vehicles(session: Session, gateway: SmartcarGateway) -> Outcome:
    access_token = session.access_token
    if not access_token:
        return Redirect("/")

    try:
        vehicle_ids = await run_in_threadpool(gateway.list_vehicle_ids, access_token)
        handles = [
            gateway.create_vehicle_handle(vehicle_id, access_token)
            for vehicle_id in vehicle_ids
        ]
        # Fail fast: one failed info call discards the whole list.
        responses = await asyncio.gather(
            *(run_in_threadpool(handle.fetch_info) for handle in handles)
        )
    except GatewayError as exc:
        return _failure(exc)

    vehicles: Dict[str, VehicleEntry] = {}
    for handle, response in zip(handles, responses):
        info = response.data if isinstance(response.data, dict) else {}
        vehicles[handle.id] = VehicleEntry(id=handle.id, handle=handle, info=info)

    session.replace_vehicles(vehicles)
    logger.info("Loaded %s vehicle(s)", len(vehicles))
    return View("vehicles.html", {"vehicles": vehicles})


async def perform_request(
    session: Session, vehicle_id: Optional[str], request_type: Optional[str]
) -> Outcome:
    kind = RequestType.parse(request_type)
    if kind is None:
        logger.warning("Rejected unknown request type %r", request_type)
        return Failure(
            action=str(request_type or "request"),
            message=f"Unknown request type: {request_type!r}.",
        )
    if not session.access_token:
        return Redirect("/")
    vehicle = session.vehicles.get(vehicle_id or "")
    if vehicle is None:
        return Redirect("/vehicles")

    try:
        response = await run_in_threadpool(REQUEST_HANDLERS[kind], vehicle.handle)
    except GatewayError as exc:
        return _failure(exc)

    return View(
        "data.html",
        {
            "vehicle": vehicle,
            "type": kind.value,
            "data": response.data,
            "unitSystem": response.unit_system,
            "age": response.age,
        },
    )


def error_page(action: Optional[str], message: Optional[str]) -> Outcome:
    if not action and not message:
        return Redirect("/")
    return View("error.html", {"action": action or "", "message": message or ""})

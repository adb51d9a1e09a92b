from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple, TypeVar, Union

from fastapi import APIRouter, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from . import flow
from .config import Settings, load_settings
from .formatting import format_coordinates, format_distance, format_timestamp
from .gateway import SmartcarGateway
from .session import SESSION_COOKIE, Session, SessionStore

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"

templates = Jinja2Templates(directory=BASE_DIR / "templates")
templates.env.filters["distance"] = format_distance
templates.env.filters["coordinates"] = format_coordinates
templates.env.filters["timestamp"] = format_timestamp

logger = logging.getLogger(__name__)

router = APIRouter()

ResponseT = TypeVar("ResponseT", HTMLResponse, RedirectResponse)


def _load_session(request: Request) -> Tuple[Optional[str], Session]:
    store: SessionStore = request.app.state.sessions
    return store.load(request.cookies.get(SESSION_COOKIE))


def _gateway(request: Request) -> SmartcarGateway:
    return request.app.state.gateway


def _finalize_response(response: ResponseT, session_id: Optional[str]) -> ResponseT:
    response.headers["Cache-Control"] = "no-store"
    if not session_id:
        return response
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=False,
    )
    return response


def _respond(
    request: Request,
    outcome: flow.Outcome,
    session_id: Optional[str],
    session: Session,
) -> Union[HTMLResponse, RedirectResponse]:
    # Anonymous visitors are not stored until they hold a token.
    if session_id is None and session.connected:
        store: SessionStore = request.app.state.sessions
        session_id = store.save(session)
    if isinstance(outcome, flow.View):
        response = templates.TemplateResponse(
            request, outcome.template, outcome.context
        )
    else:
        response = RedirectResponse(url=outcome.url, status_code=303)
    return _finalize_response(response, session_id)


@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    session_id, session = _load_session(request)
    outcome = flow.landing(session, _gateway(request))
    return _respond(request, outcome, session_id, session)


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
):
    session_id, session = _load_session(request)
    outcome = await flow.complete_authorization(
        session, _gateway(request), code, error, error_description
    )
    return _respond(request, outcome, session_id, session)


@router.get("/vehicles", response_class=HTMLResponse)
async def vehicles(request: Request):
    session_id, session = _load_session(request)
    outcome = await flow.list_vehicles(session, _gateway(request))
    return _respond(request, outcome, session_id, session)


@router.post("/request", response_class=HTMLResponse)
async def vehicle_request(
    request: Request,
    vehicle_id: Optional[str] = Form(None, alias="vehicleId"),
    request_type: Optional[str] = Form(None, alias="requestType"),
):
    session_id, session = _load_session(request)
    outcome = await flow.perform_request(session, vehicle_id, request_type)
    return _respond(request, outcome, session_id, session)


@router.get("/error", response_class=HTMLResponse)
async def error(
    request: Request, action: Optional[str] = None, message: Optional[str] = None
):
    session_id, session = _load_session(request)
    outcome = flow.error_page(action, message)
    return _respond(request, outcome, session_id, session)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[SmartcarGateway] = None,
    sessions: Optional[SessionStore] = None,
) -> FastAPI:
    """Build the ASGI app. Raises ``ConfigError`` when the environment is incomplete."""

    if gateway is None:
        gateway = SmartcarGateway(settings or load_settings())

    app = FastAPI(title="Smartcar Demo")
    app.state.gateway = gateway
    app.state.sessions = sessions if sessions is not None else SessionStore()
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(router)
    logger.info("Smartcar demo ready (%s mode)", gateway.settings.mode.value)
    return app

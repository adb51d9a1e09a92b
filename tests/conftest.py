from __future__ import annotations

from typing import Dict, List, Optional

import pytest
from smartcar_demo.config import Mode, Settings
from smartcar_demo.errors import ApiError, ExchangeError
from smartcar_demo.gateway import Access, VehicleResponse
from smartcar_demo.main import create_app
from smartcar_demo.session import SessionStore
from starlette.testclient import TestClient


class HandleStub:
    def __init__(self, vehicle_id: str, access_token: str, gateway: "GatewayStub"):
        self.id = vehicle_id
        self.access_token = access_token
        self._gateway = gateway

    def _call(self, action: str) -> VehicleResponse:
        self._gateway.calls.append((action, self.id))
        failure = self._gateway.failures.get((action, self.id))
        if failure:
            raise ApiError(action, failure)
        return self._gateway.responses.get((action, self.id), VehicleResponse(data=None))

    def fetch_info(self) -> VehicleResponse:
        return self._call("info")

    def fetch_location(self) -> VehicleResponse:
        return self._call("location")

    def fetch_odometer(self) -> VehicleResponse:
        return self._call("odometer")

    def lock(self) -> VehicleResponse:
        return self._call("lock")

    def unlock(self) -> VehicleResponse:
        return self._call("unlock")


class GatewayStub:
    """Records every call and answers from canned tables."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.tokens: Dict[str, str] = {}
        self.vehicle_ids: List[str] = []
        self.list_error: Optional[str] = None
        self.responses: Dict[tuple, VehicleResponse] = {}
        self.failures: Dict[tuple, str] = {}
        self.calls: List[tuple] = []

    def build_authorization_url(self) -> str:
        return "https://connect.smartcar.test/oauth/authorize?client_id=demo"

    def exchange_code(self, code: str) -> Access:
        self.calls.append(("exchange", code))
        if code not in self.tokens:
            raise ExchangeError("Invalid authorization code.")
        return Access(access_token=self.tokens[code])

    def list_vehicle_ids(self, access_token: str) -> List[str]:
        self.calls.append(("vehicles", access_token))
        if self.list_error:
            raise ApiError("vehicles", self.list_error)
        return list(self.vehicle_ids)

    def create_vehicle_handle(self, vehicle_id: str, access_token: str) -> HandleStub:
        return HandleStub(vehicle_id, access_token, self)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="http://localhost:8000/callback",
        port=8000,
        mode=Mode.SANDBOX,
    )


@pytest.fixture
def gateway(settings: Settings) -> GatewayStub:
    stub = GatewayStub(settings)
    stub.tokens["abc123"] = "tok1"
    stub.vehicle_ids = ["v1", "v2"]
    stub.responses[("info", "v1")] = VehicleResponse(
        data={"id": "v1", "make": "TESLA", "model": "Model 3", "year": 2019}
    )
    stub.responses[("info", "v2")] = VehicleResponse(
        data={"id": "v2", "make": "BMW", "model": "i3", "year": 2018}
    )
    return stub


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(gateway: GatewayStub, sessions: SessionStore) -> TestClient:
    app = create_app(gateway=gateway, sessions=sessions)
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client

import logging
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import ApiError, ExchangeError

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

# Define constants
AUTH_URL = "https://connect.smartcar.com/oauth/authorize"
TOKEN_URL = "https://auth.smartcar.com/oauth/token"
API_URL = "https://api.smartcar.com/v2.0"
SCOPE = "read_vehicle_info read_location read_odometer control_security"
UNIT_SYSTEM_HEADER = "sc-unit-system"
DATA_AGE_HEADER = "sc-data-age"


@dataclass(frozen=True)
class Access:
    access_token: str


@dataclass(frozen=True)
class VehicleResponse:
    data: Any
    unit_system: Optional[str] = None
    age: Optional[str] = None


def _upstream_message(response: Optional[requests.Response]) -> Optional[str]:
    """Pull a human-readable message out of a Smartcar error body, if any."""
    if response is None:
        return None
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("description", "message", "error_description"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class VehicleHandle:
    """Issues data and action calls for one vehicle on behalf of one token."""

    def __init__(self, vehicle_id: str, access_token: str, http: requests.Session):
        self.id = vehicle_id
        self._access_token = access_token
        self._http = http

    def __repr__(self) -> str:
        return f"VehicleHandle(id={self.id!r})"

    def _request(
        self, action: str, method: str, path: str = "", **kwargs: Any
    ) -> VehicleResponse:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        url = f"{API_URL}/vehicles/{self.id}{path}"
        logger.info("Smartcar %s request for vehicle %s", action, self.id)
        try:
            response = self._http.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ApiError(action, _upstream_message(exc.response)) from exc
        except requests.RequestException as exc:
            raise ApiError(action, str(exc) or None) from exc

        try:
            data = response.json()
        except ValueError:
            data = None
        return VehicleResponse(
            data=data,
            unit_system=response.headers.get(UNIT_SYSTEM_HEADER),
            age=response.headers.get(DATA_AGE_HEADER),
        )

    def fetch_info(self) -> VehicleResponse:
        return self._request("info", "GET")

    def fetch_location(self) -> VehicleResponse:
        return self._request("location", "GET", "/location")

    def fetch_odometer(self) -> VehicleResponse:
        return self._request("odometer", "GET", "/odometer")

    def lock(self) -> VehicleResponse:
        return self._request("lock", "POST", "/security", json={"action": "LOCK"})

    def unlock(self) -> VehicleResponse:
        return self._request("unlock", "POST", "/security", json={"action": "UNLOCK"})


class SmartcarGateway:
    def __init__(self, settings: Settings, http: Optional[requests.Session] = None):
        self.settings = settings
        self._http = http or requests.Session()

    def build_authorization_url(self) -> str:
        auth_params = {
            "response_type": "code",
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "scope": SCOPE,
            "mode": "test" if self.settings.is_sandbox else "live",
        }
        return f"{AUTH_URL}?{urllib.parse.urlencode(auth_params)}"

    def exchange_code(self, code: str) -> Access:
        token_data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.settings.redirect_uri,
        }
        try:
            response = self._http.post(
                TOKEN_URL,
                data=token_data,
                auth=(self.settings.client_id, self.settings.client_secret),
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ExchangeError(_upstream_message(exc.response)) from exc
        except requests.RequestException as exc:
            raise ExchangeError(str(exc) or None) from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise ExchangeError("Smartcar returned an unreadable token response.") from exc

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise ExchangeError("Smartcar did not return an access token.")
        return Access(access_token=access_token)

    def list_vehicle_ids(self, access_token: str) -> List[str]:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            response = self._http.get(f"{API_URL}/vehicles", headers=headers)
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ApiError("vehicles", _upstream_message(exc.response)) from exc
        except requests.RequestException as exc:
            raise ApiError("vehicles", str(exc) or None) from exc
        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise ApiError("vehicles", "Smartcar returned an unreadable vehicle list.") from exc

        vehicle_ids = payload.get("vehicles") if isinstance(payload, dict) else None
        if not isinstance(vehicle_ids, list):
            raise ApiError("vehicles", "Smartcar returned an unreadable vehicle list.")
        return [str(vehicle_id) for vehicle_id in vehicle_ids]

    def create_vehicle_handle(self, vehicle_id: str, access_token: str) -> VehicleHandle:
        return VehicleHandle(vehicle_id, access_token, self._http)

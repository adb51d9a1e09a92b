from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_PORT = 8000
DEFAULT_HOST = "127.0.0.1"


class Mode(str, Enum):
    SANDBOX = "sandbox"
    LIVE = "live"


# Older deployments still export the Node demo's mode names.
_MODE_ALIASES = {
    "sandbox": Mode.SANDBOX,
    "development": Mode.SANDBOX,
    "live": Mode.LIVE,
    "production": Mode.LIVE,
}


@dataclass(frozen=True)
class Settings:
    client_id: str
    client_secret: str
    redirect_uri: str
    port: int = DEFAULT_PORT
    mode: Mode = Mode.SANDBOX
    host: str = DEFAULT_HOST

    @property
    def is_sandbox(self) -> bool:
        return self.mode is Mode.SANDBOX


def _env_str(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from the process environment.

    Every problem is collected before raising so a misconfigured deployment
    learns about all of them at once.
    """

    if env is None:
        env = os.environ
    problems: list[str] = []

    port = DEFAULT_PORT
    raw_port = _env_str(env, "PORT")
    if raw_port is not None:
        try:
            port = int(raw_port)
        except ValueError:
            problems.append(f"PORT must be an integer, got {raw_port!r}")

    client_id = _env_str(env, "SMARTCAR_CLIENT_ID")
    if not client_id:
        problems.append("SMARTCAR_CLIENT_ID is required")
    client_secret = _env_str(env, "SMARTCAR_SECRET")
    if not client_secret:
        problems.append("SMARTCAR_SECRET is required")

    redirect_uri = _env_str(env, "SMARTCAR_REDIRECT_URI") or (
        f"http://localhost:{port}/callback"
    )

    mode = Mode.SANDBOX
    raw_mode = _env_str(env, "SMARTCAR_MODE")
    if raw_mode is not None:
        resolved = _MODE_ALIASES.get(raw_mode.lower())
        if resolved is None:
            allowed = ", ".join(sorted(_MODE_ALIASES))
            problems.append(f"SMARTCAR_MODE must be one of {allowed}, got {raw_mode!r}")
        else:
            mode = resolved

    if problems:
        raise ConfigError(problems)

    return Settings(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        port=port,
        mode=mode,
        host=_env_str(env, "APP_HOST") or DEFAULT_HOST,
    )

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .gateway import VehicleHandle

SESSION_COOKIE = "smartcar_demo_session"


@dataclass
class VehicleEntry:
    id: str
    handle: VehicleHandle
    info: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        parts = [
            str(self.info.get(key))
            for key in ("year", "make", "model")
            if self.info.get(key) not in (None, "")
        ]
        return " ".join(parts) or self.id


@dataclass
class Session:
    """State for one browser: its access token and last-fetched vehicles."""

    access_token: Optional[str] = None
    vehicles: Dict[str, VehicleEntry] = field(default_factory=dict)

    @property
    def connected(self) -> bool:
        return bool(self.access_token)

    def authorize(self, access_token: str) -> None:
        # Handles are bound to the token that created them.
        self.access_token = access_token
        self.vehicles = {}

    def replace_vehicles(self, vehicles: Dict[str, VehicleEntry]) -> None:
        self.vehicles = dict(vehicles)


class SessionStore:
    """In-memory sessions keyed by the id stored in the session cookie."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def save(self, session: Session) -> str:
        session_id = os.urandom(16).hex()
        self._sessions[session_id] = session
        return session_id

    def load(self, session_id: Optional[str]) -> Tuple[Optional[str], Session]:
        """Return the stored session for ``session_id``.

        Unknown ids get a transient :class:`Session` and a ``None`` id; it is
        only kept once :meth:`save` is called for it.
        """
        session = self.get(session_id)
        if session_id and session is not None:
            return session_id, session
        return None, Session()

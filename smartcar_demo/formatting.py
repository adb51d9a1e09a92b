import math
from datetime import datetime
from typing import Any, Optional


def _as_number(value: Any) -> Optional[float]:
    if value in (None, "", [], {}) or isinstance(value, bool):
        return None
    try:
        numeric = float(str(value).replace(",", "").strip())
    except (ValueError, TypeError):
        return None
    return numeric if math.isfinite(numeric) else None


def format_distance(value: Any, unit_system: Optional[str] = None) -> Optional[str]:
    """Render an odometer reading with its unit.

    Smartcar reports metric distances unless the response says otherwise.
    """
    if isinstance(value, dict):
        value = value.get("distance")
    numeric = _as_number(value)
    if numeric is None:
        return None if value in (None, "") else str(value)

    if abs(numeric - round(numeric)) < 0.01:
        formatted_number = f"{round(numeric):,d}"
    else:
        formatted_number = f"{numeric:,.2f}"

    suffix = "mi" if str(unit_system or "").strip().lower() == "imperial" else "km"
    return f"{formatted_number} {suffix}"


def format_coordinates(value: Any) -> Optional[str]:
    if not isinstance(value, dict):
        return None
    latitude = _as_number(value.get("latitude"))
    longitude = _as_number(value.get("longitude"))
    if latitude is None or longitude is None:
        return None
    north_south = "N" if latitude >= 0 else "S"
    east_west = "E" if longitude >= 0 else "W"
    return f"{abs(latitude):.5f}° {north_south}, {abs(longitude):.5f}° {east_west}"


def format_timestamp(value: Any) -> Optional[str]:
    if not value:
        return None
    try:
        raw = str(value)
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return datetime.fromisoformat(raw).strftime("%d %b %Y %H:%M")
    except ValueError:
        return str(value)

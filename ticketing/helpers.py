# ticketing/helpers.py
"""Validation, date and serialization helpers shared by the handlers."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from bson import ObjectId

from .errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def purchase_time() -> datetime:
    """Current UTC time as a naive datetime, the form PyMongo hands back for BSON dates."""
    return now_utc().replace(tzinfo=None)


def format_date(value: Any) -> Optional[str]:
    """Render a date/datetime (or ISO string) as YYYY-MM-DD. Aware values are shifted to UTC first."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime(DATE_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    return str(value)


def parse_day(value: str, field: str = "value") -> date:
    try:
        return datetime.strptime((value or "").strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"{field} must be a date formatted YYYY-MM-DD.", field)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day as naive datetimes."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def is_valid_oid(value: Any) -> bool:
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def parse_oid(value: Any, field: str, label: str | None = None) -> ObjectId:
    if not is_valid_oid(value):
        raise ValidationError(f"Invalid {label or field}", field)
    return ObjectId(value)


def safe_float(value: Any, field: str, min_value: Optional[float] = None) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.", field)
    try:
        n = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number.", field)
    if min_value is not None and n < min_value:
        raise ValidationError(f"{field} must be >= {min_value}.", field)
    return n


def optional_str(data: Dict[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise ValidationError(f"{field} must be a string.", field)
    return str(value).strip() or None


def _sid(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _num(value: Any, cast=float, default=0):
    """Stored numbers can be null or junk on documents written elsewhere; fall back to `default`."""
    if value is None or isinstance(value, bool):
        return cast(default)
    try:
        return cast(float(value))
    except (TypeError, ValueError, OverflowError):
        return cast(default)


# -------------------------
# Serialization helpers
# -------------------------
def public_ticket(t: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": _sid(t.get("_id")),
        "userId": _sid(t.get("userId")),
        "eventId": _sid(t.get("eventId")),
        "ticketId": t.get("ticketId"),
        "partyName": t.get("partyName"),
        "userName": t.get("userName"),
        "purchasedDate": format_date(t.get("purchasedDate")),
        "price": _num(t.get("price")),
        "promoCode": t.get("promoCode"),
    }


def public_user(u: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": _sid(u.get("_id")),
        "userName": u.get("userName", ""),
        "email": u.get("email", ""),
        "userRole": u.get("userRole", ""),
        "registrationDate": format_date(u.get("registrationDate")),
        "status": u.get("status", ""),
        "ticketsPurchased": _num(u.get("ticketsPurchased"), int),
    }


def public_event(e: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": _sid(e.get("_id")),
        "eventTitle": e.get("eventTitle", ""),
        "time": e.get("time", ""),
        "event_organizer": e.get("event_organizer", ""),
        "status": e.get("status", ""),
        "description": e.get("description", ""),
        "location": e.get("location", ""),
        "price": _num(e.get("price")),
        "seats": _num(e.get("seats"), int),
        "images": list(e.get("images") or []),
    }

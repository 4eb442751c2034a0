# ticketing/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from flask import Response, jsonify, request


@dataclass
class ApiError(Exception):
    message: str
    status: int = 400
    code: str = "bad_request"
    details: Optional[Dict[str, Any]] = None


class NotFound(ApiError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 404, "not_found", details)


class ValidationError(ApiError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, 400, "validation_error", {"field": field} if field else None)


def ok(payload: Dict[str, Any] | None = None, status: int = 200) -> Tuple[Response, int]:
    data = {"ok": True}
    if payload:
        data.update(payload)
    return jsonify(data), status


def fail(err: ApiError) -> Tuple[Response, int]:
    data = {"ok": False, "error": err.message, "code": err.code}
    if err.details:
        data["details"] = err.details
    return jsonify(data), err.status


def require_json() -> Dict[str, Any]:
    if not request.is_json:
        raise ApiError("Request must be JSON.", 415, "unsupported_media_type")
    data = request.get_json(silent=True)
    if data is None:
        raise ApiError("Invalid JSON payload.", 400, "invalid_json")
    if not isinstance(data, dict):
        raise ApiError("JSON body must be an object.", 400, "invalid_json")
    return data

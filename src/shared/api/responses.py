"""
Shared API Responses
====================

JSON response builders for the `{statusCode, data}` success envelope and
the `{error}` failure body.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Correlation-ID",
}


def _encode(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_encode(item) for item in data]
    return jsonable_encoder(data)


def success_response(status_code: int, data: Any) -> JSONResponse:
    """Wrap `data` in the success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"statusCode": status_code, "data": _encode(data)},
    )


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build an `{"error": message}` response."""
    return JSONResponse(status_code=status_code, content={"error": message})

"""Maps a terminal GatewayResult to an outward (status, body) pair."""

from __future__ import annotations

from typing import Any, Tuple

from foodai_proxy.models.schemas import (
    ClientError,
    GatewayResult,
    InternalError,
    Success,
    UpstreamError,
)


def translate_result(result: GatewayResult) -> Tuple[int, Any]:
    if isinstance(result, Success):
        # Upstream payload goes out untouched.
        return 200, result.payload
    if isinstance(result, ClientError):
        return 400, {"error": result.message}
    if isinstance(result, UpstreamError):
        return result.status_code, {
            "error": f"Gemini API error: {result.status_code}",
            "status": result.status_code,
            "message": result.message,
        }
    if isinstance(result, InternalError):
        return 500, {"error": "Internal server error", "message": result.message}
    raise TypeError(f"Unsupported gateway result: {type(result).__name__}")

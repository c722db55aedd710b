import json
from typing import Any, Dict, Sequence

from fastapi.responses import JSONResponse, Response

ALLOWED_METHODS = "POST, OPTIONS"
METHOD_NOT_ALLOWED = "Method Not Allowed"


def cors_headers(allow_headers: Sequence[str]) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ", ".join(allow_headers),
    }


def json_response(
    status_code: int,
    body: Dict[str, Any],
    allow_headers: Sequence[str],
    **kwargs: Any,
) -> JSONResponse:
    """JSON response carrying the endpoint's CORS headers."""
    headers = cors_headers(allow_headers)
    headers.update(kwargs.pop("headers", None) or {})
    return JSONResponse(status_code=status_code, content=body, headers=headers, **kwargs)


def preflight_response(allow_headers: Sequence[str]) -> Response:
    return Response(status_code=200, headers=cors_headers(allow_headers))


def method_not_allowed(allow_headers: Sequence[str]) -> JSONResponse:
    return json_response(
        405,
        {"error": METHOD_NOT_ALLOWED},
        allow_headers,
        headers={"Allow": ALLOWED_METHODS},
    )


def parse_json_body(raw: bytes) -> Dict[str, Any]:
    """
    Decode a request body into a dict.
    Undecodable input or a non-object payload is treated as an empty object.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return {}
    if not isinstance(data, dict):
        return {}
    return data

"""Serverless function request/response helpers."""

import json
from typing import Any


def json_response(status_code: int, payload: Any) -> dict:
    """Build a Vercel-style JSON response."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def parse_json_body(request: dict) -> dict:
    """Decode a request body; raises ValueError for anything but a JSON object."""
    body = request.get("body") or "{}"
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    data = json.loads(body) if isinstance(body, str) else body
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data

"""
Shared request/response helpers for the route handlers.
"""

from typing import Dict, Optional, Sequence, Tuple, Union

from flask import request, Response
from werkzeug.exceptions import BadRequest
from werkzeug.routing import PathConverter

# Largest value a BIGSERIAL id can hold
MAX_ID = 2**63 - 1

HandlerResult = Union[Response, Tuple[Response, int]]


def text_error(message: str, status: int) -> Response:
    """
    Build a plaintext error response.

    Args:
        message (str): Human-readable error, without trailing newline.
        status (int): HTTP status code.

    Returns:
        Response: text/plain body of the message plus a newline.
    """
    response = Response(f"{message}\n", status=status, mimetype="text/plain")
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def decode_body(fields: Sequence[str]) -> Optional[Dict[str, str]]:
    """
    Decode the request body into a dict holding exactly the given string fields.

    The body is parsed as JSON whatever the Content-Type says. Keys match
    fields case-insensitively and a later key wins over an earlier one. Missing
    or null fields become "", unknown keys are dropped, and a null body decodes
    like an empty object.

    Returns:
        dict: The decoded fields, or None if the body is not valid JSON, not
        an object, or a field holds a non-string value.
    """
    try:
        data = request.get_json(force=True)
    except BadRequest:
        return None

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None

    decoded = {field: "" for field in fields}
    for key, value in data.items():
        field = key.casefold()
        if field not in decoded or value is None:
            continue
        if not isinstance(value, str):
            return None
        decoded[field] = value
    return decoded


def parse_id(raw: str) -> Optional[int]:
    """
    Convert a path identifier to a primary key.

    Returns:
        int: The id, or None if it can't name a row (not plain ASCII digits,
        or too large for the column).
    """
    if not raw.isascii() or not raw.isdigit():
        return None
    value = int(raw)
    if value > MAX_ID:
        return None
    return value


class RestConverter(PathConverter):
    """
    URL converter for the rest of the path after a prefix, slashes included.
    Unlike ``path`` it also matches an empty remainder, so ``/users/`` routes
    to the same rule as ``/users/1``.
    """

    part_isolating = False
    regex = ".*"

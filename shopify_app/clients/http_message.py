"""
HTTP message helpers for Shopify requests and responses.

Turns a response into the metadata mapping used by the client: lower-cased
header names plus the synthesized ``http_status_code`` and
``http_status_message`` keys. The client builds it from a
``requests.Response`` with ``response_metadata``; ``split_message``,
``parse_headers`` and ``parse_response`` produce the same mapping from raw
HTTP message text (recorded responses, captures from other transports).
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode

import requests

STATUS_CODE_KEY = 'http_status_code'
STATUS_MESSAGE_KEY = 'http_status_message'

_HEAD_BODY_SEPARATOR = re.compile(r"\r\n\r\n|\n\n|\r\r")
_LINE_BREAK = re.compile(r"\r\n|\n|\r")


def split_message(raw: str) -> Tuple[str, str]:
    """
    Split a raw HTTP message into header block and body.

    The first blank line ends the header block, whatever the line-ending
    style (``\\r\\n``, ``\\n`` or ``\\r``).

    Args:
        raw: Full HTTP message text

    Returns:
        (head, body); body is empty when there is no blank line
    """
    parts = _HEAD_BODY_SEPARATOR.split(raw, maxsplit=1)
    if len(parts) == 1:
        return parts[0], ''
    return parts[0], parts[1]


def _build_metadata(
    status_code: str,
    status_message: str,
    header_pairs: Iterable[Tuple[str, str]]
) -> Dict[str, str]:
    metadata = {
        STATUS_CODE_KEY: status_code,
        STATUS_MESSAGE_KEY: status_message
    }
    for name, value in header_pairs:
        metadata[name.strip().lower()] = value.strip()
    return metadata


def parse_headers(head: str) -> Dict[str, str]:
    """
    Parse an HTTP header block.

    Args:
        head: Status line followed by ``Name: value`` lines

    Returns:
        Metadata mapping with lower-cased header names
    """
    lines = _LINE_BREAK.split(head.strip())
    status_parts = lines[0].strip().split(' ', 2)
    # HTTP/1.1 200 OK -> ['HTTP/1.1', '200', 'OK']
    status_code = status_parts[1] if len(status_parts) > 1 else ''
    status_message = status_parts[2] if len(status_parts) > 2 else ''

    pairs = []
    for line in lines[1:]:
        name, separator, value = line.partition(':')
        if not separator:
            continue
        pairs.append((name, value))

    return _build_metadata(status_code, status_message, pairs)


def parse_response(raw: str) -> Tuple[Dict[str, str], str]:
    """
    Parse a raw HTTP message into (metadata, body).
    """
    head, body = split_message(raw)
    return parse_headers(head), body


def response_metadata(response: requests.Response) -> Dict[str, str]:
    """
    Build the metadata mapping from a ``requests`` response.

    Args:
        response: Completed response

    Returns:
        Metadata mapping, same shape as ``parse_headers``
    """
    return _build_metadata(
        str(response.status_code),
        response.reason or '',
        response.headers.items()
    )


def status_code_of(metadata: Optional[Dict[str, str]]) -> Optional[int]:
    """Integer status code from a metadata mapping, or None."""
    if not metadata:
        return None
    try:
        return int(metadata.get(STATUS_CODE_KEY, ''))
    except ValueError:
        return None


def _flatten_params(value: Any, prefix: str, pairs: List[Tuple[str, Any]]) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten_params(item, f"{prefix}[{key}]", pairs)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _flatten_params(item, f"{prefix}[]", pairs)
    elif value is None:
        return
    elif isinstance(value, bool):
        pairs.append((prefix, int(value)))
    else:
        pairs.append((prefix, value))


def build_query(params: Dict[str, Any]) -> str:
    """
    Encode request parameters as a query string.

    Nested dicts and lists use bracketed keys:
    ``{'filter': {'status': 'any'}, 'ids': [1, 2]}`` ->
    ``filter%5Bstatus%5D=any&ids%5B%5D=1&ids%5B%5D=2``.
    None values are skipped and booleans are sent as 1/0.

    Args:
        params: Request parameters

    Returns:
        URL-encoded query string
    """
    pairs: List[Tuple[str, Any]] = []
    for key, value in params.items():
        _flatten_params(value, str(key), pairs)
    return urlencode(pairs)


def decode_body(body: str, keep_raw: bool = False) -> Any:
    """
    Decode a JSON response body.

    Empty bodies and text that is not JSON decode to None. With
    ``keep_raw`` the non-JSON text is returned unchanged instead, so error
    responses (HTML error pages) still reach the caller.
    """
    if not body or not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body if keep_raw else None


def unwrap_payload(decoded: Any) -> Any:
    """
    Unwrap the resource envelope of a decoded response.

    Shopify wraps payloads in one top-level key named after the resource:
    ``{"order": {...}}`` -> ``{...}``. A non-empty dict yields its first
    value and a non-empty list its first item; anything else is returned
    as-is.
    """
    if isinstance(decoded, dict) and decoded:
        return next(iter(decoded.values()))
    if isinstance(decoded, list) and decoded:
        return decoded[0]
    return decoded

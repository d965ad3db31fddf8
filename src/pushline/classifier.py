"""Classification of raw gateway replies into the response taxonomy."""

import logging
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

from pushline.exceptions import UnexpectedResponseError
from pushline.models.message import Message
from pushline.models.response import (
    ErrorKind,
    ErrorResponse,
    Response,
    SuccessResponse,
    UnavailableResponse,
)

logger = logging.getLogger(__name__)

ID_KEY = "id"
REGISTRATION_ID_KEY = "registration_id"
ERROR_KEY = "Error"
BODY_KEYS = frozenset({ID_KEY, REGISTRATION_ID_KEY, ERROR_KEY})

# Values the gateway may send under the Error key of a 200 body.
ERROR_TOKENS: dict[str, ErrorKind] = {
    kind.value: kind
    for kind in (
        ErrorKind.QUOTA_EXCEEDED,
        ErrorKind.DEVICE_QUOTA_EXCEEDED,
        ErrorKind.MISSING_REGISTRATION,
        ErrorKind.INVALID_REGISTRATION,
        ErrorKind.MISMATCH_SENDER_ID,
        ErrorKind.NOT_REGISTERED,
        ErrorKind.MESSAGE_TOO_BIG,
        ErrorKind.MISSING_COLLAPSE_KEY,
    )
}

RETRY_AFTER_HEADER = "Retry-After"

_LINE_SPLITTER = re.compile(r"[\r\n]+")


def parse_body(body: str) -> list[tuple[str, str]]:
    """
    Parse a newline-separated ``key=value`` body.

    Blank lines are skipped. Every other line must contain exactly one ``=``
    with a non-empty key and value, otherwise the whole body is rejected.

    Raises:
        UnexpectedResponseError: If any line is malformed
    """
    pairs: list[tuple[str, str]] = []
    for line in _LINE_SPLITTER.split(body):
        if not line.strip():
            continue
        parts = line.split("=")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise UnexpectedResponseError(f"Unexpected format of message body:\n{line}")
        pairs.append((parts[0], parts[1]))
    return pairs


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a ``Retry-After`` header value into an absolute UTC time.

    The value is read as an HTTP-date first and then as a count of seconds from
    ``now``. Returns None when the value is missing or neither form parses.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is not None:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    try:
        seconds = int(value)
    except ValueError:
        logger.debug("Ignoring unparsable Retry-After value: %r", value)
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    return now + timedelta(seconds=seconds)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def _classify_body(body: str, message: Message) -> Response:
    pairs = parse_body(body)

    values: dict[str, str] = {}
    for key, value in pairs:
        if key not in BODY_KEYS:
            raise UnexpectedResponseError(f"Unexpected key in body name-value pair: {key}")
        values.setdefault(key, value)

    if ID_KEY in values:
        return SuccessResponse(
            message=message,
            sent_message_id=values[ID_KEY],
            replacement_target=values.get(REGISTRATION_ID_KEY),
        )

    if ERROR_KEY in values:
        kind = ERROR_TOKENS.get(values[ERROR_KEY])
        if kind is None:
            raise UnexpectedResponseError(f"Unexpected error message: {values[ERROR_KEY]}")
        return ErrorResponse(message=message, kind=kind)

    raise UnexpectedResponseError("Unexpected format in message.")


def classify(
    status_code: int,
    headers: Mapping[str, str],
    body: str,
    message: Message,
    now: Optional[datetime] = None,
) -> Response:
    """
    Turn a raw gateway reply into exactly one response variant.

    Args:
        status_code: HTTP status code of the reply
        headers: Reply headers (looked up case-insensitively)
        body: Decoded reply body
        message: Message the reply belongs to
        now: Reference time for relative ``Retry-After`` values

    Returns:
        The classified response

    Raises:
        UnexpectedResponseError: If the reply matches no known shape
    """
    if status_code == 200:
        return _classify_body(body, message)
    if status_code == 500:
        return ErrorResponse(message=message, kind=ErrorKind.INTERNAL_ERROR)
    if status_code == 503:
        retry_after = parse_retry_after(_header(headers, RETRY_AFTER_HEADER), now)
        return UnavailableResponse(message=message, retry_after=retry_after)
    if status_code == 401:
        return ErrorResponse(message=message, kind=ErrorKind.UNAUTHORIZED)
    raise UnexpectedResponseError(f"Unexpected HTTP status code: {status_code}")

"""Response taxonomy for gateway delivery attempts."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pushline.models.message import Message


class ErrorKind(str, Enum):
    """Error outcomes a delivery attempt can produce."""

    QUOTA_EXCEEDED = "QuotaExceeded"
    DEVICE_QUOTA_EXCEEDED = "DeviceQuotaExceeded"
    MISSING_REGISTRATION = "MissingRegistration"
    INVALID_REGISTRATION = "InvalidRegistration"
    MISMATCH_SENDER_ID = "MismatchSenderId"
    NOT_REGISTERED = "NotRegistered"
    MESSAGE_TOO_BIG = "MessageTooBig"
    MISSING_COLLAPSE_KEY = "MissingCollapseKey"
    INTERNAL_ERROR = "InternalError"
    UNAUTHORIZED = "Unauthorized"


class ResponseType(str, Enum):
    """Flat view over every response variant, one member per outcome."""

    SUCCESS = "Success"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    QUOTA_EXCEEDED = ErrorKind.QUOTA_EXCEEDED.value
    DEVICE_QUOTA_EXCEEDED = ErrorKind.DEVICE_QUOTA_EXCEEDED.value
    MISSING_REGISTRATION = ErrorKind.MISSING_REGISTRATION.value
    INVALID_REGISTRATION = ErrorKind.INVALID_REGISTRATION.value
    MISMATCH_SENDER_ID = ErrorKind.MISMATCH_SENDER_ID.value
    NOT_REGISTERED = ErrorKind.NOT_REGISTERED.value
    MESSAGE_TOO_BIG = ErrorKind.MESSAGE_TOO_BIG.value
    MISSING_COLLAPSE_KEY = ErrorKind.MISSING_COLLAPSE_KEY.value
    INTERNAL_ERROR = ErrorKind.INTERNAL_ERROR.value
    UNAUTHORIZED = ErrorKind.UNAUTHORIZED.value


@dataclass(frozen=True)
class Response:
    """Common base for every gateway response; holds the originating message."""

    message: Message

    @property
    def response_type(self) -> ResponseType:
        raise NotImplementedError

    @property
    def is_success(self) -> bool:
        return False


@dataclass(frozen=True)
class SuccessResponse(Response):
    """The gateway accepted the message.

    ``replacement_target`` is set when the gateway reports a canonical
    registration id; callers should use it for future sends to this device.
    """

    sent_message_id: str
    replacement_target: Optional[str] = None

    @property
    def response_type(self) -> ResponseType:
        return ResponseType.SUCCESS

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class UnavailableResponse(Response):
    """The gateway is temporarily unavailable (HTTP 503)."""

    retry_after: Optional[datetime] = None

    @property
    def response_type(self) -> ResponseType:
        return ResponseType.SERVICE_UNAVAILABLE

    @property
    def has_retry_after(self) -> bool:
        return self.retry_after is not None


@dataclass(frozen=True)
class ErrorResponse(Response):
    """The gateway rejected the message with a known error kind."""

    kind: ErrorKind

    @property
    def response_type(self) -> ResponseType:
        return ResponseType(self.kind.value)

"""Failure models published to the dead-letter queue."""

from datetime import datetime
from typing import Optional

from pushline.models.base import CamelCaseModel
from pushline.models.message import Message


class FailureDetails(CamelCaseModel):
    """Additional structured failure details."""

    error_code: Optional[str] = None
    exception_type: Optional[str] = None
    retry_after: Optional[datetime] = None
    stack_trace: Optional[str] = None


class FailureInfo(CamelCaseModel):
    """Structured failure information."""

    type: str  # gateway_error, retries_exhausted, unexpected_response, transport_error, vetoed
    message: str
    details: Optional[FailureDetails] = None


class DeadLetterRecord(CamelCaseModel):
    """A message that reached a terminal, non-successful outcome."""

    message: Message
    attempts: int
    failure: FailureInfo

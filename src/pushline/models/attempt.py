"""Delivery attempt bookkeeping."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from pushline.models.message import Message
from pushline.models.response import Response


class AttemptState(str, Enum):
    """Lifecycle states of a delivery attempt."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    SCHEDULED_RETRY = "scheduled_retry"
    SUCCEEDED = "succeeded"
    TERMINAL_FAILED = "terminal_failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {AttemptState.SUCCEEDED, AttemptState.TERMINAL_FAILED, AttemptState.CANCELLED}
)


class DeliveryAttempt:
    """
    Transient record of a message moving through the delivery engine.

    One instance follows a message across all of its retries; ``attempts`` counts
    the pushes made or about to be made, starting at 1.

    Observers record a retry decision with :meth:`schedule_retry`. The scheduler
    honours it once the whole handler chain has run, unless an observer reported
    the outcome as handled.
    """

    def __init__(self, message: Message):
        self.message = message
        self.attempts = 1
        self.state = AttemptState.PENDING
        self.last_response: Optional[Response] = None
        self.last_error: Optional[BaseException] = None
        self.retry_delay: Optional[float] = None
        self.retry_at: Optional[datetime] = None
        self.vetoed = False
        self.cancelled = False
        self.retries_exhausted = False

    @property
    def message_id(self) -> str:
        return self.message.message_id

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def retry_requested(self) -> bool:
        """True when an observer asked for another push of this message."""
        return self.retry_delay is not None

    def schedule_retry(self, delay: float) -> None:
        """Request another attempt after ``delay`` seconds (negative delays clamp to 0)."""
        delay = max(0.0, float(delay))
        self.retry_delay = delay
        self.retry_at = datetime.now(timezone.utc) + timedelta(seconds=delay)

    def clear_retry(self) -> None:
        self.retry_delay = None
        self.retry_at = None

    def record_outcome(self, outcome: Union[Response, BaseException]) -> None:
        if isinstance(outcome, Response):
            self.last_response = outcome
            self.last_error = None
        else:
            self.last_error = outcome
            self.last_response = None

    def __repr__(self) -> str:
        return (
            f"DeliveryAttempt(message={self.message}, attempts={self.attempts}, "
            f"state={self.state.value}, retry_delay={self.retry_delay})"
        )

"""Handler publishing terminal delivery failures to a dead-letter queue."""

import logging
import traceback
from typing import Optional

from pushline.exceptions import MessageVetoedError, UnexpectedResponseError
from pushline.models.attempt import DeliveryAttempt
from pushline.models.failure import DeadLetterRecord, FailureDetails, FailureInfo
from pushline.models.response import ErrorResponse, Response, UnavailableResponse
from pushline.protocols.publisher import QueuePublisher

logger = logging.getLogger(__name__)


class DeadLetterHandler:
    """
    Observer that publishes every final, unsuccessful outcome as JSON.

    Register it after the retry policy: an outcome with a pending retry is
    intermediate and is not published.
    """

    def __init__(self, publisher: QueuePublisher, topic: str, include_stack_trace: bool = False):
        self.publisher = publisher
        self.topic = topic
        self.include_stack_trace = include_stack_trace

    def on_response(self, response: Response, attempt: DeliveryAttempt) -> bool:
        if response.is_success or attempt.retry_requested:
            return False

        retry_after = response.retry_after if isinstance(response, UnavailableResponse) else None
        if attempt.retries_exhausted:
            failure_type = "retries_exhausted"
        else:
            failure_type = "gateway_error"
        error_code = (
            response.kind.value
            if isinstance(response, ErrorResponse)
            else response.response_type.value
        )
        failure = FailureInfo(
            type=failure_type,
            message=f"Gateway responded {error_code} after {attempt.attempts} attempt(s)",
            details=FailureDetails(error_code=error_code, retry_after=retry_after),
        )
        self._publish(attempt, failure)
        return False

    def on_failure(self, error: Exception, attempt: DeliveryAttempt) -> bool:
        if attempt.retry_requested:
            return False

        if isinstance(error, MessageVetoedError):
            failure_type = "vetoed"
        elif isinstance(error, UnexpectedResponseError):
            failure_type = "unexpected_response"
        else:
            failure_type = "transport_error"
        stack_trace: Optional[str] = None
        if self.include_stack_trace:
            stack_trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        failure = FailureInfo(
            type=failure_type,
            message=str(error) or type(error).__name__,
            details=FailureDetails(exception_type=type(error).__name__, stack_trace=stack_trace),
        )
        self._publish(attempt, failure)
        return False

    def _publish(self, attempt: DeliveryAttempt, failure: FailureInfo) -> None:
        record = DeadLetterRecord(message=attempt.message, attempts=attempt.attempts, failure=failure)
        data = record.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        self.publisher.publish(self.topic, data, message_id=attempt.message_id)
        logger.info("Dead-lettered %s to %s (%s)", attempt.message, self.topic, failure.type)

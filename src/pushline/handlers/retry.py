"""Built-in retry policy handler."""

import logging
from typing import Optional

from pushline.engine.backoff import BackoffPolicy
from pushline.models.attempt import DeliveryAttempt
from pushline.models.response import Response

logger = logging.getLogger(__name__)


class RetryPolicyHandler:
    """
    Observer that turns retryable gateway responses into retry requests.

    ``ServiceUnavailable``, ``QuotaExceeded`` and ``DeviceQuotaExceeded`` are
    retried after the delay computed by the backoff policy; a success resets the
    counters involved. Every other outcome, including transport failures, is left
    terminal. The handler never reports an outcome as handled, so observers
    registered after it still see every response.
    """

    def __init__(self, backoff: BackoffPolicy, max_attempts: Optional[int] = None):
        """
        Initialize the handler.

        Args:
            backoff: Policy computing delays and tracking counters
            max_attempts: Total pushes allowed per message, None for unlimited
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backoff = backoff
        self.max_attempts = max_attempts

    def on_response(self, response: Response, attempt: DeliveryAttempt) -> bool:
        if response.is_success:
            self.backoff.record_success(response.message.target)
            return False

        if not self.backoff.is_retryable(response):
            return False

        # Counted even when the ceiling stops the retry: the gateway still pushed back.
        delay = self.backoff.next_delay(response)
        if self.max_attempts is not None and attempt.attempts >= self.max_attempts:
            attempt.retries_exhausted = True
            logger.warning(
                "Giving up on %s after %d attempts (%s)",
                attempt.message,
                attempt.attempts,
                response.response_type.value,
            )
            return False

        attempt.schedule_retry(delay)
        return False

    def on_failure(self, error: Exception, attempt: DeliveryAttempt) -> bool:
        return False

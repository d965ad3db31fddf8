"""Subscriber protocol definitions."""

from typing import Protocol, runtime_checkable

from pushline.models.queue import AcknowledgeRequest, PullRequest, SubmissionBatch


@runtime_checkable
class QueueSubscriber(Protocol):
    """Synchronous protocol for pulling and acknowledging queued submissions."""

    def pull(self, request: PullRequest, timeout: float) -> SubmissionBatch:
        """
        Pull submissions from a queue synchronously.

        Args:
            request: Pull request with queue and max_messages
            timeout: Timeout in seconds

        Returns:
            Batch of submissions, empty when nothing arrived in time
        """
        ...

    def acknowledge(self, request: AcknowledgeRequest) -> None:
        """
        Acknowledge submissions synchronously.

        Args:
            request: Acknowledge request with queue and delivery_tags
        """
        ...

"""Delivery handler protocol definitions."""

from typing import Protocol, runtime_checkable

from pushline.models.attempt import DeliveryAttempt
from pushline.models.message import Message
from pushline.models.response import Response


@runtime_checkable
class MessageFilter(Protocol):
    """
    Protocol for handlers that inspect a message before it is pushed.

    Filters run in registration order; the first veto stops the chain and the
    message is never sent.
    """

    def accept(self, message: Message) -> bool:
        """
        Decide whether the message may be pushed.

        Args:
            message: Message about to be pushed

        Returns:
            False to veto the push, True to let it through
        """
        ...


@runtime_checkable
class ResponseObserver(Protocol):
    """
    Protocol for handlers that inspect the outcome of a push.

    Observers run in registration order and each sees the attempt as left by the
    previous one, including any retry decision recorded on it. An outcome with
    ``attempt.retry_requested`` set is intermediate progress, not a final result.
    """

    def on_response(self, response: Response, attempt: DeliveryAttempt) -> bool:
        """
        Inspect a classified gateway response.

        Args:
            response: Response returned by the gateway
            attempt: Attempt that produced the response

        Returns:
            True if the outcome is fully handled. Remaining observers are skipped
            and the scheduler will not retry the message.
        """
        ...

    def on_failure(self, error: Exception, attempt: DeliveryAttempt) -> bool:
        """
        Inspect a push that failed without a classified response.

        Args:
            error: Transport or classification error raised by the gateway, or
                MessageVetoedError when a filter refused the message
            attempt: Attempt that failed

        Returns:
            True if the failure is fully handled, skipping remaining observers
        """
        ...

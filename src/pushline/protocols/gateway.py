"""Push gateway protocol definition."""

from typing import Protocol, runtime_checkable

from pushline.models.message import Message
from pushline.models.response import Response


@runtime_checkable
class PushGateway(Protocol):
    """
    Synchronous protocol for pushing a single message to the gateway.

    Implementations perform exactly one delivery attempt and never retry. They
    must be safe to call from as many threads as the scheduler runs workers.
    """

    def push(self, message: Message) -> Response:
        """
        Deliver one message and return the classified gateway response.

        Args:
            message: Message to deliver

        Returns:
            The classified response

        Raises:
            UnexpectedResponseError: If the gateway reply could not be classified
            PushTransportError: If the gateway could not be reached
        """
        ...

"""Publisher protocol definitions."""

from typing import Any, Optional, Protocol, runtime_checkable

from pushline.models.queue import PublishReceipt


@runtime_checkable
class QueuePublisher(Protocol):
    """Synchronous protocol for publishing records to a queue or exchange."""

    def publish(
        self,
        topic: str,
        data: bytes,
        message_id: Optional[str] = None,
        headers: Optional[dict[str, Any]] = None,
    ) -> PublishReceipt:
        """
        Publish a record synchronously.

        Args:
            topic: Queue name, or "exchange:routing_key"
            data: Record body as bytes
            message_id: Id of the push the record is about
            headers: Optional broker headers

        Returns:
            Receipt naming the topic and message id
        """
        ...

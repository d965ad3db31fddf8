"""RabbitMQ subscriber implementing QueueSubscriber protocol."""

import pika
from pika.adapters.blocking_connection import BlockingChannel

from pushline.models.queue import (
    AcknowledgeRequest,
    PullRequest,
    QueuedSubmission,
    SubmissionBatch,
)


class RabbitMQSubscriber:
    """
    RabbitMQ subscriber implementing QueueSubscriber protocol.

    Submissions are acknowledged by the delivery tag of this subscriber's own
    channel. Prefetch is limited to ``max_messages`` so unacknowledged
    submissions stay on the broker.
    """

    def __init__(self, connection: pika.BlockingConnection, declare_queues: bool = False):
        self._connection = connection
        self._channel: BlockingChannel = connection.channel()
        self._declare_queues = declare_queues
        self._declared: set[str] = set()

    def pull(self, request: PullRequest, timeout: float) -> SubmissionBatch:
        """
        Pull up to ``max_messages`` submissions from a RabbitMQ queue.

        Args:
            request: PullRequest with queue name and max_messages
            timeout: Seconds to wait for the first submission

        Returns:
            SubmissionBatch (empty on timeout)
        """
        queue = request["queue"]
        max_messages = max(1, request["max_messages"])

        if self._declare_queues and queue not in self._declared:
            self._channel.queue_declare(queue=queue, durable=True)
            self._declared.add(queue)
        self._channel.basic_qos(prefetch_count=max_messages)

        batch = SubmissionBatch()

        for method, properties, body in self._channel.consume(
            queue=queue,
            auto_ack=False,
            inactivity_timeout=timeout,
        ):
            if method is None:
                break

            batch.submissions.append(
                QueuedSubmission(
                    body=body,
                    delivery_tag=method.delivery_tag,
                    message_id=properties.message_id,
                    redelivered=bool(method.redelivered),
                )
            )
            if len(batch) >= max_messages:
                break

        # Cancel consumer to allow reuse
        self._channel.cancel()

        return batch

    def acknowledge(self, request: AcknowledgeRequest) -> None:
        """
        Acknowledge submissions by their delivery tags.

        Args:
            request: AcknowledgeRequest with queue and delivery_tags
        """
        for delivery_tag in request["delivery_tags"]:
            self._channel.basic_ack(delivery_tag=delivery_tag)

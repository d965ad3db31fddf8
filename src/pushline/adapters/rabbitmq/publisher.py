"""RabbitMQ publisher implementing QueuePublisher protocol."""

from typing import Any, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel

from pushline.models.queue import PublishReceipt


class RabbitMQPublisher:
    """
    RabbitMQ publisher implementing QueuePublisher protocol.

    Topic format: "queue_name" or "exchange_name:routing_key"
    If no routing key provided, publishes directly to queue (default exchange).
    Messages are persistent and tagged as JSON.
    """

    def __init__(self, connection: pika.BlockingConnection, content_type: str = "application/json"):
        self._connection = connection
        self._channel: BlockingChannel = connection.channel()
        self.content_type = content_type

    def publish(
        self,
        topic: str,
        data: bytes,
        message_id: Optional[str] = None,
        headers: Optional[dict[str, Any]] = None,
    ) -> PublishReceipt:
        """
        Publish a message to a RabbitMQ queue or exchange.

        Args:
            topic: Queue name, or "exchange:routing_key" format
            data: Record body as bytes
            message_id: Optional id stored in the AMQP message_id property
            headers: Optional AMQP headers

        Returns:
            PublishReceipt naming the topic and ``message_id``
        """
        if ":" in topic:
            exchange, routing_key = topic.split(":", 1)
        else:
            exchange = ""
            routing_key = topic

        self._channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=data,
            properties=pika.BasicProperties(
                content_type=self.content_type,
                delivery_mode=2,  # Persistent
                message_id=message_id,
                headers=headers,
            ),
        )

        # basic_publish has no broker-assigned id; echo the caller's
        return PublishReceipt(topic=topic, message_id=message_id)

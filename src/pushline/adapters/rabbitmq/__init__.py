"""RabbitMQ adapters for queue intake and dead-lettering."""

from pushline.adapters.rabbitmq.publisher import RabbitMQPublisher
from pushline.adapters.rabbitmq.subscriber import RabbitMQSubscriber

__all__ = ["RabbitMQPublisher", "RabbitMQSubscriber"]

"""Queue consumer feeding push messages into the delivery scheduler."""

import logging
from typing import Type

from pushline.engine.scheduler import DeliveryScheduler
from pushline.exceptions import DuplicateSubmissionError
from pushline.models.message import Message
from pushline.protocols.subscriber import QueueSubscriber

logger = logging.getLogger(__name__)


class SubmissionConsumer:
    """
    Synchronous queue consumer that submits push messages for delivery.

    Responsibilities:
    - Pull submissions from the queue one at a time
    - Parse and validate JSON (using Pydantic)
    - Submit to the delivery scheduler
    - Acknowledge once the scheduler has accepted the message

    The scheduler's handlers are responsible for:
    - Retrying transient gateway failures
    - Reporting final outcomes

    A message that fails validation is not acknowledged and the error propagates,
    leaving redelivery or dead-lettering to the broker.
    """

    def __init__(
        self,
        queue: str,
        scheduler: DeliveryScheduler,
        subscriber: QueueSubscriber,
        message_model: Type[Message] = Message,
        pull_timeout: float = 30.0,
    ):
        """
        Initialize the consumer.

        Args:
            queue: Submission queue to pull from
            scheduler: Running scheduler that accepts the messages
            subscriber: Subscriber adapter for pulling messages
            message_model: Pydantic model used to validate message payloads
            pull_timeout: Seconds each pull waits for a submission
        """
        self.queue = queue
        self.scheduler = scheduler
        self.subscriber = subscriber
        self.message_model = message_model
        self.pull_timeout = pull_timeout
        self._running = False

    def start(self) -> None:
        """Start the message consumer."""
        self._running = True

    def stop(self) -> None:
        """Stop the message consumer."""
        self._running = False

    def process_one_message(self) -> None:
        """
        Process a single submission from the queue.

        This method:
        1. Pulls one submission from the queue
        2. Parses and validates JSON
        3. Submits it to the scheduler
        4. Acknowledges the submission
        """
        batch = self.subscriber.pull(
            request={"queue": self.queue, "max_messages": 1},
            timeout=self.pull_timeout,
        )

        if not batch:
            return

        submission = batch.submissions[0]
        message = self.message_model.model_validate(submission.payload())
        if submission.redelivered:
            logger.info("Message %s was redelivered by the broker", message.message_id)

        try:
            self.scheduler.submit(message)
        except DuplicateSubmissionError:
            # Redelivered by the broker while the first copy is still in flight.
            logger.info("Message %s already being delivered, acknowledging duplicate", message.message_id)

        self.subscriber.acknowledge(
            request={"queue": self.queue, "delivery_tags": [submission.delivery_tag]}
        )

    def run(self) -> None:
        """
        Run the consumer loop.

        Continuously processes submissions from the queue while running.
        Call start() before run(), and stop() to exit the loop.
        """
        while self._running:
            self.process_one_message()

"""Broker-side records for push submissions and dead-letter publishing."""

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, TypedDict


class PullRequest(TypedDict):
    """Which queue to drain and how many submissions to take in one pull."""

    queue: str
    max_messages: int


class AcknowledgeRequest(TypedDict):
    """Submissions to remove from the queue, by broker delivery tag."""

    queue: str
    delivery_tags: list[int]


@dataclass(frozen=True)
class QueuedSubmission:
    """
    A push request pulled from the submission queue and not yet acknowledged.

    ``message_id`` is the AMQP ``message_id`` property set by the producer, and
    ``redelivered`` is the broker's flag for a submission it handed out before.
    """

    body: bytes
    delivery_tag: int
    message_id: Optional[str] = None
    redelivered: bool = False

    def payload(self) -> Any:
        """
        Decode the JSON body.

        When the body names no message id, the AMQP property fills it in so a
        redelivered copy is recognised as the same push.

        Raises:
            json.JSONDecodeError: If the body is not JSON
        """
        data = json.loads(self.body)
        if (
            self.message_id
            and isinstance(data, dict)
            and "messageId" not in data
            and "message_id" not in data
        ):
            data["messageId"] = self.message_id
        return data


@dataclass
class SubmissionBatch:
    """Result of a pull; empty when the queue had nothing within the timeout."""

    submissions: list[QueuedSubmission] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.submissions)

    def __iter__(self) -> Iterator[QueuedSubmission]:
        return iter(self.submissions)


@dataclass(frozen=True)
class PublishReceipt:
    """Where a record was published and the id it was tagged with."""

    topic: str
    message_id: Optional[str] = None

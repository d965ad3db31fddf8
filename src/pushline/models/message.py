"""Push message model."""

import uuid
from typing import Optional

from pydantic import Field

from pushline.models.base import FrozenCamelCaseModel


def _new_message_id() -> str:
    return uuid.uuid4().hex


class Message(FrozenCamelCaseModel):
    """
    A single push notification addressed to one device.

    Immutable once constructed. ``message_id`` identifies the logical message
    inside the delivery engine; it is generated locally when not supplied and is
    never sent to the gateway.
    """

    target: str = Field(min_length=1)
    collapse_key: Optional[str] = None
    data: dict[str, str] = Field(default_factory=dict)
    delay_while_idle: bool = False
    time_to_live: Optional[int] = Field(default=None, ge=0)
    message_id: str = Field(default_factory=_new_message_id, min_length=1)

    def __str__(self) -> str:
        return (
            f"Message(id={self.message_id}, target={self.target}, "
            f"collapse_key={self.collapse_key})"
        )

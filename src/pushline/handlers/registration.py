"""Handler tracking canonical and unregistered device targets."""

import logging
import threading
from typing import Callable, Optional

from pushline.models.attempt import DeliveryAttempt
from pushline.models.message import Message
from pushline.models.response import ErrorKind, ErrorResponse, Response, SuccessResponse

logger = logging.getLogger(__name__)

DEAD_TARGET_KINDS = frozenset({ErrorKind.NOT_REGISTERED, ErrorKind.INVALID_REGISTRATION})


class RegistrationTracker:
    """
    Filter and observer for the device registration lifecycle.

    As an observer it records canonical registration ids returned with a success
    and targets the gateway reports as unregistered or invalid. As a filter it
    vetoes further messages to those dead targets.
    """

    def __init__(
        self,
        on_replaced: Optional[Callable[[str, str], None]] = None,
        on_unregistered: Optional[Callable[[str, ErrorKind], None]] = None,
    ):
        """
        Args:
            on_replaced: Called with (old_target, new_target) for canonical ids
            on_unregistered: Called with (target, kind) when a target is dead
        """
        self.on_replaced = on_replaced
        self.on_unregistered = on_unregistered
        self._lock = threading.Lock()
        self._unregistered: set[str] = set()
        self._replacements: dict[str, str] = {}

    def accept(self, message: Message) -> bool:
        with self._lock:
            return message.target not in self._unregistered

    def on_response(self, response: Response, attempt: DeliveryAttempt) -> bool:
        target = response.message.target
        if isinstance(response, SuccessResponse):
            replacement = response.replacement_target
            if replacement and replacement != target:
                with self._lock:
                    self._replacements[target] = replacement
                logger.info("Target %s replaced by canonical id %s", target, replacement)
                if self.on_replaced is not None:
                    self.on_replaced(target, replacement)
        elif isinstance(response, ErrorResponse) and response.kind in DEAD_TARGET_KINDS:
            with self._lock:
                self._unregistered.add(target)
            logger.info("Target %s is no longer deliverable: %s", target, response.kind.value)
            if self.on_unregistered is not None:
                self.on_unregistered(target, response.kind)
        return False

    def on_failure(self, error: Exception, attempt: DeliveryAttempt) -> bool:
        return False

    def replacement_for(self, target: str) -> Optional[str]:
        with self._lock:
            return self._replacements.get(target)

    def is_unregistered(self, target: str) -> bool:
        with self._lock:
            return target in self._unregistered

    def forget(self, target: str) -> None:
        """Drop everything recorded about ``target`` (e.g. after the device re-registers)."""
        with self._lock:
            self._unregistered.discard(target)
            self._replacements.pop(target, None)

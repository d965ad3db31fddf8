"""Ordered chain of message filters and response observers."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable

from pushline.models.attempt import DeliveryAttempt
from pushline.models.message import Message
from pushline.models.response import Response
from pushline.protocols.handler import MessageFilter, ResponseObserver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Registration:
    handler: Any
    is_filter: bool
    is_observer: bool


class HandlerChain:
    """
    Handlers evaluated in registration order.

    A handler may be a :class:`MessageFilter`, a :class:`ResponseObserver`, or
    both. Filters stop at the first veto; observers stop at the first one that
    reports the outcome as handled.

    A handler that raises is logged and skipped as if it had accepted the message
    or left the outcome unhandled, so no exception escapes into the worker.
    """

    def __init__(self, handlers: Iterable[Any] = ()):
        self._lock = threading.Lock()
        self._registrations: tuple[_Registration, ...] = ()
        for handler in handlers:
            self.register(handler)

    @property
    def handlers(self) -> list[Any]:
        return [registration.handler for registration in self._registrations]

    def register(self, handler: Any) -> None:
        """
        Append a handler to the end of the chain.

        Raises:
            TypeError: If the handler is neither a filter nor an observer
        """
        registration = _Registration(
            handler=handler,
            is_filter=isinstance(handler, MessageFilter),
            is_observer=isinstance(handler, ResponseObserver),
        )
        if not (registration.is_filter or registration.is_observer):
            raise TypeError(
                f"{type(handler).__name__} implements neither MessageFilter nor ResponseObserver"
            )
        with self._lock:
            self._registrations = self._registrations + (registration,)

    def unregister(self, handler: Any) -> bool:
        """Remove a handler; returns False if it was not registered."""
        with self._lock:
            remaining = tuple(r for r in self._registrations if r.handler is not handler)
            removed = len(remaining) != len(self._registrations)
            self._registrations = remaining
        return removed

    def accept(self, message: Message) -> bool:
        """Run the filters; False as soon as one vetoes the message."""
        for registration in self._registrations:
            if not registration.is_filter:
                continue
            try:
                accepted = registration.handler.accept(message)
            except Exception:
                logger.exception(
                    "Filter %s failed on %s", type(registration.handler).__name__, message
                )
                continue
            if not accepted:
                logger.warning(
                    "Message %s vetoed by %s", message.message_id, type(registration.handler).__name__
                )
                return False
        return True

    def on_response(self, response: Response, attempt: DeliveryAttempt) -> bool:
        """Run the observers on a response; True if one of them handled it."""
        for registration in self._registrations:
            if not registration.is_observer:
                continue
            try:
                handled = registration.handler.on_response(response, attempt)
            except Exception:
                logger.exception(
                    "Observer %s failed on %s", type(registration.handler).__name__, response
                )
                continue
            if handled:
                return True
        return False

    def on_failure(self, error: Exception, attempt: DeliveryAttempt) -> bool:
        """Run the observers on a push failure; True if one of them handled it."""
        for registration in self._registrations:
            if not registration.is_observer:
                continue
            try:
                handled = registration.handler.on_failure(error, attempt)
            except Exception:
                logger.exception(
                    "Observer %s failed handling %r", type(registration.handler).__name__, error
                )
                continue
            if handled:
                return True
        return False

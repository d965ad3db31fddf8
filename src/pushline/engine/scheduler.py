"""Asynchronous delivery scheduler."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Optional, Union

from pushline.engine.chain import HandlerChain
from pushline.engine.timer import RetryTimer
from pushline.exceptions import (
    DuplicateSubmissionError,
    MessageVetoedError,
    PushTransportError,
    SchedulerNotRunningError,
    UnexpectedResponseError,
)
from pushline.models.attempt import AttemptState, DeliveryAttempt
from pushline.models.message import Message
from pushline.models.response import Response
from pushline.protocols.gateway import PushGateway
from pushline.protocols.timer import Timer

logger = logging.getLogger(__name__)


class DeliveryScheduler:
    """
    Delivers messages through a push gateway on a bounded pool of worker threads.

    Responsibilities:
    - Accept messages without blocking the caller
    - Run filters, push once, then run observers for every attempt
    - Re-submit messages whose observers requested a retry, via the timer
    - Honour cancellation and shutdown

    Handlers are responsible for:
    - Deciding whether and when to retry (see RetryPolicyHandler)
    - Reporting final outcomes to the caller

    Attempts of one message are strictly sequential: a retry is armed only after
    every observer has seen the previous outcome. Exceptions raised by the gateway
    reach observers through ``on_failure`` and never propagate out of a worker. A
    vetoed message is reported the same way, with a ``MessageVetoedError``.
    """

    def __init__(
        self,
        gateway: PushGateway,
        handlers: Optional[HandlerChain] = None,
        max_workers: int = 4,
        timer: Optional[Timer] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            gateway: Synchronous push primitive, safe for ``max_workers`` threads
            handlers: Handler chain run around every push
            max_workers: Number of attempts that may be in flight at once
            timer: Timer firing delayed retries; a RetryTimer by default
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.gateway = gateway
        self.handlers = handlers if handlers is not None else HandlerChain()
        self.max_workers = max_workers
        self.timer = timer if timer is not None else RetryTimer()
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._attempts: dict[str, DeliveryAttempt] = {}
        self._timer_handles: dict[str, Any] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._running = False

    def __enter__(self) -> "DeliveryScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    def start(self) -> None:
        """Start the worker pool and retry timer."""
        with self._lock:
            if self._running:
                return
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="pushline-worker"
            )
            self.timer.start()
            self._running = True
        logger.info("Delivery scheduler started with %d workers", self.max_workers)

    def stop(self, wait: bool = True) -> None:
        """
        Stop accepting messages and shut down.

        Scheduled retries are discarded. Attempts already queued or in flight run
        to completion (bounded by the gateway's own timeout) but are not retried.

        Args:
            wait: Block until in-flight attempts have finished
        """
        with self._lock:
            executor = self._executor
            if not self._running and executor is None:
                return
            self._running = False
            self._executor = None
            scheduled = [
                attempt
                for attempt in self._attempts.values()
                if attempt.state == AttemptState.SCHEDULED_RETRY
            ]
            for attempt in scheduled:
                self._finish(attempt, AttemptState.CANCELLED)
            self._timer_handles.clear()

        self.timer.stop()
        if executor is not None:
            executor.shutdown(wait=wait)
        logger.info(
            "Delivery scheduler stopped, discarded %d scheduled retries", len(scheduled)
        )

    @property
    def running(self) -> bool:
        return self._running

    def submit(self, message: Message) -> DeliveryAttempt:
        """
        Queue a message for delivery and return immediately.

        The final outcome is reported only to the registered observers; the
        returned attempt is a live view for inspection and cancellation.

        Raises:
            SchedulerNotRunningError: If the scheduler is not running
            DuplicateSubmissionError: If the message is still being delivered
        """
        with self._lock:
            if not self._running:
                raise SchedulerNotRunningError("Delivery scheduler is not running")
            if message.message_id in self._attempts:
                raise DuplicateSubmissionError(message.message_id)
            attempt = DeliveryAttempt(message)
            self._attempts[message.message_id] = attempt
            self._dispatch(attempt)
        logger.debug("Submitted %s", message)
        return attempt

    def cancel(self, message: Union[Message, str]) -> bool:
        """
        Cancel delivery of a message.

        A pending or scheduled attempt is dropped immediately. An in-flight attempt
        finishes its request, but its result is discarded and it is not retried.

        Returns:
            False if the message is not being delivered
        """
        message_id = message.message_id if isinstance(message, Message) else message
        with self._lock:
            attempt = self._attempts.get(message_id)
            if attempt is None or attempt.is_terminal:
                return False
            attempt.cancelled = True
            if attempt.state == AttemptState.SCHEDULED_RETRY:
                handle = self._timer_handles.pop(message_id, None)
                if handle is not None:
                    self.timer.cancel(handle)
                self._finish(attempt, AttemptState.CANCELLED)
            elif attempt.state == AttemptState.PENDING:
                self._finish(attempt, AttemptState.CANCELLED)
        logger.info("Cancelled delivery of message %s", message_id)
        return True

    def is_active(self, message: Union[Message, str]) -> bool:
        message_id = message.message_id if isinstance(message, Message) else message
        with self._lock:
            return message_id in self._attempts

    def active_attempts(self) -> list[DeliveryAttempt]:
        with self._lock:
            return list(self._attempts.values())

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until no message is pending, in flight or scheduled; False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._attempts, timeout=timeout)

    def _dispatch(self, attempt: DeliveryAttempt) -> None:
        # Caller holds self._lock.
        attempt.state = AttemptState.PENDING
        if self._executor is None:
            self._finish(attempt, AttemptState.CANCELLED)
            return
        self._executor.submit(self._process, attempt)

    def _process(self, attempt: DeliveryAttempt) -> None:
        with self._lock:
            if attempt.cancelled or attempt.is_terminal:
                self._finish(attempt, AttemptState.CANCELLED)
                return
            attempt.state = AttemptState.IN_FLIGHT
            attempt.clear_retry()

        message = attempt.message
        if not self.handlers.accept(message):
            attempt.vetoed = True
            vetoed = MessageVetoedError(message.message_id)
            attempt.record_outcome(vetoed)
            self.handlers.on_failure(vetoed, attempt)
            # A veto is final whatever the observers asked for.
            attempt.clear_retry()
            with self._lock:
                self._finish(attempt, AttemptState.TERMINAL_FAILED)
            return

        outcome: Union[Response, Exception]
        try:
            outcome = self.gateway.push(message)
        except (UnexpectedResponseError, PushTransportError) as error:
            logger.warning("Push of %s failed: %s", message, error)
            outcome = error
        except Exception as error:
            logger.exception("Gateway raised while pushing %s", message)
            outcome = error

        if attempt.cancelled:
            logger.info("Discarding outcome for cancelled message %s", message.message_id)
            with self._lock:
                self._finish(attempt, AttemptState.CANCELLED)
            return

        attempt.record_outcome(outcome)
        if isinstance(outcome, Response):
            handled = self.handlers.on_response(outcome, attempt)
        else:
            handled = self.handlers.on_failure(outcome, attempt)

        with self._lock:
            self._complete(attempt, outcome, handled)

    def _complete(
        self, attempt: DeliveryAttempt, outcome: Union[Response, Exception], handled: bool
    ) -> None:
        # Caller holds self._lock.
        if isinstance(outcome, Response) and outcome.is_success:
            self._finish(attempt, AttemptState.SUCCEEDED)
        elif attempt.cancelled:
            self._finish(attempt, AttemptState.CANCELLED)
        elif attempt.retry_requested and not handled:
            if not self._running:
                logger.info(
                    "Dropping retry of %s, scheduler is shutting down", attempt.message_id
                )
                self._finish(attempt, AttemptState.CANCELLED)
                return
            try:
                handle = self.timer.schedule(
                    attempt.retry_delay, partial(self._on_timer, attempt)
                )
            except Exception:
                logger.exception("Could not schedule retry of %s", attempt.message_id)
                self._finish(attempt, AttemptState.CANCELLED)
                return
            attempt.state = AttemptState.SCHEDULED_RETRY
            self._timer_handles[attempt.message_id] = handle
            logger.info(
                "Retrying %s in %.3fs (attempt %d)",
                attempt.message,
                attempt.retry_delay,
                attempt.attempts + 1,
            )
        else:
            self._finish(attempt, AttemptState.TERMINAL_FAILED)

    def _on_timer(self, attempt: DeliveryAttempt) -> None:
        with self._lock:
            self._timer_handles.pop(attempt.message_id, None)
            if attempt.is_terminal:
                return
            if attempt.cancelled or not self._running:
                self._finish(attempt, AttemptState.CANCELLED)
                return
            attempt.attempts += 1
            self._dispatch(attempt)

    def _finish(self, attempt: DeliveryAttempt, state: AttemptState) -> None:
        # Caller holds self._lock.
        if attempt.is_terminal:
            return
        attempt.state = state
        if self._attempts.get(attempt.message_id) is attempt:
            del self._attempts[attempt.message_id]
        if state == AttemptState.TERMINAL_FAILED:
            logger.warning(
                "Delivery of %s failed after %d attempt(s)", attempt.message, attempt.attempts
            )
        else:
            logger.debug("Delivery of %s finished: %s", attempt.message, state.value)
        self._idle.notify_all()

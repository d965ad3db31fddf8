"""Exceptions raised by pushline."""


class PushlineError(Exception):
    """Base class for every pushline error."""


class UnexpectedResponseError(PushlineError):
    """The gateway reply does not match any known response shape."""


class PushTransportError(PushlineError, IOError):
    """The push primitive could not complete the request (network or I/O failure)."""


class SchedulerNotRunningError(PushlineError, RuntimeError):
    """A message was submitted to a scheduler that is not accepting work."""


class DuplicateSubmissionError(PushlineError, ValueError):
    """A message was submitted while a previous submission of it is still live."""

    def __init__(self, message_id: str):
        super().__init__(f"Message {message_id} is already being delivered")
        self.message_id = message_id


class MessageVetoedError(PushlineError):
    """A filter refused the message, so it was never pushed."""

    def __init__(self, message_id: str):
        super().__init__(f"Message {message_id} was vetoed by a filter")
        self.message_id = message_id

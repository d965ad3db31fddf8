"""Timer protocol used by the scheduler for delayed retries."""

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class Timer(Protocol):
    """Fires callbacks after a delay without holding a worker thread."""

    def start(self) -> None:
        ...

    def stop(self) -> int:
        """Stop firing and discard everything still scheduled; return the discarded count."""
        ...

    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run ``callback`` once, ``delay`` seconds from now; return a cancellable handle."""
        ...

    def cancel(self, handle: Any) -> bool:
        """Cancel a scheduled callback; return False if it already fired or was cancelled."""
        ...

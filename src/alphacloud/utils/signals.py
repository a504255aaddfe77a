"""Minimal synchronous signal/listener implementation."""

from collections.abc import Callable
from typing import Any


class Signal:
    """A list of callbacks invoked in connection order on ``emit``."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register a callback.

        Args:
            callback: Called with the emitted arguments.

        Returns:
            A callable that removes the callback again.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            self.disconnect(callback)

        return unsubscribe

    def disconnect(self, callback: Callable[..., Any] | None = None) -> None:
        """Remove a callback, or every callback when none is given."""
        if callback is None:
            self._callbacks.clear()
            return
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        # Snapshot, callbacks may disconnect themselves.
        for callback in list(self._callbacks):
            callback(*args)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"<Signal {self.name!r} listeners={len(self._callbacks)}>"

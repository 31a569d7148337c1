"""Interfaces the focus controller drives: a periodic ticker and a session window."""

from typing import Callable, Protocol


class Ticker(Protocol):
    """Calls a function roughly once per interval until cancelled."""

    def start(self, callback: Callable[[], None], interval_seconds: float = 1.0) -> None:
        """Begin ticking, replacing any previous schedule."""
        ...

    def cancel(self) -> None:
        """Stop ticking. Safe to call when not running."""
        ...


class FocusPresenter(Protocol):
    """The dedicated surface that shows a running or finished session."""

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...

"""Focus session controller - the one timer every surface observes.

The controller owns the only live FocusSession. Surfaces talk to it through
commands (directly or via FocusCommandRouter's ``focus:*`` channels) and
receive the full session on every transition. Closing a surface never stops
a session; only stop/close-complete do.
"""

import logging
import threading
import time
from typing import Callable

from .core.focus import IDLE_SESSION, MS_PER_MINUTE, FocusSession, FocusStatus
from .core.sessions import (
    DEFAULT_SESSION_EXTENSION_MINUTES,
    DEFAULT_SESSION_LENGTH_MINUTES,
    resolve_session_length,
)
from .errors import ValidationError
from .ports.focus_surface import FocusPresenter, Ticker

logger = logging.getLogger(__name__)

FOCUS_TRIGGER_SOURCE = "commitment-card"
STATE_CHANNEL = "focus:state"

Listener = Callable[[FocusSession], None]


def epoch_ms() -> int:
    return time.time_ns() // 1_000_000


class _NoopTicker:
    def start(self, callback: Callable[[], None], interval_seconds: float = 1.0) -> None:
        pass

    def cancel(self) -> None:
        pass


class FocusSessionController:
    """
    idle -> running -> complete -> idle (stop/close) or running (continue/extend).

    Commands and ticks are serialized by one lock. Bad input is clamped or
    answered with False; nothing here raises to the caller.
    """

    def __init__(
        self,
        clock: Callable[[], int] = epoch_ms,
        ticker: Ticker | None = None,
        presenter: FocusPresenter | None = None,
        default_session_minutes: int = DEFAULT_SESSION_LENGTH_MINUTES,
        default_extension_minutes: int = DEFAULT_SESSION_EXTENSION_MINUTES,
        tick_interval_seconds: float = 1.0,
    ):
        self.clock = clock
        self.ticker = ticker or _NoopTicker()
        self.presenter = presenter
        self.default_session_minutes = resolve_session_length(default_session_minutes)
        self.default_extension_minutes = resolve_session_length(
            default_extension_minutes, DEFAULT_SESSION_EXTENSION_MINUTES
        )
        self.tick_interval_seconds = tick_interval_seconds
        self._session = IDLE_SESSION
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    # ============== Observation ==============

    def get_state(self) -> FocusSession:
        """Current session, for surfaces hydrating before the next push."""
        with self._lock:
            return self._session

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for every transition. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ============== Commands ==============

    def start(
        self,
        commitment_id: str,
        commitment_title: str,
        session_length_minutes: int | None = None,
        source: str | None = FOCUS_TRIGGER_SOURCE,
    ) -> bool:
        if source != FOCUS_TRIGGER_SOURCE:
            logger.warning(f"Ignoring focus start from unrecognized source {source!r}")
            return False

        commitment_id = commitment_id.strip() if isinstance(commitment_id, str) else ""
        commitment_title = commitment_title.strip() if isinstance(commitment_title, str) else ""
        if not commitment_id or not commitment_title:
            return False

        minutes = resolve_session_length(session_length_minutes, self.default_session_minutes)
        with self._lock:
            self._begin(commitment_id, commitment_title, minutes)
        return True

    def tick(self) -> None:
        with self._lock:
            session = self._session
            if session.status is not FocusStatus.RUNNING or session.ends_at is None:
                return

            now = self.clock()
            if now >= session.ends_at:
                self._session = session.with_changes(status=FocusStatus.COMPLETE, ends_at=now)
                self.ticker.cancel()
                logger.info(f"Focus session complete: {session.commitment_title}")
                self._present("show")
            self._broadcast()

    def stop(self) -> None:
        with self._lock:
            self.ticker.cancel()
            self._session = IDLE_SESSION
            self._present("hide")
            self._broadcast()
        logger.info("Focus session stopped")

    def close_complete(self) -> None:
        """Acknowledge a finished session."""
        self.stop()

    def continue_session(self) -> bool:
        """Run another block on the last commitment."""
        with self._lock:
            session = self._session
            if not session.has_commitment:
                return False
            self._begin(
                session.commitment_id,
                session.commitment_title,
                session.session_length_minutes or self.default_session_minutes,
            )
        return True

    def extend(self, minutes: int | None = None) -> bool:
        """Push the end time out; also revives a complete session."""
        extra = resolve_session_length(minutes, self.default_extension_minutes)
        with self._lock:
            session = self._session
            if not session.has_commitment:
                return False

            now = self.clock()
            base_end = session.ends_at if session.ends_at is not None else now
            self._session = session.with_changes(
                status=FocusStatus.RUNNING,
                session_length_minutes=(session.session_length_minutes or self.default_session_minutes)
                + extra,
                started_at=session.started_at if session.started_at is not None else now,
                ends_at=max(now, base_end) + extra * MS_PER_MINUTE,
            )
            self._present("show")
            self.ticker.start(self.tick, self.tick_interval_seconds)
            self._broadcast()
        logger.info(f"Focus session extended by {extra}m")
        return True

    # ============== Internals ==============

    def _begin(self, commitment_id: str, commitment_title: str, minutes: int) -> None:
        now = self.clock()
        self._session = FocusSession(
            status=FocusStatus.RUNNING,
            commitment_id=commitment_id,
            commitment_title=commitment_title,
            session_length_minutes=minutes,
            started_at=now,
            ends_at=now + minutes * MS_PER_MINUTE,
        )
        logger.info(f"Focus session started: {commitment_title} ({minutes}m)")
        self._present("show")
        self.ticker.start(self.tick, self.tick_interval_seconds)
        self._broadcast()

    def _present(self, action: str) -> None:
        if self.presenter is None:
            return
        try:
            getattr(self.presenter, action)()
        except Exception as e:
            logger.error(f"Focus presenter failed to {action}: {e}")

    def _broadcast(self) -> None:
        session = self._session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                logger.error(f"Focus listener {listener!r} failed: {e}")


class FocusCommandRouter:
    """Request/response ``focus:*`` channels plus the ``focus:state`` push."""

    def __init__(self, controller: FocusSessionController):
        self.controller = controller

    def handle(self, channel: str, payload: dict | None = None) -> dict:
        payload = payload if isinstance(payload, dict) else {}
        controller = self.controller

        match channel:
            case "focus:start":
                ok = controller.start(
                    payload.get("commitment_id"),
                    payload.get("commitment_title"),
                    payload.get("session_length_minutes"),
                    source=payload.get("source"),
                )
                return {"ok": ok}
            case "focus:get-state":
                return controller.get_state().to_payload()
            case "focus:stop":
                controller.stop()
                return {"ok": True}
            case "focus:continue":
                return {"ok": controller.continue_session()}
            case "focus:close-complete":
                controller.close_complete()
                return {"ok": True}
            case "focus:extend":
                return {"ok": controller.extend(payload.get("minutes"))}
            case _:
                raise ValidationError(f"Unknown focus channel: {channel}")

    def subscribe(self, push: Callable[[str, dict], None]) -> Callable[[], None]:
        """Deliver every transition to ``push(channel, payload)``."""
        return self.controller.subscribe(lambda session: push(STATE_CHANNEL, session.to_payload()))

"""Transient notification state for admin screens.

An ``AlertChannel`` is created per UI session and handed to whatever needs to
raise or render notifications. It holds at most one alert and moves it through
show -> auto-dismiss (floating alerts, once their duration has elapsed) -> clear
on navigation.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


class AlertType(str, Enum):
    ERROR = "error"
    SUCCESS = "success"


class AlertVariant(str, Enum):
    INLINE = "inline"
    FLOATING = "floating"


ERROR_DURATION_MS = 5000
SUCCESS_DURATION_MS = 3000


@dataclass(frozen=True)
class Alert:
    message: str
    type: AlertType
    variant: AlertVariant
    duration_ms: int
    shown_at: float

    def expires_at(self) -> float:
        return self.shown_at + self.duration_ms / 1000.0


Listener = Callable[[Optional[Alert]], None]


class AlertChannel:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._current: Optional[Alert] = None
        self._path: Optional[str] = None
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self._current)

    def error(self, message: str, variant: AlertVariant = AlertVariant.INLINE,
              duration_ms: int = ERROR_DURATION_MS) -> Alert:
        return self._show(message, AlertType.ERROR, variant, duration_ms)

    def success(self, message: str, variant: AlertVariant = AlertVariant.INLINE,
                duration_ms: int = SUCCESS_DURATION_MS) -> Alert:
        return self._show(message, AlertType.SUCCESS, variant, duration_ms)

    def _show(self, message: str, alert_type: AlertType, variant: AlertVariant, duration_ms: int) -> Alert:
        self._current = Alert(
            message=message,
            type=alert_type,
            variant=AlertVariant(variant),
            duration_ms=duration_ms,
            shown_at=self._clock(),
        )
        self._publish()
        return self._current

    @property
    def current(self) -> Optional[Alert]:
        """The visible alert, after applying auto-dismissal."""
        self.tick()
        return self._current

    @property
    def is_visible(self) -> bool:
        return self.current is not None

    def tick(self) -> None:
        # Inline alerts stay until cleared; floating ones dismiss themselves
        alert = self._current
        if alert and alert.variant is AlertVariant.FLOATING and self._clock() >= alert.expires_at():
            self.clear()

    def progress(self) -> float:
        """Remaining share of a floating alert's lifetime, 100 -> 0."""
        alert = self.current
        if alert is None:
            return 0.0
        if alert.variant is not AlertVariant.FLOATING:
            return 100.0
        elapsed_ms = (self._clock() - alert.shown_at) * 1000.0
        return max(0.0, 100.0 - elapsed_ms / alert.duration_ms * 100.0)

    def clear_on_navigation(self, path: str) -> None:
        if self._path is not None and path != self._path:
            self.clear()
        self._path = path

    def clear(self) -> None:
        if self._current is None:
            return
        self._current = None
        self._publish()

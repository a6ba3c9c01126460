from logging import Logger
from threading import RLock
from typing import Optional

from config.config import config
from models.models import InterfaceStatus, LedPattern

INDICATOR_CONFIG = config.get("indicator")
LED_NAME = str(INDICATOR_CONFIG.get("led"))

STATUS_PATTERNS = {
    InterfaceStatus.STATIC: LedPattern.SOLID,
    InterfaceStatus.BOUND: LedPattern.SOLID,
    InterfaceStatus.IP4LL: LedPattern.SLOW_BLINK_ALTERNATE,
    InterfaceStatus.REQUEST: LedPattern.HEARTBEAT_PULSE,
}


def pattern_for_status(status: InterfaceStatus | str) -> LedPattern:
    """Map an interface status onto a status-light pattern, slow blink otherwise."""
    try:
        return STATUS_PATTERNS.get(InterfaceStatus(status), LedPattern.SLOW_BLINK)
    except ValueError:
        return LedPattern.SLOW_BLINK


class StatusIndicator:
    """Holds the pattern the status light should show.

    Rendering is someone else's job: this only records and logs the
    directive so a light driver can pick it up through `pattern`.
    """

    def __init__(self, logger: Logger, led: str = LED_NAME):
        self.logger = logger
        self.led = led
        self._lock = RLock()
        self._pattern: Optional[LedPattern] = None

    @property
    def pattern(self) -> Optional[LedPattern]:
        with self._lock:
            return self._pattern

    def show_status(self, status: InterfaceStatus | str) -> LedPattern:
        _pattern = pattern_for_status(status)
        with self._lock:
            self._pattern = _pattern
        self.logger.debug("Led %s set to %s for status %s.", self.led, _pattern.value, status)
        return _pattern

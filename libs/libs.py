from threading import RLock, Timer
from typing import Any, Callable, Dict, Hashable


class TimerScheduler:
    """Thread-safe registry of one-shot delayed callbacks.

    At most one timer is pending per key: scheduling a key that is already
    pending cancels the earlier timer first. Callbacks run on the timer
    thread, so callers are expected to hand work off (e.g. enqueue it)
    rather than do it there.

    Example:
        scheduler = TimerScheduler()
        scheduler.schedule("lease_expired", 120, inbox.put, event)
    """

    def __init__(self, daemon: bool = True):
        self._lock = RLock()
        self._timers: Dict[Hashable, Timer] = {}
        self._daemon = daemon

    def schedule(self, key: Hashable, delay: float, callback: Callable, *args: Any) -> None:
        """Run callback(*args) once after delay seconds."""
        if delay < 0:
            raise ValueError("Delay must be >= 0.")

        with self._lock:
            self._cancel(key)
            _timer = Timer(delay, lambda: self._fire(key, _timer, callback, args))
            _timer.daemon = self._daemon
            self._timers[key] = _timer
            _timer.start()

    def _fire(self, key: Hashable, timer: Timer, callback: Callable, args: tuple) -> None:
        with self._lock:
            if self._timers.get(key) is not timer:
                return
            del self._timers[key]
        callback(*args)

    def _cancel(self, key: Hashable) -> bool:
        _timer = self._timers.pop(key, None)
        if _timer is None:
            return False
        _timer.cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            for _key in list(self._timers):
                self._cancel(_key)


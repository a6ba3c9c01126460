from copy import deepcopy
from logging import Logger
from threading import RLock
from typing import Any, Callable, Dict, List, Tuple

TopicPath = Tuple[str, ...]
Subscriber = Callable[[TopicPath, Dict[str, Any]], None]


def interface_topic(interface: str) -> TopicPath:
    """Topic the configuration of interface is announced under."""
    return ("sys", "ip", interface)


class StatusHub:
    """Thread-safe status topic store.

    Each `put` merges a change set into the record kept under its path and
    hands the change set to every subscriber. Subscriber failures are logged
    and do not stop delivery to the others.
    """

    def __init__(self, logger: Logger):
        self.logger = logger
        self._lock = RLock()
        self._records: Dict[TopicPath, Dict[str, Any]] = {}
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def put(self, path: TopicPath, changes: Dict[str, Any]) -> None:
        """Merge changes under path and notify subscribers."""
        with self._lock:
            self._records.setdefault(path, {}).update(deepcopy(changes))
            _subscribers = list(self._subscribers)

        self.logger.debug("%s <- %s", "/".join(path), changes)
        for _subscriber in _subscribers:
            try:
                _subscriber(path, deepcopy(changes))
            except Exception as err:
                self.logger.error("Status subscriber failed on %s: %s", path, err)

    def get(self, path: TopicPath) -> Dict[str, Any]:
        """Merged record under path, empty if nothing was published."""
        with self._lock:
            return deepcopy(self._records.get(path, {}))

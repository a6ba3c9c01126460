from functools import partial
from logging import Logger
from typing import Any, Callable, Dict, Optional, Tuple

from models.models import Event, EventType, RemoteCommand, RemoteResource, RemoteVerb
from services.ethernet.manager import ConfigManager


class RemoteCommandRouter:
    """
    Maps decoded remote commands onto ConfigManager operations.

    | verb   | resource      | operation                    |
    |--------|---------------|------------------------------|
    | put    | sys/ip/static | apply_remote_static_put      |
    | put    | sys/ip/auto   | apply_remote_auto_put        |
    | delete | sys/ip/static | apply_remote_static_delete   |
    | delete | sys/ip/auto   | apply_remote_auto_delete     |

    Any other (verb, resource) pair is logged and ignored.
    """

    def __init__(self, manager: ConfigManager, logger: Logger):
        self.manager = manager
        self.logger = logger
        self._routes: Dict[Tuple[str, str], Callable[[Dict[str, str]], Any]] = {
            (RemoteVerb.PUT.value, RemoteResource.STATIC_IP.value): manager.apply_remote_static_put,
            (RemoteVerb.PUT.value, RemoteResource.AUTO_IP.value): manager.apply_remote_auto_put,
            (RemoteVerb.DELETE.value, RemoteResource.STATIC_IP.value): lambda _params: manager.apply_remote_static_delete(),
            (RemoteVerb.DELETE.value, RemoteResource.AUTO_IP.value): lambda _params: manager.apply_remote_auto_delete(),
        }

    def resolve(self, command: RemoteCommand) -> Optional[Callable[[], Any]]:
        """Bound operation for command, None when nothing handles it."""
        _operation = self._routes.get((command.verb.lower(), command.resource.strip("/").lower()))
        if _operation is None:
            self.logger.info("Ignoring unsupported remote command %r.", command)
            return None
        return partial(_operation, dict(command.parameters))

    def submit(self, command: RemoteCommand) -> bool:
        """Queue the command on the manager inbox."""
        _action = self.resolve(command)
        if _action is None:
            return False
        return self.manager.post(Event(EventType.REMOTE_COMMAND, _action))

from logging import Logger
from subprocess import run
from typing import Optional

from utils.net_utils import netmask_to_prefix

IP_BINARY = "ip"


class InterfaceApplier:
    """Pushes a resolved configuration to the OS with iproute2.

    Commands are fire-and-forget: failures are logged and otherwise ignored,
    nothing is retried and nothing is raised to the caller.
    """

    def __init__(self, logger: Logger, binary: str = IP_BINARY):
        self.logger = logger
        self.binary = binary

    def _run(self, *args: str) -> bool:
        _command = [self.binary, *args]
        try:
            _result = run(_command, capture_output=True, text=True, check=False)
        except OSError as err:
            self.logger.error("Failed running '%s': %s", " ".join(_command), err)
            return False

        if _result.returncode != 0:
            self.logger.warning(
                "'%s' exited %s: %s",
                " ".join(_command),
                _result.returncode,
                _result.stderr.strip(),
            )
            return False
        return True

    def link_up(self, interface: str) -> bool:
        return self._run("link", "set", interface, "up")

    def apply(
        self,
        interface: str,
        address: Optional[str],
        mask: Optional[str],
        router: Optional[str] = None,
    ) -> None:
        """Replace the addresses of interface with address/mask.

        Does nothing unless both address and mask are given. A default route
        via router is added when router is set.
        """
        if not (address and mask):
            return

        self.logger.info(
            "Setting up interface %s with ip:%s mask:%s router:%s.",
            interface,
            address,
            mask,
            router,
        )
        self._run("addr", "flush", "dev", interface)
        self._run("addr", "add", f"{address}/{netmask_to_prefix(mask)}", "dev", interface)
        if router:
            self._run("route", "add", "default", "via", router, "dev", interface)

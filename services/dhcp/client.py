from logging import Logger
from pathlib import Path
from subprocess import PIPE, STDOUT, run

from config.config import config
from models.models import LeaseRecord
from services.dhcp.utils import UDHCPC_SCRIPT, parse_lease_output

DHCP_CLIENT_CONFIG = config.get("dhcp_client")
UDHCPC_BINARY = str(DHCP_CLIENT_CONFIG.get("binary"))
UDHCPC_SCRIPT_PATH = Path(DHCP_CLIENT_CONFIG.get("script_path"))


class DhcpClient:
    """
    Runs the external udhcpc client and turns its output into a lease record.

    udhcpc is invoked in the foreground (-f), quits once a lease is obtained
    (-q) and exits instead of retrying forever when none is (-n). The call
    blocks the caller until udhcpc exits; its own timeouts are the only ones.

    Usage:
        1. `install_script()` once at startup so udhcpc has a script to call.
        2. `request(interface, hostname)` per DHCP attempt.
    """

    def __init__(
        self,
        logger: Logger,
        binary: str = UDHCPC_BINARY,
        script_path: Path = UDHCPC_SCRIPT_PATH,
    ):
        self.logger = logger
        self.binary = binary
        self.script_path = script_path

    def install_script(self) -> None:
        """Write the helper script udhcpc calls on every phase."""
        self.script_path.parent.mkdir(parents=True, exist_ok=True)
        self.script_path.write_text(UDHCPC_SCRIPT, encoding="utf-8")
        self.script_path.chmod(0o777)
        self.logger.debug("udhcpc script written to %s.", self.script_path)

    def build_command(self, interface: str, hostname: str) -> list[str]:
        return [
            self.binary,
            "-n",
            "-q",
            "-f",
            "-s",
            str(self.script_path),
            f"--interface={interface}",
            "-x",
            f"hostname:{hostname}",
        ]

    def request(self, interface: str, hostname: str) -> LeaseRecord:
        """Run one DHCP attempt.
        Returns:
            LeaseRecord: Parsed lease, empty if udhcpc could not be run or printed nothing.
        """
        self.logger.info("Making dhcp request from '%s' on %s.", hostname, interface)
        try:
            _result = run(
                self.build_command(interface, hostname),
                stdout=PIPE,
                stderr=STDOUT,
                text=True,
                check=False,
            )
        except OSError as err:
            self.logger.error("Could not run %s: %s", self.binary, err)
            return {}

        self.logger.debug("udhcpc exited %s, output: %r", _result.returncode, _result.stdout)
        return parse_lease_output(_result.stdout or "")

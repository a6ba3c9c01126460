from copy import deepcopy
from enum import Enum
from logging import Logger
from pathlib import Path
from queue import Empty, Queue
from threading import Event as ThreadEvent
from threading import RLock, Thread
from typing import Any, Dict, Optional

from pydantic import ValidationError

from config.config import config, load_static_ip_config
from libs.libs import TimerScheduler
from models.models import (
    Event,
    EventType,
    InterfaceState,
    InterfaceStatus,
    LeaseRecord,
    StaticIpConfig,
)
from services.dhcp.client import DhcpClient
from services.dhcp.utils import extract_lease_seconds, is_lease_bound
from services.ethernet.applier import InterfaceApplier
from services.ethernet.hub import StatusHub, interface_topic
from services.ethernet.indicator import StatusIndicator
from utils.net_utils import (
    IP4LL_SUBNET,
    derive_ip4ll_address,
    is_net_interface_valid,
    prefix_to_netmask,
    read_hw_address,
)

ETHERNET_CONFIG = config.get("ethernet")
DEFAULT_INTERFACE = str(ETHERNET_CONFIG.get("interface"))
DEFAULT_HOSTNAME = str(ETHERNET_CONFIG.get("hostname"))
SYSFS_NET_PATH = Path(ETHERNET_CONFIG.get("sysfs_net_path"))

IP4LL_CONFIG = config.get("ip4ll")
IP4LL_RETRY_INTERVAL = float(IP4LL_CONFIG.get("retry_interval"))

PATHS = config.get("paths")
STATIC_IP_CONFIG_PATH = Path(PATHS.get("static_ip_config"))

MANAGER_CONFIG = config.get("manager")
INBOX_SIZE = int(MANAGER_CONFIG.get("inbox_size"))
TIMEOUTS = MANAGER_CONFIG.get("timeouts")
WORKER_GET_TIMEOUT = float(TIMEOUTS.get("worker_get"))
WORKER_JOIN_TIMEOUT = float(TIMEOUTS.get("worker_join"))

# state attribute -> key in the published status record
ANNOUNCE_KEYS = {"address": "ip"}
STATE_FIELDS = ("hostname", "status", "address", "mask", "router", "dns")
UNCONFIGURED = {"address": None, "mask": None, "router": None, "dns": None}


class ConfigManager:
    """
    Keeps one interface configured: static config first, then DHCP, then a
    link-local (169.254.0.0/16) address when no DHCP server answers.

    Responsibilities:
        - Owns the InterfaceState; nothing else mutates it.
        - Resolves the startup configuration in `initialize`.
        - Reacts to lease-expiry and link-local retry timers and to remote
          commands, all delivered as events through one ordered inbox.
        - Funnels every transition through `apply_and_announce`.

    Concurrency:
        One worker thread takes events off the inbox and handles them one at
        a time. DHCP requests and `ip` commands block that thread, no other
        event is processed meanwhile. Timers are never revoked when the state
        changes, handlers check the state they find instead.

    Usage:
        1. `initialize(seed_overrides)` resolves the first configuration.
        2. `start()` begins processing the inbox.
        3. `post(event)` from timers and remote-control code.
        4. `stop()` on shutdown.
    """

    def __init__(
        self,
        logger: Logger,
        dhcp_client: DhcpClient,
        applier: InterfaceApplier,
        hub: StatusHub,
        indicator: StatusIndicator,
        scheduler: Optional[TimerScheduler] = None,
        static_config_path: Path = STATIC_IP_CONFIG_PATH,
        retry_interval: float = IP4LL_RETRY_INTERVAL,
        sysfs_net_path: Path = SYSFS_NET_PATH,
        inbox_size: int = INBOX_SIZE,
    ):
        self.logger = logger
        self.dhcp_client = dhcp_client
        self.applier = applier
        self.hub = hub
        self.indicator = indicator
        self.scheduler = scheduler or TimerScheduler()
        self.static_config_path = static_config_path
        self.retry_interval = retry_interval
        self.sysfs_net_path = sysfs_net_path

        self.state = InterfaceState(interface=DEFAULT_INTERFACE, hostname=DEFAULT_HOSTNAME)
        self._lock = RLock()
        self.inbox_size = inbox_size
        self._inbox: Queue = Queue()
        self._stop_event = ThreadEvent()
        self._worker: Optional[Thread] = None
        self.initialized = False
        self.running = False

    def initialize(self, seed_overrides: Optional[Dict[str, Any]] = None) -> InterfaceState:
        """Seed the state and resolve the startup configuration.

        Recognised seed keys: interface, hostname and the static overrides
        ip, subnet (or mask), router, dns. Anything else is ignored.
        """
        if self.initialized:
            raise RuntimeError("Already init")

        _seed = seed_overrides or {}
        with self._lock:
            self.state = InterfaceState(
                interface=str(_seed.get("interface") or DEFAULT_INTERFACE),
                hostname=str(_seed.get("hostname") or DEFAULT_HOSTNAME),
            )
            self.initialized = True

            try:
                self.dhcp_client.install_script()
            except OSError as err:
                self.logger.error("Could not install udhcpc script: %s", err)

            self.apply_and_announce({"hostname": self.state.hostname, "status": InterfaceStatus.INIT})
            self.logger.info("Started ethernet agent in state %s.", self.state)

            if not is_net_interface_valid(self.state.interface):
                self.logger.warning("Interface %s not present (yet).", self.state.interface)
            self.applier.link_up(self.state.interface)

            _static = self._seed_static_config(_seed) or load_static_ip_config(self.static_config_path)
            if _static:
                self.configure_static(_static)
            else:
                self.attempt_dynamic_configuration()

            return self.snapshot()

    def start(self):
        """Start the inbox worker."""
        if not self.initialized:
            raise RuntimeError("Not init.")
        if self.running:
            raise RuntimeError("Already running.")

        self._stop_event.clear()
        self.running = True
        self._worker = Thread(target=self._work, name="ethernet-config-manager", daemon=True)
        self._worker.start()
        self.logger.info("%s started.", self.__class__.__name__)

    def stop(self, worker_join_timeout: float = WORKER_JOIN_TIMEOUT):
        if not self.running:
            raise RuntimeError("Not running.")

        self._stop_event.set()
        self.scheduler.cancel_all()
        self._inbox.put_nowait(None)
        if self._worker is not None:
            self._worker.join(timeout=worker_join_timeout)
            if self._worker.is_alive():
                self.logger.warning("%s didnt respect timeout.", self.__class__.__name__)
        self._worker = None
        self.running = False
        self.logger.info("%s stopped.", self.__class__.__name__)

    def post(self, event: Event) -> bool:
        """Queue an event for the worker.

        Remote commands are refused once inbox_size events are waiting.
        Timer events are always queued.
        Returns:
            bool: False when the event was refused.
        """
        if event.type is EventType.REMOTE_COMMAND and self._inbox.qsize() >= self.inbox_size:
            self.logger.warning("Inbox full, dropping %s.", event.type.value)
            return False
        self._inbox.put_nowait(event)
        return True

    def _work(self, worker_get_timeout: float = WORKER_GET_TIMEOUT):
        while not self._stop_event.is_set():
            try:
                _event: Event | None = self._inbox.get(timeout=worker_get_timeout)
            except Empty:
                continue

            if _event is None:
                self._inbox.task_done()
                break

            try:
                self.handle(_event)
            except Exception as err:
                self.logger.exception("Failed handling %s: %s", _event.type.value, err)
            finally:
                self._inbox.task_done()

    def handle(self, event: Event) -> Any:
        """Process one event on the calling thread."""
        with self._lock:
            if event.type is EventType.LEASE_EXPIRED:
                return self.on_lease_expired()
            if event.type is EventType.IP4LL_RETRY:
                return self.on_link_local_retry_tick()
            if event.type is EventType.REMOTE_COMMAND:
                return event.payload()
            raise ValueError(f"Unknown event {event.type}")

    def snapshot(self) -> InterfaceState:
        with self._lock:
            return deepcopy(self.state)

    def _seed_static_config(self, seed: Dict[str, Any]) -> Optional[StaticIpConfig]:
        _ip = seed.get("ip")
        _mask = seed.get("subnet") or seed.get("mask")
        if not (_ip and _mask):
            return None
        try:
            return StaticIpConfig(ip=_ip, mask=str(_mask), router=seed.get("router"), dns=seed.get("dns"))
        except ValidationError as err:
            self.logger.error("Ignoring static overrides %s: %s", seed, err)
            return None

    def configure_static(self, static: StaticIpConfig) -> InterfaceState:
        self.logger.info("Configuring static ip as %s.", static.model_dump(mode="json"))
        return self._configure_interface(
            {
                "status": InterfaceStatus.STATIC,
                "address": str(static.ip),
                "mask": static.mask,
                "router": str(static.router) if static.router else None,
                "dns": static.dns,
            }
        )

    def attempt_dynamic_configuration(self) -> InterfaceState:
        """Ask DHCP for a lease, fall back to link-local if none is granted."""
        with self._lock:
            self.apply_and_announce({"status": InterfaceStatus.REQUEST, **UNCONFIGURED})
            _record = self.dhcp_client.request(self.state.interface, self.state.hostname)
            if is_lease_bound(_record):
                return self.on_dhcp_bound(_record)
            self.logger.info("No dhcp lease (%s), falling back to ip4ll.", _record.get("status"))
            return self.enter_link_local()

    def on_dhcp_bound(self, record: LeaseRecord) -> InterfaceState:
        """Apply a granted lease and arm its expiry timer."""
        with self._lock:
            _address = record.get("ip")
            _mask = self._lease_netmask(record)
            if not (_address and _mask):
                self.logger.warning("Lease without address or mask %s, falling back to ip4ll.", record)
                return self.enter_link_local()

            _lease = extract_lease_seconds(record)
            if _lease is not None:
                self.scheduler.schedule(
                    EventType.LEASE_EXPIRED, _lease, self.post, Event(EventType.LEASE_EXPIRED)
                )

            _routers = record.get("router", "").split()
            return self._configure_interface(
                {
                    "status": InterfaceStatus(record["status"]),
                    "address": _address,
                    "mask": _mask,
                    "router": _routers[0] if _routers else None,
                    "dns": record.get("dns"),
                }
            )

    def _lease_netmask(self, record: LeaseRecord) -> Optional[str]:
        # udhcpc reports the dotted netmask as subnet and the prefix length as mask
        try:
            if record.get("subnet"):
                return prefix_to_netmask(record["subnet"])
            if record.get("mask"):
                return prefix_to_netmask(record["mask"])
        except ValueError as err:
            self.logger.warning("Bad netmask in lease: %s", err)
        return None

    def on_lease_expired(self) -> InterfaceState:
        with self._lock:
            if self.state.status is InterfaceStatus.STATIC:
                self.logger.debug("Lease expired while static, ignoring.")
                return self.state
            self.logger.info("Lease expired, renewing.")
            return self.attempt_dynamic_configuration()

    def enter_link_local(self) -> InterfaceState:
        """Configure the derived 169.254.x.y address and arm the retry timer."""
        with self._lock:
            try:
                _hw_address = read_hw_address(self.state.interface, self.sysfs_net_path)
            except OSError as err:
                self.logger.error("No hardware address for %s: %s", self.state.interface, err)
                _hw_address = f"{self.state.hostname}/{self.state.interface}".encode()

            _address = derive_ip4ll_address(_hw_address)
            self.scheduler.schedule(
                EventType.IP4LL_RETRY, self.retry_interval, self.post, Event(EventType.IP4LL_RETRY)
            )
            return self._configure_interface(
                {
                    "status": InterfaceStatus.IP4LL,
                    "address": _address,
                    "mask": IP4LL_SUBNET,
                    "router": None,
                    "dns": None,
                }
            )

    def on_link_local_retry_tick(self) -> InterfaceState:
        """See whether a DHCP server is back while on a link-local address."""
        with self._lock:
            if self.state.status is not InterfaceStatus.IP4LL:
                self.logger.debug("ip4ll retry while %s, ignoring.", self.state.status)
                return self.state

            _record = self.dhcp_client.request(self.state.interface, self.state.hostname)
            if is_lease_bound(_record):
                return self.on_dhcp_bound(_record)

            self.scheduler.schedule(
                EventType.IP4LL_RETRY, self.retry_interval, self.post, Event(EventType.IP4LL_RETRY)
            )
            return self.state

    def apply_remote_static_put(self, parameters: Dict[str, str]) -> bool:
        """Configure x-ip / x-subnet / x-router as a static address.
        Returns:
            bool: False when the parameters do not form a valid configuration.
        """
        # resolver settings (x-dns) are not applied
        self.logger.info("Configuring static ip with params %s.", parameters)
        try:
            _static = StaticIpConfig(
                ip=parameters.get("x-ip"),
                mask=parameters.get("x-subnet"),
                router=parameters.get("x-router") or None,
            )
        except ValidationError as err:
            self.logger.warning("Dropping malformed static ip command %s: %s", parameters, err)
            return False

        self.configure_static(_static)
        return True

    def apply_remote_auto_put(self, parameters: Dict[str, str]) -> bool:
        self.logger.warning("NOT YET IMPLEMENTED - asked to configure auto ip with params %s.", parameters)
        return False

    def apply_remote_static_delete(self) -> bool:
        self.logger.info("Deconfiguring static ip.")
        self.attempt_dynamic_configuration()
        return True

    def apply_remote_auto_delete(self) -> bool:
        self.logger.info("Deconfiguring auto ip.")
        self.attempt_dynamic_configuration()
        return True

    def _configure_interface(self, changes: Dict[str, Any]) -> InterfaceState:
        self.applier.apply(
            self.state.interface,
            changes.get("address"),
            changes.get("mask"),
            changes.get("router"),
        )
        return self.apply_and_announce(changes)

    def apply_and_announce(self, changes: Dict[str, Any]) -> InterfaceState:
        """Merge changes into the state, publish them, update the status light."""
        with self._lock:
            _previous_status = self.state.status
            for _key, _value in changes.items():
                if _key not in STATE_FIELDS:
                    raise KeyError(f"Unknown state field {_key}")
                setattr(self.state, _key, _value)

            self.hub.put(
                interface_topic(self.state.interface),
                {
                    ANNOUNCE_KEYS.get(_key, _key): _value.value if isinstance(_value, Enum) else _value
                    for _key, _value in changes.items()
                },
            )

            if "status" in changes and (
                self.state.status is not _previous_status or self.indicator.pattern is None
            ):
                self.indicator.show_status(self.state.status)

            return self.state

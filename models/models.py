from dataclasses import dataclass, field
from enum import Enum, unique
from ipaddress import IPv4Address, IPv4Network
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, field_validator

LeaseRecord = Dict[str, str]

DHCP_LEASE_KEYS: tuple[str, ...] = (
    "status",
    "interface",
    "ip",
    "subnet",
    "mask",
    "timezone",
    "router",
    "timesvr",
    "dns",
    "hostname",
    "domain",
    "ipttl",
    "broadcast",
    "ntpsrv",
    "opt53",
    "lease",
    "dhcptype",
    "serverid",
    "message",
)

STATIC_IP_CONFIG_VERSION = 1


@unique
class InterfaceStatus(str, Enum):
    """Interface configuration state"""

    INIT = "init"
    REQUEST = "request"
    BOUND = "bound"
    RENEW = "renew"
    STATIC = "static"
    IP4LL = "ip4ll"

    def __str__(self) -> str:
        return self.value


DHCP_LEASED_STATUSES = frozenset({"bound", "renew"})


@unique
class LedPattern(str, Enum):
    """Status indicator directives"""

    SOLID = "solid"
    SLOW_BLINK = "slow-blink"
    SLOW_BLINK_ALTERNATE = "slow-blink-alternate"
    HEARTBEAT_PULSE = "heartbeat-pulse"


@unique
class RemoteVerb(str, Enum):
    """Remote control verbs"""

    PUT = "put"
    DELETE = "delete"


@unique
class RemoteResource(str, Enum):
    """Remote control resources, valued by their relative URI"""

    STATIC_IP = "sys/ip/static"
    AUTO_IP = "sys/ip/auto"


@unique
class EventType(str, Enum):
    """Kinds of work the config manager inbox accepts"""

    LEASE_EXPIRED = "lease_expired"
    IP4LL_RETRY = "ip4ll_retry"
    REMOTE_COMMAND = "remote_command"


@unique
class LogLevel(Enum):
    """LogLevel"""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def _missing_(cls, value):
        """Handle cases where a value passed to the Enum is not found among its members"""
        if isinstance(value, str):
            value = value.strip().upper()
            for member in cls:
                if member.name == value:
                    return member
        return cls.DEBUG  # fallback


@dataclass
class InterfaceState:
    """
    Mutable configuration record of the managed interface.

    Attributes:
        interface (str): OS interface name, fixed once the manager is initialized.
        hostname (str): Sent to the DHCP server as the client hostname.
        status (InterfaceStatus): Current configuration strategy outcome.
        address (str | None): IPv4 address applied to the interface.
        mask (str | None): Dotted netmask applied with the address.
        router (str | None): Default gateway, if any.
        dns (str | None): Name server(s) reported by DHCP or static config.
    """

    interface: str = "eth0"
    hostname: str = "echo"
    status: InterfaceStatus = InterfaceStatus.INIT
    address: Optional[str] = None
    mask: Optional[str] = None
    router: Optional[str] = None
    dns: Optional[str] = None


@dataclass(frozen=True)
class RemoteCommand:
    """Decoded remote control request.

    Attributes:
        verb (str): Lower-cased request verb, e.g. "put".
        resource (str): URI relative to the device root, e.g. "sys/ip/static".
        parameters (Dict[str, str]): Lower-cased header names to values.
    """

    verb: str
    resource: str
    parameters: Dict[str, str] = field(default_factory=dict)

    def __repr__(self):
        return f"verb='{self.verb}',resource='{self.resource}',parameters={self.parameters}"


@dataclass(frozen=True)
class Event:
    type: EventType
    payload: Any = None


class StaticIpConfig(BaseModel):
    """Persisted static configuration, one JSON object on disk.

    Example:
        {"version": 1, "ip": "10.0.0.5", "mask": "255.255.255.0", "router": "10.0.0.1"}
    """

    version: Literal[1] = STATIC_IP_CONFIG_VERSION
    ip: IPv4Address
    mask: str
    router: Optional[IPv4Address] = None
    dns: Optional[str] = None

    @field_validator("mask")
    @classmethod
    def _normalize_mask(cls, value: str) -> str:
        """Accept a dotted netmask or a prefix length, store the dotted form."""
        return str(IPv4Network(f"0.0.0.0/{value.strip()}").netmask)

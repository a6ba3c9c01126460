from hashlib import md5
from ipaddress import IPv4Network
from pathlib import Path

from scapy.arch import get_if_list

IP4LL_NETWORK = IPv4Network("169.254.0.0/16")
IP4LL_SUBNET = str(IP4LL_NETWORK.netmask)
DEFAULT_SYSFS_NET_PATH = Path("/sys/class/net")


def is_net_interface_valid(iface: str) -> bool:
    """is_net_interface_valid"""
    return iface in get_if_list()


def read_hw_address(iface: str, sysfs_net_path: Path = DEFAULT_SYSFS_NET_PATH) -> bytes:
    """Return the hardware address of iface exactly as the kernel exposes it.
    Raises:
        OSError: the interface has no sysfs address entry.
    """
    return (sysfs_net_path / iface / "address").read_bytes()


def derive_ip4ll_address(hw_address: bytes) -> str:
    """Derive a stable link-local address from a hardware address.

    The first two bytes of the MD5 digest of hw_address become the last two
    octets of 169.254.x.y. The broadcast (x.255.255) and network (x.0.0)
    addresses of 169.254.0.0/16 are nudged by one so they are never returned.
    The same hw_address always yields the same address. Nothing is probed on
    the wire, two hosts whose digests collide get the same address.

    Args:
        hw_address (bytes): Raw hardware address.
    Returns:
        str: Dotted IPv4 address inside 169.254.0.0/16.
    """
    _x, _y = md5(hw_address).digest()[:2]
    return _ip4ll_from_octets(_x, _y)


def _ip4ll_from_octets(x: int, y: int) -> str:
    if x == 255 and y == 255:
        y -= 1
    if x == 0 and y == 0:
        y += 1
    return f"169.254.{x}.{y}"


def netmask_to_prefix(mask: str) -> int:
    """Prefix length for a dotted netmask or an already numeric prefix."""
    return IPv4Network(f"0.0.0.0/{mask}").prefixlen


def prefix_to_netmask(prefix: str | int) -> str:
    return str(IPv4Network(f"0.0.0.0/{prefix}").netmask)

import re

from models.models import DHCP_LEASE_KEYS, DHCP_LEASED_STATUSES, LeaseRecord

# udhcpc helper script: dumps the phase and the shell environment between
# lines holding a single bracket, once per phase the client goes through.
UDHCPC_SCRIPT = "#!/bin/sh\necho [\necho status=\\'$1\\'\nset\necho ]\n"

_RESPONSE_BLOCK = re.compile(r"^\[[ \t]*$(.*?)^\][ \t]*$", re.MULTILINE | re.DOTALL)
_KEY_VALUE = re.compile(r"^(\w+)='(.+)'[ \t]*$", re.MULTILINE)


def extract_response_blocks(output: str) -> list[str]:
    """Return the bodies of all bracketed response blocks, in output order."""
    return _RESPONSE_BLOCK.findall(output)


def parse_lease_output(output: str, keys: tuple[str, ...] = DHCP_LEASE_KEYS) -> LeaseRecord:
    """Convert udhcpc output into a lease record.

    Only the last bracketed block counts, earlier ones belong to phases the
    client already left (deconfig, renew attempts). Within it, lines shaped
    key='value' are kept when key is one of keys (case-sensitive).

    Args:
        output (str): Combined text output of one udhcpc run.
        keys (tuple[str, ...]): Whitelisted keys.
    Returns:
        LeaseRecord: Ordered key -> value mapping, empty when no block was printed.
    """
    _blocks = extract_response_blocks(output)
    if not _blocks:
        return {}

    return {
        _key: _value
        for _key, _value in _KEY_VALUE.findall(_blocks[-1])
        if _key in keys
    }


def is_lease_bound(record: LeaseRecord) -> bool:
    """True when the record reports an address grant (bound or renew)."""
    return record.get("status") in DHCP_LEASED_STATUSES


def extract_lease_seconds(record: LeaseRecord) -> int | None:
    """Lease duration in seconds, None when absent or not a number."""
    _lease = record.get("lease", "").strip()
    if not _lease.isdigit():
        return None
    return int(_lease)

import pytest

from services.dhcp.utils import (
    UDHCPC_SCRIPT,
    extract_lease_seconds,
    extract_response_blocks,
    is_lease_bound,
    parse_lease_output,
)

DECONFIG_BLOCK = "[\nstatus='deconfig'\ninterface='eth0'\n]\n"
BOUND_BLOCK = (
    "[\n"
    "status='bound'\n"
    "interface='eth0'\n"
    "ip='192.168.1.50'\n"
    "subnet='255.255.255.0'\n"
    "mask='24'\n"
    "router='192.168.1.1 192.168.1.2'\n"
    "dns='192.168.1.1'\n"
    "lease='120'\n"
    "serverid='192.168.1.1'\n"
    "PATH='/usr/bin:/bin'\n"
    "PWD='/'\n"
    "]\n"
)


def test_script_dumps_status_and_environment():
    _lines = UDHCPC_SCRIPT.splitlines()

    assert _lines[0] == "#!/bin/sh"
    assert _lines[1] == "echo ["
    assert _lines[2] == "echo status=\\'$1\\'"
    assert _lines[3] == "set"
    assert _lines[4] == "echo ]"


def test_only_last_block_counts():
    _record = parse_lease_output("udhcpc: started\n" + DECONFIG_BLOCK + "udhcpc: lease obtained\n" + BOUND_BLOCK)

    assert _record["status"] == "bound"
    assert _record["ip"] == "192.168.1.50"
    assert _record["router"] == "192.168.1.1 192.168.1.2"
    assert len(extract_response_blocks(DECONFIG_BLOCK + BOUND_BLOCK)) == 2


def test_keys_outside_whitelist_dropped():
    _record = parse_lease_output(BOUND_BLOCK)

    # Positive
    assert set(_record) == {"status", "interface", "ip", "subnet", "mask", "router", "dns", "lease", "serverid"}

    # Negative
    assert "PATH" not in _record
    assert "PWD" not in _record


def test_keys_are_case_sensitive():
    _record = parse_lease_output("[\nstatus='bound'\nIP='10.0.0.1'\n]\n")

    assert _record == {"status": "bound"}


def test_custom_whitelist():
    _record = parse_lease_output(BOUND_BLOCK, keys=("status", "lease"))

    assert _record == {"status": "bound", "lease": "120"}


@pytest.mark.parametrize(
    "output",
    ["", "udhcpc: sending discover\nudhcpc: no lease, failing\n", "[\nstatus='bound'\n"],
)
def test_no_block_gives_empty_record(output):
    assert parse_lease_output(output) == {}


def test_failure_block():
    _record = parse_lease_output("[\nstatus='leasefail'\ninterface='eth0'\n]\n")

    assert _record == {"status": "leasefail", "interface": "eth0"}
    assert not is_lease_bound(_record)


@pytest.mark.parametrize(
    "record, bound",
    [
        ({"status": "bound"}, True),
        ({"status": "renew"}, True),
        ({"status": "leasefail"}, False),
        ({"status": "nak"}, False),
        ({}, False),
    ],
)
def test_is_lease_bound(record, bound):
    assert is_lease_bound(record) is bound


@pytest.mark.parametrize(
    "record, seconds",
    [
        ({"lease": "120"}, 120),
        ({"lease": " 3600 "}, 3600),
        ({"lease": "soon"}, None),
        ({"lease": "-5"}, None),
        ({}, None),
    ],
)
def test_extract_lease_seconds(record, seconds):
    assert extract_lease_seconds(record) == seconds

from unittest.mock import MagicMock

import pytest

from models.models import InterfaceStatus, LedPattern
from services.ethernet.hub import StatusHub, interface_topic
from services.ethernet.indicator import StatusIndicator, pattern_for_status

PATH = ("sys", "ip", "eth0")


@pytest.fixture
def hub():
    return StatusHub(logger=MagicMock())


def test_hub_merges_changes(hub):
    hub.put(PATH, {"status": "request", "ip": None})
    hub.put(PATH, {"status": "bound", "ip": "192.168.1.50", "mask": "255.255.255.0"})

    assert hub.get(PATH) == {"status": "bound", "ip": "192.168.1.50", "mask": "255.255.255.0"}
    assert hub.get(("sys", "ip", "eth1")) == {}


def test_hub_get_returns_copy(hub):
    hub.put(PATH, {"ip": "10.0.0.5"})
    hub.get(PATH)["ip"] = "changed"

    assert hub.get(PATH)["ip"] == "10.0.0.5"


def test_hub_notifies_subscribers_with_changes_only(hub):
    received = []
    hub.subscribe(lambda path, changes: received.append((path, changes)))

    hub.put(PATH, {"status": "request"})
    hub.put(PATH, {"ip": "10.0.0.5"})

    assert received == [(PATH, {"status": "request"}), (PATH, {"ip": "10.0.0.5"})]


def test_hub_failing_subscriber_does_not_block_others(hub):
    received = []

    def _broken(path, changes):
        raise RuntimeError("boom")

    hub.subscribe(_broken)
    hub.subscribe(lambda path, changes: received.append(changes))
    hub.put(PATH, {"status": "static"})

    assert received == [{"status": "static"}]
    hub.logger.error.assert_called_once()


def test_interface_topic():
    assert interface_topic("eth0") == PATH


@pytest.mark.parametrize(
    "status, pattern",
    [
        (InterfaceStatus.STATIC, LedPattern.SOLID),
        (InterfaceStatus.BOUND, LedPattern.SOLID),
        (InterfaceStatus.IP4LL, LedPattern.SLOW_BLINK_ALTERNATE),
        (InterfaceStatus.REQUEST, LedPattern.HEARTBEAT_PULSE),
        (InterfaceStatus.INIT, LedPattern.SLOW_BLINK),
        (InterfaceStatus.RENEW, LedPattern.SLOW_BLINK),
        ("bound", LedPattern.SOLID),
        ("unknown", LedPattern.SLOW_BLINK),
    ],
)
def test_pattern_for_status(status, pattern):
    assert pattern_for_status(status) is pattern


def test_indicator_records_pattern():
    indicator = StatusIndicator(logger=MagicMock(), led="power")

    assert indicator.pattern is None
    assert indicator.show_status(InterfaceStatus.IP4LL) is LedPattern.SLOW_BLINK_ALTERNATE
    assert indicator.pattern is LedPattern.SLOW_BLINK_ALTERNATE

from subprocess import CompletedProcess
from unittest.mock import MagicMock

import pytest

from services.ethernet.applier import InterfaceApplier


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def mock_run(monkeypatch):
    _run = MagicMock(return_value=CompletedProcess(args=[], returncode=0, stdout="", stderr=""))
    monkeypatch.setattr("services.ethernet.applier.run", _run)
    return _run


def _commands(mock_run):
    return [_call.args[0] for _call in mock_run.call_args_list]


def test_apply_with_router(mock_logger, mock_run):
    InterfaceApplier(logger=mock_logger).apply("eth0", "10.0.0.5", "255.255.255.0", "10.0.0.1")

    assert _commands(mock_run) == [
        ["ip", "addr", "flush", "dev", "eth0"],
        ["ip", "addr", "add", "10.0.0.5/24", "dev", "eth0"],
        ["ip", "route", "add", "default", "via", "10.0.0.1", "dev", "eth0"],
    ]


def test_apply_without_router(mock_logger, mock_run):
    InterfaceApplier(logger=mock_logger).apply("eth0", "169.254.10.20", "255.255.0.0")

    assert _commands(mock_run) == [
        ["ip", "addr", "flush", "dev", "eth0"],
        ["ip", "addr", "add", "169.254.10.20/16", "dev", "eth0"],
    ]


@pytest.mark.parametrize("address, mask", [(None, None), ("10.0.0.5", None), (None, "255.255.255.0")])
def test_apply_incomplete_is_noop(mock_logger, mock_run, address, mask):
    InterfaceApplier(logger=mock_logger).apply("eth0", address, mask, "10.0.0.1")

    mock_run.assert_not_called()


def test_link_up(mock_logger, mock_run):
    assert InterfaceApplier(logger=mock_logger).link_up("eth1")
    assert _commands(mock_run) == [["ip", "link", "set", "eth1", "up"]]


def test_failures_are_logged_not_raised(mock_logger, monkeypatch):
    monkeypatch.setattr(
        "services.ethernet.applier.run",
        MagicMock(return_value=CompletedProcess(args=[], returncode=2, stdout="", stderr="RTNETLINK answers: File exists\n")),
    )
    _applier = InterfaceApplier(logger=mock_logger)

    assert not _applier.link_up("eth0")
    _applier.apply("eth0", "10.0.0.5", "255.255.255.0", "10.0.0.1")
    assert mock_logger.warning.call_count == 4


def test_missing_binary(mock_logger, monkeypatch):
    monkeypatch.setattr("services.ethernet.applier.run", MagicMock(side_effect=FileNotFoundError("ip")))

    assert not InterfaceApplier(logger=mock_logger).link_up("eth0")
    mock_logger.error.assert_called_once()

import re
from logging import Logger
from typing import Optional

from models.models import RemoteCommand

_LINE_BREAK = re.compile(r"\r\n|\n")


def decode_remote_command(packet: bytes | str, root_uri: str, logger: Logger) -> Optional[RemoteCommand]:
    """Decode an HTTP-over-UDP style request into a RemoteCommand.

    Expected shape:
        PUT http://10.0.0.3:80/sys/ip/static HTTP/1.1
        X-IP: 10.0.0.5
        X-Subnet: 255.255.255.0

    The request line is matched case-insensitively and the URI must start
    with root_uri, the multicast traffic for other devices is dropped here.
    Header lines become lower-cased parameter names. Lines without a colon
    are skipped.

    Args:
        packet (bytes | str): Raw datagram.
        root_uri (str): "http://<ip:port>/<root path>" of this device.
        logger (Logger): Diagnostics for dropped packets.
    Returns:
        RemoteCommand | None: None for malformed packets and other devices' traffic.
    """
    _text = packet.decode("utf-8", errors="replace") if isinstance(packet, bytes) else packet
    _request_line, *_header_lines = _LINE_BREAK.split(_text)
    _parts = _request_line.strip().lower().split()

    if len(_parts) < 2:
        logger.debug("Dropping malformed request line %r.", _request_line)
        return None

    _verb, _full_uri = _parts[0], _parts[1]
    _root = root_uri.lower()
    if not _full_uri.startswith(_root):
        logger.debug("%s %s received, but not for me.", _verb, _full_uri)
        return None

    _parameters: dict[str, str] = {}
    for _line in _header_lines:
        _key, _separator, _value = _line.partition(":")
        if not _separator or not _key.strip():
            continue
        _parameters[_key.strip().lower()] = _value.strip()

    _command = RemoteCommand(
        verb=_verb,
        resource=_full_uri[len(_root):].strip("/"),
        parameters=_parameters,
    )
    logger.debug("Decoded remote command %r.", _command)
    return _command

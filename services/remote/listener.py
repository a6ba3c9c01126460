from logging import Logger
from select import select
from socket import AF_INET, SO_REUSEADDR, SOCK_DGRAM, SOL_SOCKET, socket
from threading import Event, RLock, Thread
from typing import Optional

from config.config import config
from services.ethernet.hub import StatusHub, interface_topic
from services.remote.decoder import decode_remote_command
from services.remote.router import RemoteCommandRouter

DEFAULT_INTERFACE = str(config.get("ethernet").get("interface"))

REMOTE_CONFIG = config.get("remote_control")
REMOTE_ENABLED = bool(REMOTE_CONFIG.get("enabled"))
REMOTE_HOST = str(REMOTE_CONFIG.get("host"))
REMOTE_PORT = int(REMOTE_CONFIG.get("port"))
REMOTE_DEVICE_PORT = int(REMOTE_CONFIG.get("device_port"))
REMOTE_ROOT_PATH = str(REMOTE_CONFIG.get("root_path"))
REMOTE_MSG_SIZE = int(REMOTE_CONFIG.get("msg_size"))

TIMEOUTS = REMOTE_CONFIG.get("timeouts")
SOCKET_TIMEOUT = float(TIMEOUTS.get("socket"))
WORKER_JOIN_TIMEOUT = float(TIMEOUTS.get("worker_join"))


class RemoteControlListener:
    """UDP intake for remote control datagrams.

    Each datagram is decoded and handed to the router, which queues it on the
    config manager. Nothing is processed on the listener thread itself.

    Peers address the device as http://<ip>:<device_port><root_path>, where
    ip is the address currently announced for interface on the hub. The root
    is looked up per datagram.
    """

    def __init__(
        self,
        router: RemoteCommandRouter,
        hub: StatusHub,
        logger: Logger,
        interface: str = DEFAULT_INTERFACE,
        host: str = REMOTE_HOST,
        port: int = REMOTE_PORT,
        device_port: int = REMOTE_DEVICE_PORT,
        root_path: str = REMOTE_ROOT_PATH,
        msg_size: int = REMOTE_MSG_SIZE,
    ):
        self.router = router
        self.hub = hub
        self.logger = logger
        self.interface = interface
        self.host = host
        self.port = port
        self.device_port = device_port
        self.root_path = root_path
        self.msg_size = msg_size
        self._socket_lock = RLock()
        self._socket: Optional[socket] = None
        self._stop_event = Event()
        self._worker: Optional[Thread] = None
        self.running = False

    def root_uri(self) -> Optional[str]:
        """Root URI for the announced address, None while unaddressed."""
        _address = self.hub.get(interface_topic(self.interface)).get("ip")
        if not _address:
            return None
        return f"http://{_address}:{self.device_port}{self.root_path}"

    def handle_datagram(self, data: bytes, addr: tuple) -> bool:
        """Decode one datagram and submit it. True when a command was queued."""
        _root_uri = self.root_uri()
        if _root_uri is None:
            self.logger.debug("No address on %s yet, dropping datagram from %s.", self.interface, addr)
            return False

        _command = decode_remote_command(data, _root_uri, self.logger)
        if _command is None:
            return False
        self.logger.debug("Remote command from %s: %r", addr, _command)
        return self.router.submit(_command)

    def start(self):
        if self.running:
            raise RuntimeError("Already running")

        with self._socket_lock:
            self._socket = socket(AF_INET, SOCK_DGRAM)
            self._socket.setsockopt(SOL_SOCKET, SO_REUSEADDR, 1)
            self._socket.setblocking(False)
            self._socket.bind((self.host, self.port))

        self._stop_event.clear()
        self.running = True
        self._worker = Thread(target=self._work_listen, name="remote-control-listener", daemon=True)
        self._worker.start()
        self.logger.info("Listening for remote commands on %s:%s.", self.host, self.port)

    def _work_listen(self, timeout: float = SOCKET_TIMEOUT):
        while not self._stop_event.is_set():
            try:
                with self._socket_lock:
                    _socket = self._socket
                if _socket is None:
                    break
                if _socket in select([_socket], [], [], timeout)[0]:
                    self.handle_datagram(*_socket.recvfrom(self.msg_size))
            except Exception as err:
                if not self._stop_event.is_set():
                    self.logger.error("Error reading remote control socket: %s.", err)

    def stop(self, worker_join_timeout: float = WORKER_JOIN_TIMEOUT):
        if not self.running:
            raise RuntimeError("Not running")

        self._stop_event.set()
        if self._worker is not None:
            self._worker.join(timeout=worker_join_timeout)
        with self._socket_lock:
            if self._socket:
                self._socket.close()
            self._socket = None
        self._worker = None
        self.running = False
        self.logger.info("Remote control listener stopped.")

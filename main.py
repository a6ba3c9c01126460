from logging import Logger
from signal import SIGABRT, SIGINT, SIGQUIT, SIGTERM, signal
from threading import Event

from config.config import config
from libs.libs import TimerScheduler
from services.dhcp.client import DhcpClient
from services.ethernet.applier import InterfaceApplier
from services.ethernet.hub import StatusHub
from services.ethernet.indicator import StatusIndicator
from services.ethernet.manager import ConfigManager
from services.logger.logger import MainLogger
from services.remote.listener import REMOTE_ENABLED, RemoteControlListener
from services.remote.router import RemoteCommandRouter

logger: Logger = MainLogger.get_logger(service_name="MAIN")
shutdown_event = Event()


def shutdown_handler(signum, frame):
    """Handles app shutdown calls"""
    logger.info("Received %s.", signum)
    shutdown_event.set()


def register_shutdown_signals():
    """Registers shutdown handler for common interrupt signals"""
    signal(SIGINT, shutdown_handler)
    signal(SIGTERM, shutdown_handler)
    signal(SIGQUIT, shutdown_handler)
    signal(SIGABRT, shutdown_handler)


def build_manager() -> ConfigManager:
    ethernet_logger = MainLogger.get_logger(service_name="ETHERNET")
    return ConfigManager(
        logger=ethernet_logger,
        dhcp_client=DhcpClient(logger=MainLogger.get_logger(service_name="DHCP")),
        applier=InterfaceApplier(logger=ethernet_logger),
        hub=StatusHub(logger=MainLogger.get_logger(service_name="HUB", log_level="info")),
        indicator=StatusIndicator(logger=MainLogger.get_logger(service_name="LED", log_level="info")),
        scheduler=TimerScheduler(),
    )


if __name__ == "__main__":

    logger.info("Starting services")
    register_shutdown_signals()

    manager = build_manager()
    manager.initialize(config.get("ethernet"))
    manager.start()

    listener = None
    if REMOTE_ENABLED:
        remote_logger = MainLogger.get_logger(service_name="REMOTE")
        listener = RemoteControlListener(
            router=RemoteCommandRouter(manager=manager, logger=remote_logger),
            hub=manager.hub,
            logger=remote_logger,
            interface=manager.snapshot().interface,
        )
        listener.start()

    shutdown_event.wait()
    logger.info("Stopping services")

    if listener:
        listener.stop()
    manager.stop()

    logger.info("Shutdown complete")

import logging.config

from config.config import config
from models.models import LogLevel

LOGGER_CONFIG = config.get("logging")
ROOT_LOGGER = config.get("meta").get("name")
logging.config.dictConfig(LOGGER_CONFIG)


class MainLogger:
    """Aplication wide logging."""

    @classmethod
    def get_logger(
        cls, service_name: str = "MAIN", log_level: str = "DEBUG"
    ) -> logging.Logger:
        """Logging instance getter, configurable by service name and level.
        Service loggers are children of the application logger so they share
        its handlers.
        Args:
            service_name(str): Logger instance
            log_level(str): Log level desired for your instance
        Returns:
            logging.Logger: Configured logger instance.
        """
        logger = logging.getLogger(f"{ROOT_LOGGER}.{service_name}")
        if log_level:
            logger.setLevel(LogLevel(log_level).value)
        return logger

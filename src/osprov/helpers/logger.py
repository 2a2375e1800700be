import logging
import os
import sys
from typing import Optional

import structlog
from dynaconf import Dynaconf

# Load configuration
settings = Dynaconf(
    settings_files=["osprov_config.json"],
    envvar_prefix="OSPROV",
    load_dotenv=True,
)

LOG_DESTINATIONS = ("file", "stdout", "both")

# Older name of the "stdout" destination
DESTINATION_ALIASES = {"console": "stdout"}


def setup_logging(
    log_dir: Optional[str] = None,
    log_filename: Optional[str] = None,
    log_level: Optional[str] = None,
    log_destination: Optional[str] = None,
    settings_file: Optional[str] = None,
):
    """
    Set up structured logging for the driver using structlog.

    The "stdout" destination is the console stream. It writes to stderr so that
    stdout stays reserved for the JSON responses read by the orchestration host.

    :param log_dir: Directory where the log file will be stored.
    :param log_filename: Name of the log file.
    :param log_level: Logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).
    :param log_destination: Where to send logs ("file", "stdout", or "both").
    :param settings_file: Settings file holding the LOG_* keys. Defaults to
        osprov_config.json in the working directory.
    :return: Configured structlog logger instance.
    """
    source = settings
    if settings_file and os.path.exists(settings_file):
        source = Dynaconf(settings_files=[settings_file], envvar_prefix="OSPROV", load_dotenv=True)

    # Use configuration values, with fallbacks to environment variables and defaults
    log_dir = log_dir or source.get("LOG_DIR", os.environ.get("OSPROV_LOGDIR", "./.osprov/logs"))
    log_filename = log_filename or source.get("LOG_FILENAME", "osprov.log")
    log_level = log_level or source.get("LOG_LEVEL", "INFO")
    log_destination = log_destination or source.get("LOG_DESTINATION", "stdout")
    log_destination = DESTINATION_ALIASES.get(log_destination, log_destination)

    if log_destination not in LOG_DESTINATIONS:
        raise ValueError(
            f"Unsupported log destination '{log_destination}', expected one of {LOG_DESTINATIONS}"
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
    )

    # Configure logging handlers
    handlers: list[logging.Handler] = []
    if log_destination in ("file", "both"):
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_destination in ("stdout", "both"):
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        handlers.append(stream_handler)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    return structlog.get_logger("osprov")


def get_logger(name: str):
    """Get a structlog logger bound to the given name."""
    return structlog.get_logger(name)

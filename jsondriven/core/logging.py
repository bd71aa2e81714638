import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from jsondriven import config


def setup_logging(level: Optional[str] = None):
    """
    Configures centralized JSON logging on stdout.
    Test runners that embed the interpreter call this once at startup.
    """
    # 1. Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level or config.LOG_LEVEL)

    # 2. Prevent duplicate logs by removing existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # 3. StreamHandler for stdout
    log_handler = logging.StreamHandler(sys.stdout)

    # 4. JSON format
    formatter = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%SZ'
    )
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    # 5. Collaborator drivers are chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    root_logger.info("Logging infrastructure initialized successfully.")

"""
Logging configuration for the invoicing service.

Loggers are obtained per module with ``logging.getLogger(__name__)``; this
module only wires level and format once at startup.
"""

import logging

from invoicing.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger and quiet noisy driver loggers."""
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    logging.getLogger("invoicing").setLevel(log_level)
    # Driver chatter stays at WARNING
    for name in ("pymongo", "motor"):
        logging.getLogger(name).setLevel(logging.WARNING)

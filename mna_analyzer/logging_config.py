"""
Logging setup.
"""

import logging

from mna_analyzer.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the application's loggers."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # Calculation tracing is logged at DEBUG
    if settings.calculation_debug:
        level = logging.DEBUG

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("mna_analyzer").setLevel(level)

"""
Logging setup for command line use.

Library modules only create loggers under the ``tilewfc`` namespace; the
handler is installed here, once, by whoever runs the program.
"""

import logging
import sys

LOGGER_NAME = "tilewfc"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(level)

    # Clear any existing handlers (for re-initialization)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt="%(levelname)-8s | %(name)-22s | %(message)s")
    )
    root_logger.addHandler(handler)
    return root_logger

# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

# Progress logging for the ccip commands. Results are printed with click.echo.

import logging
import sys

# just define a global logger
log = logging.getLogger("")

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(filename)s.%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%a, %d %b %Y %H:%M:%S"

# these log every HTTP request at INFO
NOISY_LOGGERS = ["httpx", "httpcore"]


class CcipStreamHandler(logging.StreamHandler):
    pass


def init_logging(
    logger: logging.Logger,
    level: int = logging.INFO,
    print_metadata: bool = True,
) -> None:
    """Initialize logging for the ccip commands. Calling it again replaces the handler."""
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, CcipStreamHandler):
            logger.removeHandler(handler)

    sh = CcipStreamHandler(sys.stderr)
    if print_metadata:
        sh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(sh)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if level <= logging.DEBUG else logging.WARNING
        )

# SFC Edge Server
# Author: MD. SABBIR HOSHEN HOOWLADER
# Website: https://sabbir28.github.io/
# License: MIT License
# Description: Serves the SFC lookup UI bundle and forwards /SFCAPI calls to the private SFC backend.

import logging
import os
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
MAX_LOG_BYTES = 1048576
BACKUP_COUNT = 1
OWNED_MARK = '_sfc_edge_handler'


def setup_logging(logger, log_dir=None, console=True, level=logging.INFO):
    """
    Attach the access/error rotating files and a rich console handler.

    Args:
        logger (logging.Logger): Usually ``app.logger``
        log_dir (str): Where access.log and error.log go, None skips the files
        console (bool): Also log to the terminal through rich
        level (int): Minimum level for the logger itself
    """
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    # Drop handlers left by an earlier setup of the same logger
    for old in [h for h in logger.handlers if getattr(h, OWNED_MARK, False)]:
        logger.removeHandler(old)
        old.close()

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        handler = RotatingFileHandler(os.path.join(log_dir, 'access.log'), maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT)
        handler.setLevel(logging.INFO)
        handler.setFormatter(formatter)
        setattr(handler, OWNED_MARK, True)
        logger.addHandler(handler)

        error_handler = RotatingFileHandler(os.path.join(log_dir, 'error.log'), maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT)
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        setattr(error_handler, OWNED_MARK, True)
        logger.addHandler(error_handler)

    if console:
        rich_handler = RichHandler(rich_tracebacks=True, show_path=False)
        rich_handler.setLevel(level)
        setattr(rich_handler, OWNED_MARK, True)
        logger.addHandler(rich_handler)

    return logger

import sys
from typing import Optional

from loguru import logger

from instance_memo.settings import get_settings


PACKAGE_NAME = "instance_memo"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)


def configure_logging(level: Optional[str] = None) -> None:
    """Install a stderr sink for memoization events and enable them.

    The package keeps its records disabled until this is called, so importing
    it never adds output to a host application's logs.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    logger.enable(PACKAGE_NAME)


def get_logger(name: Optional[str] = None, **kwargs):
    """Return a logger bound with an optional module/component name."""
    if name:
        return logger.bind(module=name, **kwargs)
    return logger.bind(**kwargs)

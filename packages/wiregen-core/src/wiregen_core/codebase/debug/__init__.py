import logging
import os
from functools import wraps

_SPY_LOGGER = logging.getLogger("wiregen.spy")
_ROOT_LOGGER_NAME = "wiregen"

__all__ = ["spy_enabled", "spy_trace", "configure_logging"]


def spy_enabled() -> bool:
    val = os.getenv("WIREGEN_SPY", "0")
    return str(val).lower() not in {"", "0", "false", "no"}


def spy_trace(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if spy_enabled():
            _SPY_LOGGER.debug("Entering %s", func.__qualname__)
        result = func(*args, **kwargs)
        if spy_enabled():
            _SPY_LOGGER.debug("Exiting %s", func.__qualname__)
        return result
    return wrapper


def configure_logging(level: int = logging.WARNING) -> None:
    """
    Ensure the wiregen logger tree has a handler in case the app didn't configure logging.
    Safe to call multiple times.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)

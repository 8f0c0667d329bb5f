"""
Rate-limited logging for repeated gateway warnings.

A misconfigured gateway (wrong content type, HTML error pages) produces the
same warning on every call; this keeps one copy per message per TTL window.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_seen = TTLCache(maxsize=256, ttl=300)
_seen_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None,
) -> bool:
    """
    Log a message unless the same level+message was logged within the TTL.

    Args:
        message: Message to log
        level: Log level name (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{level}:{message}"

    with _seen_lock:
        if key in _seen:
            return False
        _seen[key] = True

    log_method(message)
    return True


def reset() -> None:
    """Forget every suppressed message."""
    with _seen_lock:
        _seen.clear()

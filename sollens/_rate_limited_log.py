"""
Thread-safe rate-limited logging utilities.

Used to keep repeated endpoint warnings (an RPC node failing on every poll,
for example) from flooding the log.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# Maximum of 100 entries, 1 hour TTL; values are the time each key may log again
_log_cache: TTLCache = TTLCache(maxsize=100, ttl=3600)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = 60,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per interval, in a thread-safe manner.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical logs in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)

    key = f"{level}:{message}"

    with _log_cache_lock:
        now = _log_cache.timer()
        next_allowed = _log_cache.get(key)
        if next_allowed is not None and now < next_allowed:
            return False

        log_method(message)
        _log_cache[key] = now + interval
        return True


def reset_rate_limits() -> None:
    """Forget every suppressed message."""
    with _log_cache_lock:
        _log_cache.clear()

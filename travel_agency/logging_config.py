import functools
import logging
import time

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def configure_logging(level: str = "INFO"):
    """Configure root logging for the API process"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # SQL echo is controlled separately from the application level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def timed(operation: str):
    """Log how long a service operation takes, and which error ended it if it failed."""
    def decorator(func):
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.warning("%s failed after %.1fms: %s: %s", operation, elapsed_ms, type(e).__name__, e)
                raise
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug("%s completed in %.1fms", operation, elapsed_ms)
            return result

        return wrapper
    return decorator

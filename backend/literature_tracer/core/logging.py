"""
Logging Configuration

One stdout handler on the root logger, configured from LOG_LEVEL at import.
Provider adapters, the pipeline and the evaluators all log through
get_logger(__name__); chatty HTTP/LLM client libraries are held at WARNING
so a single search does not bury the pipeline's own progress lines.
"""
import logging
import sys
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from literature_tracer.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx logs every provider request at INFO; openai/langchain log every LLM call
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "openai", "langchain")


def setup_logging(level: Optional[str] = None) -> None:
    """
    (Re)configure the root logger.

    Unknown level names fall back to INFO rather than failing startup.
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(log_level)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_duration(logger: logging.Logger, stage: str) -> Iterator[None]:
    """Log '---<STAGE> COMPLETE in Ns---' when the block exits, even on error."""
    start = time.monotonic()
    try:
        yield
    finally:
        logger.info(f"---{stage.upper()} COMPLETE in {time.monotonic() - start:.1f}s---")


setup_logging()

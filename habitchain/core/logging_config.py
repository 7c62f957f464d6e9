"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)`; this only configures
the root handler once at start-up (API process or gunicorn worker).
"""
import logging

from habitchain.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )

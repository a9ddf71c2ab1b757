import logging
import sys
from app import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler = None

def setup_logging(level: str = None):
    """Configure the root handler once; later calls only adjust the level."""
    global _handler
    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)

def mask_token(token: str) -> str:
    if not token:
        return "<none>"
    return f"{token[:10]}..."

setup_logging()
logger = logging.getLogger("instagram-metrics")

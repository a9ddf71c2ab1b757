import logging

from app.utils import logger as logger_module
from app.utils.logger import mask_token, setup_logging


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    before = len(root.handlers)

    setup_logging("debug")
    setup_logging("info")

    assert len(root.handlers) == before
    assert logger_module._handler in root.handlers
    assert root.level == logging.INFO


def test_mask_token_keeps_prefix_only():
    assert mask_token("EAAsecretfulltoken1234") == "EAAsecretf..."
    assert mask_token("") == "<none>"

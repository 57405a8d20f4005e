"""Tests for root logger configuration."""
import logging

import pytest

from app_logging import HANDLER_NAME, configure_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers = [h for h in saved_handlers if h.get_name() != HANDLER_NAME]
    yield root
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def _own_handlers(root):
    return [h for h in root.handlers if h.get_name() == HANDLER_NAME]


def test_configure_logging_adds_one_named_handler(root_logger):
    configure_logging("DEBUG")
    configure_logging("DEBUG")

    handlers = _own_handlers(root_logger)
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert root_logger.level == logging.DEBUG


def test_configure_logging_keeps_foreign_handlers(root_logger):
    other = logging.NullHandler()
    root_logger.addHandler(other)

    configure_logging("WARNING")

    assert other in root_logger.handlers
    assert len(_own_handlers(root_logger)) == 1
    assert root_logger.level == logging.WARNING

"""Unit tests for setup_logging."""
from __future__ import annotations

import logging

import pytest

from backend.src.infrastructure.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_sets_level(self, restore_root_logger):
        setup_logging("debug")
        assert restore_root_logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging("chatty")
        assert restore_root_logger.level == logging.INFO

    def test_repeated_setup_adds_one_handler(self, restore_root_logger):
        setup_logging("INFO")
        setup_logging("WARNING")
        names = [h.get_name() for h in restore_root_logger.handlers]
        assert names.count("frameslicer-stdout") == 1

    def test_quiets_third_party_loggers(self, restore_root_logger):
        setup_logging("DEBUG")
        assert logging.getLogger("google").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

# tests/core/test_logging.py
import logging

from nursery.core import logging as nursery_logging
from nursery.core.config import settings


def test_logger_uses_configured_level(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "warning")

    logger = nursery_logging.get_logger("nursery.level-check")

    assert logger.level == logging.WARNING
    assert all(handler.level == logging.WARNING for handler in logger.handlers)


def test_level_follows_setting_on_later_calls(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "debug")
    nursery_logging.get_logger("nursery.level-change")

    monkeypatch.setattr(settings, "LOG_LEVEL", "error")
    logger = nursery_logging.get_logger("nursery.level-change")

    assert logger.level == logging.ERROR


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "chatty")

    assert nursery_logging.log_level() == logging.INFO

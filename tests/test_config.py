"""
Tests for configuration and logging setup.
"""

import logging
import os

import pytest
from pydantic import ValidationError

from api.config import APIConfig
from utilities.logger import get_logger, setup_logging


def test_defaults():
    config = APIConfig()

    assert config.mongodb_collection == "books"
    assert config.log_level == "INFO"
    assert config.log_format == "json"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_DATABASE", "library_test")
    monkeypatch.setenv("PORT", "9000")

    config = APIConfig()

    assert config.mongodb_database == "library_test"
    assert config.port == 9000


def test_log_level_is_normalized():
    assert APIConfig(log_level="debug").log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        APIConfig(log_level="chatty")


def test_invalid_log_format():
    with pytest.raises(ValidationError):
        APIConfig(log_format="xml")


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "api.log"

    setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))
    setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

    root_logger = logging.getLogger()
    handlers = [
        handler for handler in root_logger.handlers
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_file)
    ]
    try:
        assert len(handlers) == 1
        assert log_file.parent.is_dir()
        assert get_logger("tests") is not None
    finally:
        for handler in handlers:
            root_logger.removeHandler(handler)
            handler.close()

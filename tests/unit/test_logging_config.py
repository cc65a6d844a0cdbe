"""Tests for logging configuration."""

import logging

from regserver.logging_config import StructuredLogContext, configure_server_logging


def test_structured_context_format():
    context = StructuredLogContext(func="tags", method="GET")
    assert str(context) == "func=tags | method=GET"


def test_structured_context_bind():
    context = StructuredLogContext(func="tags").bind(error="boom")
    assert str(context) == "func=tags | error=boom"


def test_configure_server_logging_console_only():
    logger = configure_server_logging("warning", log_dir="")
    assert logger.name == "regserver"
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1


def test_configure_server_logging_with_file(tmp_path):
    logger = configure_server_logging("DEBUG", log_dir=str(tmp_path / "logs"))
    assert len(logger.handlers) == 2
    assert (tmp_path / "logs" / "server.log").exists()
    logger.handlers.clear()


def test_module_loggers_are_children():
    logger = configure_server_logging("INFO", include_console=False, log_dir="")
    assert logging.getLogger("regserver.pipeline").parent is logger

import json
import logging
from pathlib import Path

import pytest
import structlog

from servicebus_sample.core.logging import LoggerFactory, configure_logging, get_logger


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    LoggerFactory._configured = False


def test_json_file_output_carries_context(tmp_path, restore_logging) -> None:
    log_file = tmp_path / "logs" / "sample.log"
    configure_logging(
        level="DEBUG",
        fmt="json",
        log_file=log_file,
        context={"app": "servicebus-sample"},
        force=True,
    )

    get_logger("servicebus_sample.test").info("scenario.step.done", step="create_queue")
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["event"] == "scenario.step.done"
    assert record["step"] == "create_queue"
    assert record["app"] == "servicebus-sample"
    assert record["level"] == "info"
    assert "@timestamp" in record


def test_configure_is_idempotent_without_force(tmp_path, restore_logging) -> None:
    configure_logging(log_file=tmp_path / "a.log", force=True)
    configure_logging(log_file=tmp_path / "b.log")

    assert not (tmp_path / "b.log").exists()
    handlers = logging.getLogger().handlers
    assert len(handlers) == 2
    assert Path(handlers[1].baseFilename).name == "a.log"


def test_noisy_sdk_loggers_are_quieted(restore_logging) -> None:
    configure_logging(level="DEBUG", force=True)

    assert logging.getLogger("azure.identity").level == logging.WARNING
    assert logging.getLogger("urllib3").level == logging.WARNING

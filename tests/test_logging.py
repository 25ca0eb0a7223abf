"""Test logging setup and contextual fields.

Tests for plotgraph.utils.logging_config:
    - JSON file output carries pushed context
    - Repeated setup replaces handlers instead of stacking them
    - log_context() restores the previous fields on exit
    - Unknown levels and rotation modes are rejected

Run:
    pytest tests/test_logging.py -v
"""

from __future__ import annotations

import json
import logging

import pytest

from plotgraph.utils import logging_config


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
    logging_config.pop_context()


def test_json_file_output_is_idempotent(tmp_path, restore_root) -> None:
    log_path = tmp_path / "engine.log"
    kwargs = dict(
        log_level="INFO",
        log_file=str(log_path),
        json=True,
        to_stderr=False,
        capture_warnings=False,
        context={"app": "test"},
    )

    logging_config.setup_logging(**kwargs)
    logger = logging_config.get_logger("plotgraph.test")
    with logging_config.log_context(run=3):
        logger.info("hello")

    handlers = logging_config.setup_logging(**kwargs)
    logger.info("world")
    for handler in handlers:
        handler.flush()

    lines = log_path.read_text().strip().splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["msg"] == "hello"
    assert first["app"] == "test"
    assert first["run"] == 3
    assert "run" not in second


def test_log_context_restores_previous_fields(restore_root) -> None:
    logging_config.push_context(run=1)
    with logging_config.log_context(run=2, node="circle-1"):
        assert logging_config.current_context() == {"run": 2, "node": "circle-1"}
    assert logging_config.current_context() == {"run": 1}


def test_pop_context_keys(restore_root) -> None:
    logging_config.push_context(run=1, node="a")
    logging_config.pop_context(["node"])
    assert logging_config.current_context() == {"run": 1}


def test_human_format_includes_context() -> None:
    formatter = logging_config.ContextFormatter("human", use_color=False)
    record = logging.LogRecord("plotgraph", logging.INFO, __file__, 1, "Cache hit", None, None)
    with logging_config.log_context(node="rep-1"):
        line = formatter.format(record)
    assert "| node=rep-1 | Cache hit" in line
    assert "INFO" in line


def test_bad_format_mode() -> None:
    with pytest.raises(ValueError, match="fmt_mode"):
        logging_config.ContextFormatter("xml")


def test_unknown_level(restore_root) -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        logging_config.setup_logging("LOUD", to_stderr=False)


def test_unknown_rotation_mode(tmp_path, restore_root) -> None:
    with pytest.raises(ValueError, match="rotation mode"):
        logging_config.setup_logging(
            log_file=str(tmp_path / "x.log"),
            to_stderr=False,
            rotate={"mode": "weekly"},
            capture_warnings=False,
        )


def test_set_level(restore_root) -> None:
    logging_config.set_level("debug")
    assert restore_root.level == logging.DEBUG

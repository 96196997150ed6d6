from __future__ import annotations

import json

from courier.utils.logger import Logger


def test_text_format_without_color(monkeypatch, capsys):
    monkeypatch.setenv("LOG_LEVEL", "info")
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    logger = Logger("Agent")

    logger.debug("hidden")
    logger.info("Turn complete", {"turns": 4})

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[INFO] [Agent] Turn complete" in out
    assert '"turns": 4' in out
    assert "\033[" not in out


def test_json_format_one_line_per_record(monkeypatch, capsys):
    monkeypatch.setenv("LOG_FORMAT", "json")
    monkeypatch.setenv("LOG_LEVEL", "warning")
    logger = Logger("Tools")

    logger.info("skipped")
    logger.warning("Tool echo failed", {"tool": "echo"})
    logger.error("Tool crashed", ValueError("bad input"))

    captured = capsys.readouterr()
    warning = json.loads(captured.out.strip())
    error = json.loads(captured.err.strip())

    assert warning["level"] == "warning"
    assert warning["logger"] == "Tools"
    assert warning["event"] == "Tool echo failed"
    assert warning["tool"] == "echo"
    assert error["error_type"] == "ValueError"
    assert error["error_message"] == "bad input"
    assert "traceback" not in error


def test_debug_errors_include_traceback(monkeypatch, capsys):
    monkeypatch.setenv("LOG_FORMAT", "json")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    logger = Logger("Agent")

    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        logger.error("Request failed", e)

    record = json.loads(capsys.readouterr().err.strip())
    assert "RuntimeError: boom" in record["traceback"]


def test_settings_loaded_after_creation_apply(monkeypatch, capsys):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    logger = Logger("Main")

    logger.debug("before")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger.debug("after")

    out = capsys.readouterr().out
    assert "before" not in out
    assert json.loads(out.strip())["event"] == "after"

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
import structlog
from structlog.testing import capture_logs

from scoutforall.contracts import Evaluation, EventType, TeamSide, ValidationError
from scoutforall.core import EventBus, configure_logging, get_logger
from scoutforall.session import ScoutingSession
from tests.helpers import make_descriptor, make_event


def test_event_bus_counts_per_type():
    bus = EventBus()
    bus.publish_applied(make_event(EventType.SERVE, Evaluation.PERFECT, "S"))
    bus.publish_applied(make_event(EventType.FAULT))
    assert bus.emitted_count() == 2
    assert bus.emitted_count(EventType.FAULT) == 1
    bus.reset()
    assert bus.emitted_count() == 0


def test_engine_logs_structured_events():
    configure_logging("debug")
    session = ScoutingSession(make_descriptor(TeamSide.US))
    with capture_logs() as captured:
        session.scout(EventType.SERVE, Evaluation.ERROR, "S")
        session.scout(EventType.PASS, Evaluation.PERFECT, "OH1")
        session.scout(EventType.ATTACK, Evaluation.PERFECT, "OPP")
    names = [entry["event"] for entry in captured]
    assert names.count("event_applied") == 3
    assert "lineup_rotated" in names
    applied = next(entry for entry in captured if entry["event"] == "event_applied")
    assert applied["event_type"] == "S"
    assert applied["log_level"] == "debug"


def test_rejections_are_logged():
    configure_logging("debug")
    session = ScoutingSession(make_descriptor(TeamSide.US))
    with capture_logs() as captured, pytest.raises(ValidationError):
        session.scout(EventType.BLOCK, Evaluation.PERFECT, "OPP")
    rejected = [entry for entry in captured if entry["event"] == "event_rejected"]
    assert rejected and rejected[0]["codes"] == ["ILLEGAL_EVENT_TYPE"]


def test_package_imports_without_logging_configured():
    src = Path(__file__).resolve().parents[1] / "src"
    env = {**os.environ, "PYTHONPATH": str(src)}
    code = "import scoutforall.cli, scoutforall.session, scoutforall.volley"
    result = subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True, check=False)
    assert result.returncode == 0, result.stderr


def test_loggers_carry_their_name():
    structlog.reset_defaults()
    logger = get_logger("scoutforall.volley.lineup")
    with capture_logs() as captured:
        logger.info("lineup_ready")
    assert captured == [{"event": "lineup_ready", "log_level": "info", "logger_name": "scoutforall.volley.lineup"}]


def test_json_lines_include_the_logger_name(capsys: pytest.CaptureFixture[str]):
    configure_logging("info", json=True)
    get_logger("scoutforall.session.live").info("session_opened", set_number=1)
    line = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert line["event"] == "session_opened"
    assert line["logger_name"] == "scoutforall.session.live"
    assert line["level"] == "info"

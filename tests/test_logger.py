import json
import logging
from datetime import datetime

from ecoflow_worker.utils.logger import ContextLogger, JsonFormatter, get_logger


def make_record(**extra):
    record = logging.LogRecord("ecoflow_worker.jobs", logging.INFO, __file__, 1, "reading_stored", None, None)
    record.__dict__.update(extra)
    return record


def test_context_fields_are_flattened_into_the_payload():
    line = JsonFormatter().format(make_record(device_sn="SN-10", recorded_at=datetime(2026, 10, 17, 12, 0)))
    payload = json.loads(line)

    assert payload["message"] == "reading_stored"
    assert payload["level"] == "INFO"
    assert payload["device_sn"] == "SN-10"
    assert payload["recorded_at"] == "2026-10-17 12:00:00"
    assert "lineno" not in payload


def test_keyword_context_moves_into_extra():
    adapter = ContextLogger(logging.getLogger("ecoflow_worker.test"), {})

    msg, kwargs = adapter.process("job_finished", {"job": "collect", "exc_info": True})

    assert msg == "job_finished"
    assert kwargs == {"exc_info": True, "extra": {"job": "collect"}}


def test_get_logger_returns_context_adapter():
    logger = get_logger("ecoflow_worker.test_logger")

    assert isinstance(logger, ContextLogger)
    assert len(logger.logger.handlers) == 1
    get_logger("ecoflow_worker.test_logger")
    assert len(logger.logger.handlers) == 1

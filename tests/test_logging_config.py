import json
import logging

from stepcheck.logging_config import JSONFormatter, setup_logging


def test_json_formatter_includes_context():
    record = logging.LogRecord("stepcheck.session", logging.INFO, __file__, 10, "Step %s committed", (2,), None)
    record.step_index = 2
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "Step 2 committed"
    assert payload["level"] == "INFO"
    assert payload["step_index"] == 2
    assert "behavior" not in payload


def test_setup_logging_installs_one_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        logger = setup_logging("debug", json_format=True)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

"""Tests for context-aware logging."""

import logging

from ralph.utils.rich_logging import ContextLogger, RalphLogFormatter, get_logger, setup_rich_logging


def _record(msg="hello", **extra):
    record = logging.LogRecord("ralph", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRalphLogFormatter:
    def test_includes_issue_and_stage(self):
        line = RalphLogFormatter(use_colors=False).format(_record(issue_id="HLN-1", stage="plan"))
        assert line.endswith("INFO     [HLN-1] [plan] hello")

    def test_plain_without_context(self):
        line = RalphLogFormatter(use_colors=False).format(_record())
        assert "[" not in line

    def test_colors(self):
        assert "\033[32m" in RalphLogFormatter(use_colors=True).format(_record())


class TestContextLogger:
    def test_verbose_follows_level(self):
        assert setup_rich_logging(verbose=True, use_colors=False).verbose
        assert not setup_rich_logging(verbose=False, use_colors=False).verbose

    def test_context_added_to_records(self):
        logger = ContextLogger(logging.getLogger("ralph.test"))
        logger.set_issue_context(issue_id="HLN-1", stage="review")

        _, kwargs = logger.process("msg", {})

        assert kwargs["extra"] == {"issue_id": "HLN-1", "stage": "review"}

    def test_clear_context(self):
        logger = ContextLogger(logging.getLogger("ralph.test"))
        logger.set_issue_context(issue_id="HLN-1")
        logger.clear_context()

        _, kwargs = logger.process("msg", {})

        assert kwargs["extra"] == {}

    def test_get_logger_prefers_parent(self):
        parent = setup_rich_logging(use_colors=False)
        assert get_logger("ralph.anything", parent) is parent
        assert isinstance(get_logger("ralph.anything"), ContextLogger)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "ralph.log"
        logger = setup_rich_logging(log_file=log_file, use_colors=False)

        logger.set_issue_context(issue_id="HLN-1")
        logger.stage_succeeded("plan", "Plan completed successfully")

        assert "[HLN-1] ✓ Plan: Plan completed successfully" in log_file.read_text(encoding="utf-8")

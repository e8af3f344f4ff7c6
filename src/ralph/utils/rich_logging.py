"""Console logging with issue and stage context."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "ralph"


class RalphLogFormatter(logging.Formatter):
    """Formatter that prefixes records with issue and stage context."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        issue_context = f"[{record.issue_id}] " if hasattr(record, "issue_id") else ""
        stage_context = f"[{record.stage}] " if hasattr(record, "stage") else ""

        if self.use_colors:
            level_colors = {
                "DEBUG": "\033[36m",      # Cyan
                "INFO": "\033[32m",       # Green
                "WARNING": "\033[33m",    # Yellow
                "ERROR": "\033[31m",      # Red
                "CRITICAL": "\033[35m",   # Magenta
            }
            reset = "\033[0m"
            level_color = level_colors.get(record.levelname, "")
        else:
            level_color = ""
            reset = ""

        return (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{issue_context}{stage_context}{record.getMessage()}"
        )


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that adds issue and stage context to all log messages.

    Created once at process entry and passed explicitly to every component
    that logs, so verbosity is a property of this object rather than of
    global state.
    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})
        self.current_issue_id: Optional[str] = None
        self.current_stage: Optional[str] = None

    @property
    def verbose(self) -> bool:
        return self.logger.isEnabledFor(logging.DEBUG)

    def set_issue_context(self, issue_id: Optional[str] = None, stage: Optional[str] = None):
        if issue_id:
            self.current_issue_id = issue_id
        if stage is not None:
            self.current_stage = stage

    def clear_context(self):
        self.current_issue_id = None
        self.current_stage = None

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})

        if self.current_issue_id:
            extra["issue_id"] = self.current_issue_id
        if self.current_stage:
            extra["stage"] = self.current_stage

        kwargs["extra"] = extra
        return msg, kwargs

    def stage_started(self, stage: str):
        self.set_issue_context(stage=stage)
        self.debug(f"Stage {stage} starting")

    def stage_succeeded(self, stage: str, message: str):
        self.info(f"✓ {stage.capitalize()}: {message}")

    def stage_failed(self, stage: str, message: str):
        self.error(f"{stage.capitalize()} failed: {message}")

    def retrying(self, stage: str, attempt: int, max_attempts: int):
        self.info(f"⟳ Retrying {stage} (attempt {attempt}/{max_attempts})")


def setup_rich_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    use_colors: Optional[bool] = None,
) -> ContextLogger:
    """
    Configure the ralph logger hierarchy and return a ContextLogger.

    Args:
        verbose: Enable DEBUG output
        log_file: Optional plain-text log file
        use_colors: Force ANSI colours on or off (default: only on a TTY)

    Returns:
        ContextLogger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if use_colors is None:
        use_colors = sys.stderr.isatty() and "NO_COLOR" not in os.environ

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(RalphLogFormatter(use_colors=use_colors))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(RalphLogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    context_logger = ContextLogger(logger)
    if verbose:
        context_logger.debug("Verbose logging enabled")
    return context_logger


def get_logger(name: str, parent: Optional[ContextLogger] = None) -> ContextLogger:
    """Return `parent` when supplied, else a context-free adapter for `name`."""
    if parent is not None:
        return parent
    return ContextLogger(logging.getLogger(name))

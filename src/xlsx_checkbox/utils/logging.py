"""Structured logging utilities for xlsx checkbox extraction.

This module provides:
- Workbook/sheet tracking using contextvars for correlation across parts
- Structured logging with consistent format and metadata
- Performance metrics logging helpers

Usage:
    from xlsx_checkbox.utils.logging import get_logger, LogContext

    logger = get_logger(__name__)

    with LogContext(workbook="forms.xlsx", sheet="Sheet1"):
        logger.info("Parsing sheet", part="xl/worksheets/sheet1.xml")

    with timed_operation(logger, "sheet_parse") as metrics:
        metrics.controls_found += 1

The package never configures logging on import; applications call
configure_logging() (or their own logging setup) once.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from xlsx_checkbox.config import settings

# Context variables for workbook/sheet tracking
_workbook_var: ContextVar[str | None] = ContextVar("workbook", default=None)
_sheet_var: ContextVar[str | None] = ContextVar("sheet", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_workbook() -> str | None:
    """Get the workbook currently being read, if any."""
    return _workbook_var.get()


def set_workbook(workbook: str | None) -> None:
    """Set the workbook in context.

    Args:
        workbook: Workbook path or label, or None to clear.
    """
    _workbook_var.set(workbook)


def get_sheet() -> str | None:
    """Get the sheet currently being parsed, if any."""
    return _sheet_var.get()


def set_sheet(sheet: str | None) -> None:
    """Set the sheet in context.

    Args:
        sheet: Sheet name, or None to clear.
    """
    _sheet_var.set(sheet)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars.

    Returns:
        Dictionary of extra context values.
    """
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars."""
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _workbook_var.set(None)
    _sheet_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for performance metrics of one streaming pass.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        parts_streamed: Number of package parts opened and streamed.
        controls_found: Number of control elements seen.
        checkboxes_indexed: Number of checkboxes inserted into the index.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    parts_streamed: int = 0
    controls_found: int = 0
    checkboxes_indexed: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging, omitting zero counters."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.parts_streamed > 0:
            result["parts_streamed"] = self.parts_streamed
        if self.controls_found > 0:
            result["controls_found"] = self.controls_found
        if self.checkboxes_indexed > 0:
            result["checkboxes_indexed"] = self.checkboxes_indexed
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that prefixes records with the workbook/sheet context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        prefix_parts = []
        workbook = get_workbook()
        if workbook:
            prefix_parts.append(f"workbook={workbook}")
        sheet = get_sheet()
        if sheet:
            prefix_parts.append(f"sheet={sheet}")
        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Logger wrapper that renders keyword context as ``k=v`` pairs.

    Wraps a standard Python logger; every level method accepts arbitrary
    keyword arguments which are appended to the message.
    """

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def is_enabled_for(self, level: int) -> bool:
        """Check whether a message at ``level`` would be emitted."""
        return self._logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(
            f"Performance: {metrics.operation}",
            **metrics.to_dict(),
        )


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(sheet="Sheet1", part="xl/worksheets/sheet1.xml"):
            logger.info("Parsing...")  # prefixed with sheet and part
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context. ``workbook`` and
                ``sheet`` are stored in their dedicated context variables.
        """
        self._new_context = dict(kwargs)
        self._old_context: dict[str, Any] = {}
        self._old_workbook: str | None = None
        self._old_sheet: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_workbook = get_workbook()
        self._old_sheet = get_sheet()

        new_context = dict(self._new_context)
        workbook = new_context.pop("workbook", None)
        sheet = new_context.pop("sheet", None)

        if workbook is not None:
            set_workbook(workbook)
        if sheet is not None:
            set_sheet(sheet)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_workbook(self._old_workbook)
        set_sheet(self._old_sheet)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "sheet_parse") as metrics:
            metrics.parts_streamed += 1

        # Logs: "Performance: sheet_parse | operation=..., duration_seconds=..."

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str | None = None,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure logging for an application using this package.

    Args:
        level: Log level (int or string like "INFO"). Defaults to
            ``settings.log_level`` (XCB_LOG_LEVEL).
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if level is None:
        level = settings.log_level_int
    elif isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Sheet selected", sheet="Sheet1", checkboxes=12)
    """
    return StructuredLogger(name)

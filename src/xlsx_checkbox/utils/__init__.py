"""Utilities package for xlsx checkbox extraction.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xlsx_checkbox.utils.exceptions import (
    CheckboxReaderError,
    ErrorCode,
    MalformedDocumentError,
    NoSheetSelectedError,
    PackageError,
    PackageOpenError,
    PartNotFoundError,
    SheetError,
    SheetNotFoundError,
)
from xlsx_checkbox.utils.logging import (
    LogContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    timed_operation,
)

__all__ = [
    # Exceptions
    "CheckboxReaderError",
    "ErrorCode",
    "MalformedDocumentError",
    "NoSheetSelectedError",
    "PackageError",
    "PackageOpenError",
    "PartNotFoundError",
    "SheetError",
    "SheetNotFoundError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "timed_operation",
]

"""Centralized exception classes for xlsx checkbox extraction.

This module provides a hierarchy of custom exceptions with error codes and
structured error details for consistent error handling across the package.

Exception Hierarchy:
    CheckboxReaderError (base)
    ├── PackageError
    │   ├── PackageOpenError
    │   └── PartNotFoundError
    ├── SheetError
    │   ├── SheetNotFoundError
    │   └── NoSheetSelectedError
    └── MalformedDocumentError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.

Resolution misses (a control without a drawing shape, a control without a
properties part, a query at an empty cell) are not exceptions: they are
logged where they happen and degrade to an unset value.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the package.

    Error codes are grouped by category:
    - E1xxx: Container/package errors
    - E2xxx: Sheet selection errors
    - E3xxx: Document content errors
    - E9xxx: Internal/unexpected errors
    """

    # Package errors (E1xxx)
    PACKAGE_NOT_FOUND = "E1001"
    INVALID_PACKAGE = "E1002"
    PART_NOT_FOUND = "E1003"
    PACKAGE_TOO_LARGE = "E1004"
    PACKAGE_CLOSED = "E1005"

    # Sheet errors (E2xxx)
    SHEET_NOT_FOUND = "E2001"
    NO_SHEET_SELECTED = "E2002"

    # Document errors (E3xxx)
    MALFORMED_DOCUMENT = "E3001"
    INVALID_ANCHOR = "E3002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class CheckboxReaderError(Exception):
    """Base exception for all checkbox reader errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for structured logging.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Package Errors (E1xxx)
# =============================================================================


class PackageError(CheckboxReaderError):
    """Base class for container-level errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_PACKAGE,
        package_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with package path information.

        Args:
            message: Error message.
            error_code: Error code.
            package_path: Path to the problematic container.
            details: Additional details.
        """
        details = details or {}
        if package_path:
            details["package_path"] = package_path
        super().__init__(message, error_code, details)
        self.package_path = package_path


class PackageOpenError(PackageError):
    """Raised when a container is missing or is not a valid OOXML package."""

    def __init__(
        self,
        message: str,
        package_path: str | None = None,
        error_code: ErrorCode = ErrorCode.INVALID_PACKAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            package_path=package_path,
            details=details,
        )


class PartNotFoundError(PackageError):
    """Raised when a part or a relationship target does not exist."""

    def __init__(
        self,
        part_name: str,
        message: str | None = None,
        package_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing part name.

        Args:
            part_name: Name of the part that could not be found.
            message: Optional custom message.
            package_path: Container the lookup ran against.
            details: Additional details.
        """
        details = details or {}
        details["part_name"] = part_name
        super().__init__(
            message=message or f"Part not found: {part_name}",
            error_code=ErrorCode.PART_NOT_FOUND,
            package_path=package_path,
            details=details,
        )
        self.part_name = part_name


# =============================================================================
# Sheet Errors (E2xxx)
# =============================================================================


class SheetError(CheckboxReaderError):
    """Base class for sheet selection errors."""


class SheetNotFoundError(SheetError):
    """Raised when a sheet name is not declared in the workbook manifest."""

    def __init__(
        self,
        sheet_name: str,
        available: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the requested sheet name.

        Args:
            sheet_name: The sheet name that was requested.
            available: Sheet names that do exist, for the error details.
            details: Additional details.
        """
        details = details or {}
        details["sheet_name"] = sheet_name
        if available is not None:
            details["available_sheets"] = available
        super().__init__(
            f"Sheet '{sheet_name}' not found in workbook",
            ErrorCode.SHEET_NOT_FOUND,
            details,
        )
        self.sheet_name = sheet_name


class NoSheetSelectedError(SheetError):
    """Raised when a checkbox query runs before any sheet was selected."""

    def __init__(self, message: str = "No sheet selected; call select_sheet first") -> None:
        super().__init__(message, ErrorCode.NO_SHEET_SELECTED)


# =============================================================================
# Document Errors (E3xxx)
# =============================================================================


class MalformedDocumentError(CheckboxReaderError):
    """Raised when a part cannot be parsed into the expected structure."""

    def __init__(
        self,
        message: str,
        part_name: str | None = None,
        error_code: ErrorCode = ErrorCode.MALFORMED_DOCUMENT,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending part.

        Args:
            message: Error message.
            part_name: Part being parsed when the error occurred.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if part_name:
            details["part_name"] = part_name
        super().__init__(message, error_code, details)
        self.part_name = part_name

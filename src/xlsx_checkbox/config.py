"""Configuration management for xlsx checkbox extraction.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XCB_ prefix, or via a .env file in the working directory.

Environment Variables:
    XCB_LOG_LEVEL: Logging level used by configure_logging (default: INFO)
    XCB_UNANCHORED_CONTROLS: What to do with a control whose anchor has no
        row/col: skip, origin or error (default: skip)
    XCB_DRAWING_SEARCH: Which drawing parts are searched for control text:
        first or all (default: first)
    XCB_HUGE_TREE: Lift lxml's size limits for very large parts (default: false)
    XCB_MAX_PACKAGE_SIZE_MB: Largest container accepted, in MB (default: 200)
"""

import logging
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UnanchoredPolicy = Literal["skip", "origin", "error"]
DrawingSearch = Literal["first", "all"]


class Settings(BaseSettings):
    """Reader settings loaded from environment variables.

    Example .env file:
        XCB_LOG_LEVEL=DEBUG
        XCB_UNANCHORED_CONTROLS=origin
    """

    model_config = SettingsConfigDict(
        env_prefix="XCB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Parsing Settings
    # =========================================================================

    unanchored_controls: UnanchoredPolicy = "skip"
    """Policy for controls whose ``from`` anchor never supplied row/col.

    ``skip`` drops them, ``origin`` indexes them at (0, 0), ``error`` raises
    MalformedDocumentError.
    """

    drawing_search: DrawingSearch = "first"
    """``first`` searches only the sheet's first drawing part, ``all`` walks
    every drawing part in relationship order until a shape matches."""

    huge_tree: bool = False
    """Disable lxml's security limits on tree depth and text node size."""

    # =========================================================================
    # Package Settings
    # =========================================================================

    max_package_size_mb: int = 200
    """Containers larger than this are refused at open time."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_package_size_mb")
    @classmethod
    def validate_package_size(cls, v: int) -> int:
        """Validate package size limit is positive and reasonable."""
        if not 1 <= v <= 4096:
            raise ValueError(
                f"max_package_size_mb must be between 1 and 4096, got {v}"
            )
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_package_size_bytes(self) -> int:
        """Get max package size in bytes."""
        return self.max_package_size_mb * 1024 * 1024

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary for diagnostics."""
        return {
            "unanchored_controls": self.unanchored_controls,
            "drawing_search": self.drawing_search,
            "huge_tree": self.huge_tree,
            "max_package_size_mb": self.max_package_size_mb,
            "log_level": self.log_level,
        }


# Create the global settings instance
settings = Settings()

"""
Exceptions raised by the ZIP tax rate engine.

Only table loading can fail. Resolution itself never raises for a
well-formed ZIP; degraded lookups are expressed in the returned result.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class ZipTaxError(Exception):
    """Base exception for all engine errors."""


class DataLoadError(ZipTaxError):
    """A reference data file is missing, empty, or unreadable."""

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.file_path = file_path
        self.original_error = original_error

        if file_path:
            message = f"Error loading data file '{file_path}': {message}"
        if original_error:
            message = f"{message} (Original error: {original_error})"

        super().__init__(message)


class DataValidationError(ZipTaxError):
    """A row in a reference data file violates a field constraint."""

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        row_number: Optional[int] = None,
        column_name: Optional[str] = None,
        invalid_value: Any = None,
    ) -> None:
        self.file_path = file_path
        self.row_number = row_number
        self.column_name = column_name
        self.invalid_value = invalid_value

        parts = [message]
        if file_path:
            parts.append(f"File: {file_path}")
        if row_number is not None:
            parts.append(f"Row: {row_number}")
        if column_name:
            parts.append(f"Column: {column_name}")
        if invalid_value is not None:
            parts.append(f"Value: {invalid_value!r}")

        super().__init__(" | ".join(parts))


class ConfigurationIntegrityError(ZipTaxError):
    """
    Cross-table consistency check failed.

    Raised at load time, e.g. when a ZIP prefix points at a state code
    that has no tax profile.
    """

    def __init__(
        self,
        message: str,
        inconsistent_data: Optional[dict[str, Any]] = None,
    ) -> None:
        self.inconsistent_data = inconsistent_data or {}

        if inconsistent_data:
            details = ", ".join(
                f"{key}: {value}" for key, value in inconsistent_data.items()
            )
            message = f"{message} (Inconsistent data: {details})"

        super().__init__(message)


class InvalidZipError(ZipTaxError, ValueError):
    """Caller-supplied input does not reduce to a 5-digit ZIP code."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Valid 5-digit ZIP code required, got {raw!r}")

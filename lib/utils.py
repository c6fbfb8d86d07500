# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import math
from typing import Any


# =============================================================================
# Coercion Utilities
# =============================================================================
# Dashboard payloads arrive loosely typed (numbers as strings, floats where
# ints are expected), so every id goes through one of these.

def to_positive_int(value: Any) -> int | None:
    """
    Coerce a number or numeric string into a positive integer.

    Floats are truncated toward zero. Booleans, blanks, NaN/inf and
    anything <= 0 yield None.

    Example:
        to_positive_int("12")   # 12
        to_positive_int(3.9)    # 3
        to_positive_int("abc")  # None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    result = int(number)
    return result if result > 0 else None


def normalize_ids(values: Any) -> list[int]:
    """
    Turn an arbitrary list into sorted, unique, positive integer ids.

    Non-list input is treated as an empty list.
    """
    if not isinstance(values, list):
        return []
    ids = {i for i in (to_positive_int(v) for v in values) if i is not None}
    return sorted(ids)


def normalize_snowflake(value: str | int) -> str:
    """
    Normalize a Discord snowflake to its canonical decimal string.

    The member table stores discord_user_id as int8, so leading zeros or
    whitespace would miss the row.

    Raises:
        ValueError: If the value is not a non-negative integer
    """
    text = str(value).strip()
    if not text.isdigit():
        raise ValueError(f"Invalid Discord id: {value!r}")
    return str(int(text))


def first_row(data: Any) -> dict[str, Any] | None:
    """
    Return the first row of a query result, or None.

    Supabase returns either a list of rows or a single object depending on
    the query, and relationship joins can come back either way too.
    """
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for application-specific errors.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

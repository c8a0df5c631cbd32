# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Small helpers used across services, scorers and API clients:
# UUID normalization, lenient number parsing for user-entered company data,
# UTC timestamps, and the base error class for non-HTTP layers.
# =============================================================================

import re
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# UUID / Time Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """Return a UUID (object or string) as a string."""
    return str(value) if isinstance(value, UUID) else value


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 string (or date-only string) into an aware datetime.

    Government APIs mix "2024-05-01", "2024-05-01T00:00:00Z" and
    "05/01/2024"; anything unparseable returns None.

    Example:
        parse_datetime("2024-05-01")  # datetime(2024, 5, 1, tzinfo=UTC)
        parse_datetime("not a date")  # None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%m/%d/%Y")
        except ValueError:
            return None

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


# =============================================================================
# Number Utilities
# =============================================================================

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_number(value: Any, default: float = 0.0) -> float:
    """
    Leniently parse a number from company profile data.

    Keeps digits and the decimal point only, so "$1,500,000" and
    "1.5M revenue" both survive (the latter as 1.5).

    Args:
        value: int, float, str or None
        default: Returned when nothing numeric is found

    Returns:
        Parsed float, or `default`
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned or cleaned == ".":
        return default
    try:
        return float(cleaned)
    except ValueError:
        # More than one decimal point, e.g. "1.2.3"
        return default


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error for non-HTTP layers (database wrapper, AI, government APIs).

    Carries a code plus a suggestion telling the caller how to fix it.

    Example:
        class GovDataError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="GOV_DATA_ERROR", **kwargs)
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

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }

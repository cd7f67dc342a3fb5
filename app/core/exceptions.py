"""RevPace — Domain Exceptions."""

from typing import Optional


class RevPaceError(Exception):
    """Base class for all RevPace errors."""


class ValidationError(RevPaceError, ValueError):
    """Raised when input is structurally invalid (bad dates, bad amounts, empty ranges)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        row: Optional[int] = None,
        partner: Optional[str] = None,
    ):
        self.field = field
        self.row = row
        self.partner = partner
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "field": self.field,
            "row": self.row,
            "partner": self.partner,
        }


class RowParseError(ValidationError):
    """A single upload row could not be parsed. Callers skip the row."""


class PacingWindowError(ValidationError):
    """The reference date does not fall inside the reporting month."""

"""
Validation results for form input (transactions, shopping lists, invitations).

Validation only reports. Nothing here rewrites what the user typed; the
screen shows the issues and the user corrects them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """One problem with one form field."""

    field: str = Field(..., description="Form field the issue is attached to")
    issue_type: str = Field(
        ...,
        description="Machine-readable kind: missing, invalid_value, too_long, past_date, ..."
    )
    message: str = Field(..., description="Text shown next to the field")
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Errors block saving; warnings and info do not"
    )
    suggested_fix: Optional[str] = Field(default=None, description="Hint for the user")


class ValidationResult(BaseModel):
    """Every issue found in one submission."""

    validated_at: datetime = Field(default_factory=datetime.now)
    issues: list[ValidationIssue] = Field(default_factory=list)

    def _with_severity(self, severity: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == severity]

    @property
    def has_errors(self) -> bool:
        return bool(self._with_severity("error"))

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        return len(self._with_severity("error"))

    @property
    def warnings(self) -> list[str]:
        """Messages of warning-level issues, in the order they were found."""
        return [issue.message for issue in self._with_severity("warning")]

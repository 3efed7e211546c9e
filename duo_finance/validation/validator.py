"""
Input Validation

Everything a user types goes through here before a model is built
or anything is persisted. Checks run in two stages:

STAGE 1 - REQUIRED FIELDS:
- Presence of description / name / title
- Amounts that parse as finite numbers

STAGE 2 - SEMANTIC CHECKS (only when stage 1 passes):
- Due dates of future payments are not in the past
- Prices, quantities and budgets are in range
- Suspiciously large amounts

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the input.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from duo_finance.config import get_settings
from duo_finance.models.validation import ValidationIssue, ValidationResult


AmountInput = Union[str, int, float, Decimal, None]

MAX_DESCRIPTION_LENGTH = 200
MAX_NAME_LENGTH = 100
MAX_CATEGORY_LENGTH = 100
MAX_UNIT_LENGTH = 20


def parse_amount(raw: AmountInput) -> Optional[Decimal]:
    """
    Parse a user-entered number.

    Accepts a comma as the decimal separator ("12,50"). Returns None for
    blank, unparseable or non-finite input.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return None
    else:
        text = str(raw)
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _is_missing(raw: AmountInput) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


class TransactionValidator:
    """Validates a new transaction before it is saved."""

    def __init__(self):
        self._settings = get_settings().app

    def validate(
        self,
        description: Optional[str],
        amount: AmountInput,
        is_future_payment: bool = False,
        due_date: Optional[Union[date, datetime]] = None,
        category: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate transaction form input.

        Args:
            description: What the transaction was for
            amount: Signed amount as entered
            is_future_payment: Whether this is a scheduled payment
            due_date: Required for future payments
            category: Optional label; blank means uncategorized
            today: Reference day for the due-date check (defaults to today)
        """
        issues = []

        if _is_blank(description):
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Describe what the transaction was for",
            ))
        elif len(description.strip()) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        if category is not None and len(category.strip()) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=f"Category cannot exceed {MAX_CATEGORY_LENGTH} characters",
                severity="error",
            ))

        value = parse_amount(amount)
        if value is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if _is_missing(amount) else "invalid_value",
                message="Amount is required and must be a number",
                severity="error",
                suggested_fix="Enter a value such as 120,50 or -35",
            ))

        if is_future_payment and due_date is None:
            issues.append(ValidationIssue(
                field="due_date",
                issue_type="missing",
                message="Future payments need a due date",
                severity="error",
                suggested_fix="Pick the day the payment is due",
            ))

        if any(issue.severity == "error" for issue in issues):
            return ValidationResult(issues=issues)

        # Stage 2
        reference = today or date.today()
        if is_future_payment and _as_date(due_date) < reference:
            issues.append(ValidationIssue(
                field="due_date",
                issue_type="past_date",
                message=f"Due date ({_as_date(due_date)}) is in the past",
                severity="error",
                suggested_fix="Pick today or a later day",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if abs(value) > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({value}) seems unusually large",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if value == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="A zero amount is recorded as an expense of 0",
                severity="warning",
            ))

        return ValidationResult(issues=issues)


class ShoppingValidator:
    """Validates shopping list and item input."""

    def validate_list(
        self,
        title: Optional[str],
        budget: AmountInput,
    ) -> ValidationResult:
        issues = []

        if _is_blank(title):
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="List title is required",
                severity="error",
            ))
        elif len(title.strip()) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message=f"List title cannot exceed {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        value = parse_amount(budget)
        if value is None:
            issues.append(ValidationIssue(
                field="budget",
                issue_type="missing",
                message="Budget is required and must be a number",
                severity="error",
            ))
        elif value <= 0:
            issues.append(ValidationIssue(
                field="budget",
                issue_type="invalid_value",
                message="Budget must be greater than zero",
                severity="error",
                suggested_fix="Enter how much you plan to spend",
            ))

        return ValidationResult(issues=issues)

    def validate_item(
        self,
        name: Optional[str],
        price: AmountInput,
        quantity: AmountInput = 1,
        unit: Optional[str] = "un",
    ) -> ValidationResult:
        issues = []

        if _is_blank(name):
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Item name is required",
                severity="error",
            ))
        elif len(name.strip()) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Item name cannot exceed {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        price_value = parse_amount(price)
        if price_value is None:
            issues.append(ValidationIssue(
                field="price",
                issue_type="missing",
                message="Price is required and must be a number",
                severity="error",
            ))
        elif price_value < 0:
            issues.append(ValidationIssue(
                field="price",
                issue_type="invalid_value",
                message="Price cannot be negative",
                severity="error",
            ))

        quantity_value = parse_amount(quantity)
        if quantity_value is None or quantity_value <= 0:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_value",
                message="Quantity must be greater than zero",
                severity="error",
            ))

        if unit is not None and len(unit.strip()) > MAX_UNIT_LENGTH:
            issues.append(ValidationIssue(
                field="unit",
                issue_type="too_long",
                message=f"Unit cannot exceed {MAX_UNIT_LENGTH} characters",
                severity="error",
                suggested_fix="Use a short unit such as un, kg or l",
            ))

        return ValidationResult(issues=issues)


def get_user_friendly_summary(result: ValidationResult) -> str:
    """Short text shown next to a form after validation."""
    if result.is_valid and not result.warnings:
        return "✅ All checks passed!"

    lines = []
    errors = [issue for issue in result.issues if issue.severity == "error"]
    if errors:
        lines.append("❌ Please fix the following:")
        for issue in errors:
            line = f"  • {issue.message}"
            if issue.suggested_fix:
                line += f" ({issue.suggested_fix})"
            lines.append(line)

    if result.warnings:
        lines.append("⚠️ Please double-check:")
        for warning in result.warnings:
            lines.append(f"  • {warning}")

    return "\n".join(lines)

"""
Transaction Record Access

The aggregation engine accepts Transaction models, but also raw records
straight from the document store (mappings) or any object exposing
`amount`, `date` and optionally `category`.

Every read is strict. A record without a usable amount or date raises
MalformedTransactionError; nothing is skipped or coerced to zero.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import Field, TypeAdapter, ValidationError

from duo_finance.models.transaction import Transaction


class MalformedTransactionError(ValueError):
    """A transaction record is missing a field or holds an unusable value."""
    pass


_amount_adapter = TypeAdapter(Annotated[Decimal, Field(allow_inf_nan=False)])
_date_adapter = TypeAdapter(datetime)

_MISSING = object()


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def amount_of(record: Any) -> Decimal:
    """Signed amount of a record as a Decimal."""
    if isinstance(record, Transaction):
        return record.amount

    raw = _field(record, "amount")
    if raw is _MISSING or raw is None:
        raise MalformedTransactionError("Transaction record has no amount")
    if isinstance(raw, bool):
        raise MalformedTransactionError(f"Transaction amount is not a number: {raw!r}")
    try:
        return _amount_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedTransactionError(
            f"Transaction amount is not a number: {raw!r}"
        ) from e


def date_of(record: Any) -> datetime:
    """Instant of a record; ISO strings and epoch timestamps are accepted."""
    if isinstance(record, Transaction):
        return record.date

    raw = _field(record, "date")
    if raw is _MISSING or raw is None:
        raise MalformedTransactionError("Transaction record has no date")
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return datetime.combine(raw, time())
    try:
        return _date_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedTransactionError(
            f"Transaction date cannot be parsed: {raw!r}"
        ) from e


def category_of(record: Any) -> Optional[str]:
    """Category label, or None when absent or blank."""
    if isinstance(record, Transaction):
        return record.category or None

    raw = _field(record, "category")
    if raw is _MISSING or raw is None:
        return None
    if not isinstance(raw, str):
        raise MalformedTransactionError(
            f"Transaction category must be text: {raw!r}"
        )
    return raw.strip() or None

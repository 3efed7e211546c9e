"""
Transaction Filters

Date-range filtering happens here, after the store has returned every
transaction the user owns. Output order always matches input order.
"""

from datetime import datetime
from typing import Any, Iterable

from duo_finance.aggregation.records import date_of
from duo_finance.models.transaction import DateRange, Transaction


def _align(instant: datetime, reference: datetime) -> datetime:
    """
    Make `instant` comparable with `reference`.

    Naive datetimes are local time. Aware records are converted to local
    time when the bounds are naive, and naive records are localized when
    the bounds are aware.
    """
    instant_aware = instant.tzinfo is not None
    reference_aware = reference.tzinfo is not None
    if instant_aware == reference_aware:
        return instant
    if instant_aware:
        return instant.astimezone().replace(tzinfo=None)
    return instant.astimezone(reference.tzinfo)


def in_range(record: Any, period: DateRange) -> bool:
    return period.contains(_align(date_of(record), period.start))


def filter_by_period(transactions: Iterable[Any], period: DateRange) -> list:
    """
    Keep the transactions dated within [period.start, period.end].

    Both bounds are inclusive. An empty result is a valid result.
    """
    return [t for t in transactions if in_range(t, period)]


def pending_future_payments(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Scheduled payments that are still open.

    Not period-filtered: an upcoming bill is shown whatever range the
    user is looking at.
    """
    return [t for t in transactions if t.is_pending_future_payment]

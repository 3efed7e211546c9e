"""
Period Selector

Maps a period keyword to a concrete DateRange that ends at "now".

The start of each range uses calendar arithmetic (dateutil's
relativedelta), not fixed durations: one month back from 31 March is
the last day of February, one year back from 29 February is 28 February.
"""

from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from duo_finance.models.transaction import DateRange, Period


class InvalidPeriodError(ValueError):
    """Raised for a period keyword outside day/week/month/year."""
    pass


def parse_period(keyword: str | Period) -> Period:
    """Convert a keyword to a Period, failing loudly on anything unknown."""
    try:
        return Period(keyword)
    except ValueError:
        valid = ", ".join(p.value for p in Period)
        raise InvalidPeriodError(
            f"Unknown period {keyword!r}; expected one of: {valid}"
        ) from None


def resolve_period(
    keyword: str | Period,
    now: Optional[datetime] = None,
) -> DateRange:
    """
    Resolve a period keyword to its [start, end] window.

    The end bound is exactly `now`; no end-of-day ceiling is applied.
    """
    period = parse_period(keyword)
    now = now or datetime.now()

    if period == Period.DAY:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif period == Period.WEEK:
        start = now - relativedelta(days=7)
    elif period == Period.MONTH:
        start = now - relativedelta(months=1)
    else:
        start = now - relativedelta(years=1)

    return DateRange(start=start, end=now)

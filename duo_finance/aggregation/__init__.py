"""
Financial aggregation engine.

Pure, synchronous functions shared by the dashboard, the transaction
list and the assistant: resolve a period, filter transactions into it,
summarize, and render the summary as text.
"""

from duo_finance.aggregation.filters import (
    filter_by_period,
    pending_future_payments,
)
from duo_finance.aggregation.formatting import (
    CurrencyFormatter,
    CurrencyFormattingError,
    fallback_category_for,
    format_summary,
)
from duo_finance.aggregation.periods import (
    InvalidPeriodError,
    parse_period,
    resolve_period,
)
from duo_finance.aggregation.records import MalformedTransactionError
from duo_finance.aggregation.summary import (
    DEFAULT_FALLBACK_CATEGORY,
    summarize,
)

__all__ = [
    "CurrencyFormatter",
    "CurrencyFormattingError",
    "DEFAULT_FALLBACK_CATEGORY",
    "InvalidPeriodError",
    "MalformedTransactionError",
    "fallback_category_for",
    "filter_by_period",
    "format_summary",
    "parse_period",
    "pending_future_payments",
    "resolve_period",
    "summarize",
]

"""
Summarizer

Reduces a set of transactions to income, expense and per-category totals.

The split is by sign only: amount > 0 is income, everything else
(including exactly zero) is an expense of abs(amount). Categories are
tracked for expenses only, so a categorized income never shows up in
the breakdown. A zero-amount transaction still opens its category
bucket with a 0 total.
"""

from decimal import Decimal
from typing import Any, Iterable

from duo_finance.aggregation.records import amount_of, category_of, date_of
from duo_finance.models.transaction import Summary

DEFAULT_FALLBACK_CATEGORY = "Other"


def summarize(
    transactions: Iterable[Any],
    fallback_category: str = DEFAULT_FALLBACK_CATEGORY,
) -> Summary:
    """
    Summarize transactions in a single pass.

    Raises MalformedTransactionError if any record lacks a usable
    amount or date; no partial summary is returned.
    """
    total_income = Decimal("0")
    total_expenses = Decimal("0")
    category_totals: dict[str, Decimal] = {}
    count = 0

    for record in transactions:
        amount = amount_of(record)
        date_of(record)  # strict: an undatable record fails the whole call
        count += 1

        if amount > 0:
            total_income += amount
            continue

        expense = abs(amount)
        total_expenses += expense
        category = category_of(record) or fallback_category
        category_totals[category] = category_totals.get(category, Decimal("0")) + expense

    return Summary(
        total_income=total_income,
        total_expenses=total_expenses,
        category_totals=category_totals,
        transaction_count=count,
    )

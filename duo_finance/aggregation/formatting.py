"""
Summary Formatting

Renders a Summary as the fixed-format text block that is embedded in
the assistant's instructions. The text is meant for people (and the
language model), not for machine parsing.

Money is formatted by Babel for a configured locale/currency pair.
There is no fallback formatter: an unknown locale or currency fails
the whole operation with CurrencyFormattingError.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from babel.core import Locale, UnknownLocaleError
from babel.numbers import UnknownCurrencyError, format_currency, validate_currency

from duo_finance.config.settings import FormattingSettings
from duo_finance.models.transaction import Summary


class CurrencyFormattingError(Exception):
    """The locale/currency pair cannot be used for formatting."""
    pass


class CurrencyFormatter:
    """Formats amounts as localized currency strings (symbol, grouping, 2 decimals)."""

    def __init__(self, locale: str = "pt_BR", currency: str = "BRL"):
        try:
            self._locale = Locale.parse(locale)
            validate_currency(currency)
        except (UnknownLocaleError, UnknownCurrencyError, ValueError, TypeError) as e:
            raise CurrencyFormattingError(
                f"Cannot format currency {currency!r} for locale {locale!r}: {e}"
            ) from e
        self._currency = currency

    @classmethod
    def from_settings(cls, settings: Optional[FormattingSettings] = None) -> "CurrencyFormatter":
        settings = settings or FormattingSettings()
        return cls(locale=settings.locale, currency=settings.currency)

    @property
    def language(self) -> str:
        return self._locale.language

    @property
    def currency(self) -> str:
        return self._currency

    def format(self, value: Decimal | int | float) -> str:
        return format_currency(value, self._currency, locale=self._locale)


@dataclass(frozen=True)
class SummaryLabels:
    heading: str
    income: str
    expenses: str
    balance: str
    categories: str
    uncategorized: str


PORTUGUESE_LABELS = SummaryLabels(
    heading="Resumo financeiro do usuário:",
    income="Receita total",
    expenses="Despesas totais",
    balance="Saldo atual",
    categories="Principais categorias de gastos:",
    uncategorized="Outros",
)

ENGLISH_LABELS = SummaryLabels(
    heading="User financial summary:",
    income="Total income",
    expenses="Total expenses",
    balance="Current balance",
    categories="Main spending categories:",
    uncategorized="Other",
)


def labels_for(language: str) -> SummaryLabels:
    if language == "pt":
        return PORTUGUESE_LABELS
    return ENGLISH_LABELS


def fallback_category_for(settings: FormattingSettings) -> str:
    """Configured label for uncategorized spending, else the locale's own word for it."""
    if settings.fallback_category:
        return settings.fallback_category
    language = settings.locale.replace("-", "_").split("_")[0].lower()
    return labels_for(language).uncategorized


def format_summary(summary: Summary, formatter: CurrencyFormatter) -> str:
    """
    Render a summary as a multi-line text block.

    Categories are listed in the order they first appeared, not by value.
    """
    labels = labels_for(formatter.language)

    lines = [
        labels.heading,
        f"- {labels.income}: {formatter.format(summary.total_income)}",
        f"- {labels.expenses}: {formatter.format(summary.total_expenses)}",
        f"- {labels.balance}: {formatter.format(summary.net_balance)}",
        "",
        labels.categories,
    ]
    lines.extend(
        f"- {category}: {formatter.format(amount)}"
        for category, amount in summary.category_totals.items()
    )

    return "\n".join(lines)

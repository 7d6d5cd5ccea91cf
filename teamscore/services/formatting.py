"""
Metric formatting helpers.

Turns raw aggregates into the display strings shown on the dashboard. Rounding
is half away from zero (``ROUND_HALF_UP`` on Decimal), matching the browser's
number formatting for en-US.

Zero renders as "-" only through ``format_percentage`` and ``display_metric``;
the report rows keep the raw number next to the display string, so a true zero
can still be told apart from missing data.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union

from teamscore.models.enums import Metric

Number = Union[int, float, Decimal]

PLACEHOLDER = "-"

MONTH_ABBREVIATIONS = {
    "January": "Jan",
    "February": "Feb",
    "March": "Mar",
    "April": "Apr",
    "May": "May",
    "June": "Jun",
    "July": "Jul",
    "August": "Aug",
    "September": "Sep",
    "October": "Oct",
    "November": "Nov",
    "December": "Dec",
}


def _quantize(value: Number, decimals: int) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        number = Decimal(0)
    if not number.is_finite():
        number = Decimal(0)
    exponent = Decimal(1).scaleb(-decimals)
    # Precision must cover every integer digit plus the kept decimals
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 2)
        return number.quantize(exponent, rounding=ROUND_HALF_UP)


def _grouped(value: Number, decimals: int) -> str:
    return f"{_quantize(value, decimals):,.{decimals}f}"


def format_number(value: Number) -> str:
    """Thousands separators, no decimals: 1234.5 -> "1,235"."""
    return _grouped(value, 0)


def format_decimal(value: Number) -> str:
    """Fraction as a one-decimal percent: 0.3456 -> "34.6%"."""
    return _grouped(Decimal(str(value)) * 100 if _is_number(value) else 0, 1) + "%"


def format_percentage(value: Number) -> str:
    """Like format_decimal, but zero renders as "-"."""
    if value == 0:
        return PLACEHOLDER
    return format_decimal(value)


def format_ratio(value: Number) -> str:
    """value * 100 with one decimal and a percent sign, no grouping: 1.5 -> "150.0%"."""
    scaled = Decimal(str(value)) * 100 if _is_number(value) else Decimal(0)
    return f"{_quantize(scaled, 1)}%"


def abbreviate_month(month: str) -> str:
    """Three-letter month name; unknown values are returned unchanged."""
    return MONTH_ABBREVIATIONS.get(month, month)


def display_metric(metric: Metric, value: Number) -> str:
    """
    Display string for a metric value on a report row.

    Counts (TCM, TS) are grouped without decimals, CE is a one-decimal percent
    and RBSL a ratio percent. Zero always renders as "-".
    """
    if value == 0 or not _is_number(value):
        return PLACEHOLDER
    if metric == Metric.CE:
        return format_decimal(value)
    if metric == Metric.RBSL:
        return format_ratio(value)
    return format_number(value)


def _is_number(value: Number) -> bool:
    try:
        return Decimal(str(value)).is_finite()
    except (InvalidOperation, ValueError):
        return False


__all__ = [
    "PLACEHOLDER",
    "format_number",
    "format_decimal",
    "format_percentage",
    "format_ratio",
    "abbreviate_month",
    "display_metric",
]

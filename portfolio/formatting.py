"""
Display formatting for hero KPIs, detail fields and table cells.

Format hints are plain strings carried by Field and Column descriptors.
Formatting only ever applies to a PRESENT value; deciding what to show for a
missing one (placeholder glyph, empty cell, contract violation) is the
caller's job.
"""

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER = '—'

MONEY_CENTS = 'money_cents'
MONEY = 'money'
PERCENT = 'percent'
COUNT = 'count'
DATE = 'date'
BOOLEAN = 'bool'

# A descriptor without a hint renders as plain text
FORMAT_HINTS = (MONEY_CENTS, MONEY, PERCENT, COUNT, DATE, BOOLEAN)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def format_money(amount: Decimal) -> str:
    """$1,234 for whole dollars, $1,234.50 otherwise."""
    sign = '-' if amount < 0 else ''
    amount = abs(amount)
    if amount == amount.to_integral_value():
        return f"{sign}${int(amount):,}"
    return f"{sign}${amount:,.2f}"


def format_date(value: Any) -> str:
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        text = str(value)
        try:
            parsed = datetime.fromisoformat(text.replace('Z', '+00:00')).date()
        except ValueError:
            return text
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_value(value: Any, hint: Optional[str] = None) -> str:
    """
    Render a present value according to its format hint.

    Values that do not fit the hint (e.g. text in a money column) fall back
    to ``str(value)`` rather than raising.
    """
    if hint in (MONEY_CENTS, MONEY, PERCENT, COUNT):
        number = _to_decimal(value)
        if number is None:
            logger.debug(f"Value {value!r} does not fit format hint '{hint}'")
            return str(value)
        if hint == MONEY_CENTS:
            return format_money(number / 100)
        if hint == MONEY:
            return format_money(number)
        if hint == PERCENT:
            return f"{number.to_integral_value(rounding=ROUND_HALF_UP):f}%"
        if number == number.to_integral_value():
            return f"{int(number):,}"
        return f"{number:,}"

    if hint == DATE:
        return format_date(value)

    if hint == BOOLEAN or isinstance(value, bool):
        return 'Yes' if value else 'No'

    return str(value)


def display_or_placeholder(value: Any, hint: Optional[str] = None) -> str:
    """Format an optional value, using the placeholder glyph when it is absent."""
    if value is None or value == '':
        return PLACEHOLDER
    return format_value(value, hint)

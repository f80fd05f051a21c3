"""Human-readable formatting of wallet amounts and receipt fields.

All amounts from the API are integer millicents: 100,000 millicents is one
US dollar.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

MILLICENTS_PER_DOLLAR = 100_000


def format_balance(millicents: int) -> str:
    """Format millicents as dollars, e.g. ``150000 -> "$1.50"``."""
    return f"${millicents / MILLICENTS_PER_DOLLAR:.2f}"


def format_amount(millicents: int) -> str:
    """Format a signed transaction amount, e.g. ``-1000 -> "-$0.01"``, ``500000 -> "+$5.00"``."""
    sign = "-" if millicents < 0 else "+"
    return f"{sign}${abs(millicents) / MILLICENTS_PER_DOLLAR:.2f}"


def format_date(iso: Optional[str]) -> str:
    """Render an ISO-8601 timestamp as ``Mar 05, 14:30``; unparsable input is returned as-is."""
    if not iso:
        return "—"
    try:
        parsed = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except ValueError:
        return iso
    return parsed.strftime("%b %d, %H:%M")


def format_number(value: int) -> str:
    return f"{value:,}"

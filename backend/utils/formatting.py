from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytz


def utcnow() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(pytz.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    # DATETIME columns on MySQL/SQLite come back naive; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def format_audit_date(value: Optional[datetime], timezone_name: str = "UTC") -> str:
    """
    Render an instant the way the audit screens show it:
    "HH:MM:SS / Mon DD, YYYY", e.g. "14:30:25 / Jan 15, 2024".
    """
    if value is None:
        return ""
    local = ensure_utc(value).astimezone(pytz.timezone(timezone_name))
    return f"{local:%H:%M:%S} / {local:%b} {local.day}, {local:%Y}"


def format_currency(amount: Optional[Decimal], symbol: str = "$") -> str:
    if amount is None:
        return f"{symbol}0.00"
    amount = Decimal(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def amount_to_words(n: Optional[Decimal]) -> str:
    if n is None:
        return ""
    n = Decimal(n)
    if n < 0:
        return "Minus " + amount_to_words(-n)
    if n == 0:
        return "Zero"

    units = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen"]
    tens = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

    def convert(num: int) -> str:
        if num < 20:
            return units[num]
        elif num < 100:
            return tens[num // 10] + (" " + units[num % 10] if num % 10 != 0 else "")
        elif num < 1000:
            return units[num // 100] + " Hundred" + (" " + convert(num % 100) if num % 100 != 0 else "")
        elif num < 1000000:
            return convert(num // 1000) + " Thousand" + (" " + convert(num % 1000) if num % 1000 != 0 else "")
        elif num < 1000000000:
            return convert(num // 1000000) + " Million" + (" " + convert(num % 1000000) if num % 1000000 != 0 else "")
        else:
            return convert(num // 1000000000) + " Billion" + (" " + convert(num % 1000000000) if num % 1000000000 != 0 else "")

    integer_part = int(n)
    cents = int(((n - integer_part) * 100).quantize(Decimal("1")))

    result = convert(integer_part) if integer_part else "Zero"

    if cents > 0:
        result += " and " + convert(cents) + " Cents"

    return result

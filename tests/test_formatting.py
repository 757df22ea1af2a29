from datetime import datetime
from decimal import Decimal

import pytest
import pytz

from crud.payments import calculate_payment_status
from models.orders import PaymentStatus
from schemas.validators import check_full_name, check_phone, strip_phone_separators
from utils.formatting import amount_to_words, format_audit_date, format_currency


@pytest.mark.parametrize("amount, words", [
    (Decimal("0"), "Zero"),
    (Decimal("15"), "Fifteen"),
    (Decimal("105.25"), "One Hundred Five and Twenty Five Cents"),
    (Decimal("2000000"), "Two Million"),
    (Decimal("1234"), "One Thousand Two Hundred Thirty Four"),
])
def test_amount_to_words(amount, words):
    assert amount_to_words(amount) == words


def test_format_audit_date_uses_display_zone():
    instant = pytz.utc.localize(datetime(2024, 1, 15, 11, 30, 25))
    assert format_audit_date(instant, "UTC") == "11:30:25 / Jan 15, 2024"
    assert format_audit_date(instant, "Africa/Mogadishu") == "14:30:25 / Jan 15, 2024"


def test_naive_datetimes_are_treated_as_utc():
    assert format_audit_date(datetime(2024, 3, 1, 0, 0, 0), "UTC") == "00:00:00 / Mar 1, 2024"


@pytest.mark.parametrize("total, paid, expected", [
    ("10", "0", PaymentStatus.UNPAID),
    ("10", "4", PaymentStatus.PARTIAL),
    ("10", "10", PaymentStatus.PAID),
    ("0", "0", PaymentStatus.UNPAID),
])
def test_payment_status(total, paid, expected):
    assert calculate_payment_status(Decimal(total), Decimal(paid)) == expected


def test_phone_checks():
    assert check_phone(" +252 (61) 555-0101 ") == "+252 (61) 555-0101"
    assert strip_phone_separators("+252 (61) 555-0101") == "+252615550101"
    with pytest.raises(ValueError, match="at least 7 digits"):
        check_phone("12-34")


def test_full_name_collapses_whitespace():
    assert check_full_name("  Amina   Yusuf ") == "Amina Yusuf"
    with pytest.raises(ValueError):
        check_full_name("Amina")


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-3")) == "-$3.00"
    assert format_currency(None) == "$0.00"

"""Unit tests for currency, number and date formatting."""

from datetime import date
from decimal import Decimal

import pytest

from invoice_builder.formatting import (
    currency_symbol,
    format_currency,
    format_date_long,
    format_date_short,
    format_number,
    iso_date,
    to_decimal,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("12", Decimal("12")),
        (" 12.5 ", Decimal("12.5")),
        (3, Decimal("3")),
        (0.1, Decimal("0.1")),
        (Decimal("7.25"), Decimal("7.25")),
        ("", Decimal("0")),
        (None, Decimal("0")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        ("Infinity", Decimal("0")),
        ("12abc", Decimal("12")),
        ("1_000", Decimal("1")),
        ("-3.5 hours", Decimal("-3.5")),
        (".5", Decimal("0.5")),
        ("1e5", Decimal("1e5")),
        ("1e400", Decimal("0")),
        (True, Decimal("0")),
    ],
)
def test_to_decimal(value, expected):
    assert to_decimal(value) == expected


def test_to_decimal_custom_default():
    assert to_decimal("oops", default=Decimal("1")) == Decimal("1")


@pytest.mark.parametrize(
    "code,symbol",
    [
        ("USD", "$"),
        ("EUR", "€"),
        ("GBP", "£"),
        ("COP", "COP$"),
        ("CAD", "CAD$"),
        ("AUD", "AUD$"),
        ("MXN", "MXN$"),
        ("JPY", "$"),
        ("", "$"),
    ],
)
def test_currency_symbol(code, symbol):
    assert currency_symbol(code) == symbol


@pytest.mark.parametrize(
    "amount,code,expected",
    [
        (1234.5, "USD", "$1234.50"),
        (5, "COP", "COP$5.00"),
        (Decimal("10.35"), "EUR", "€10.35"),
        (Decimal("0.005"), "USD", "$0.01"),
        (0, "GBP", "£0.00"),
        (7, "XYZ", "$7.00"),
        (-5, "USD", "$-5.00"),
        ("1e30", "USD", "$1000000000000000000000000000000.00"),
        (Decimal("1e15") * Decimal("1e15"), "EUR", "€1000000000000000000000000000000.00"),
    ],
)
def test_format_currency(amount, code, expected):
    assert format_currency(amount, code) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (Decimal("2"), "2"),
        (Decimal("2.50"), "2.5"),
        (Decimal("100"), "100"),
        (Decimal("0.00"), "0"),
        (5, "5"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_format_date_short():
    assert format_date_short("2026-01-06") == "6 Jan 26"
    assert format_date_short(date(2025, 12, 31)) == "31 Dec 25"


@pytest.mark.parametrize("value", ["", None])
def test_format_date_short_placeholder(value):
    assert format_date_short(value) == "-"


def test_format_date_long():
    assert format_date_long("2026-01-06") == "January 06, 2026"
    assert format_date_long(date(2025, 9, 15)) == "September 15, 2025"


@pytest.mark.parametrize("value", ["", None])
def test_format_date_long_placeholder(value):
    assert format_date_long(value) == "Select date"


def test_unparsable_date_is_returned_unchanged():
    assert format_date_short("not a date") == "not a date"
    assert format_date_long("31/12/2025") == "31/12/2025"


def test_iso_date():
    assert iso_date(date(2026, 2, 1)) == "2026-02-01"
    assert iso_date("") == ""

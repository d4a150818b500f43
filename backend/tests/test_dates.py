import pytest

from hydrodata.services.dates import normalize_date


@pytest.mark.parametrize("value", ["2024-01-15", "2024-1-5", "24-01-15"])
def test_iso_passes_through(value):
    assert normalize_date(value, "iso") == value


def test_us_short_two_digit_year():
    assert normalize_date("1/5/09", "us-short") == "2009-01-05"


def test_eu_short_two_digit_year():
    assert normalize_date("15/1/09", "eu-short") == "2009-01-15"


def test_full_forms():
    assert normalize_date("01/15/2024", "us") == "2024-01-15"
    assert normalize_date("15/01/2024", "eu") == "2024-01-15"


def test_two_digit_years_always_land_in_2000s():
    assert normalize_date("12/31/99", "us") == "2099-12-31"


@pytest.mark.parametrize(
    "value,fmt",
    [("2024-01-15", "us"), ("15.01.2024", "eu"), ("1/5", "us-short"), ("not a date", "iso"), ("1/2/3/4", "eu")],
)
def test_unparseable_input_is_returned_unchanged(value, fmt):
    assert normalize_date(value, fmt) == value


def test_empty_and_unknown_format():
    assert normalize_date("", "us") == ""
    assert normalize_date("1/5/09", "julian") == "1/5/09"

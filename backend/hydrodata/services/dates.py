import logging
from typing import Dict, List


logger = logging.getLogger(__name__)

DATE_FORMATS: List[Dict[str, str]] = [
    {"label": "YYYY-MM-DD (2024-01-15)", "value": "iso"},
    {"label": "MM/DD/YYYY (01/15/2024)", "value": "us"},
    {"label": "DD/MM/YYYY (15/01/2024)", "value": "eu"},
    {"label": "M/D/YYYY (1/15/2024)", "value": "us-short"},
    {"label": "D/M/YYYY (15/1/2024)", "value": "eu-short"},
]

_MONTH_FIRST = ("us", "us-short")
_DAY_FIRST = ("eu", "eu-short")


def _expand_year(year: str) -> str:
    # two-digit years are always read as 20xx
    return "20" + year if len(year) == 2 else year


def normalize_date(value: str, fmt: str) -> str:
    """Rewrite ``value`` as ``YYYY-MM-DD`` according to ``fmt``.

    Never raises: input that does not fit the format comes back unchanged,
    and ``iso`` input is passed through without reformatting.
    """
    if not value:
        return ""
    if fmt == "iso":
        return value
    if fmt not in _MONTH_FIRST and fmt not in _DAY_FIRST:
        logger.debug("Unknown date format %s, leaving %r untouched", fmt, value)
        return value

    parts = value.split("/")
    if len(parts) != 3:
        return value
    if fmt in _MONTH_FIRST:
        month, day, year = parts
    else:
        day, month, year = parts
    return f"{_expand_year(year)}-{month.zfill(2)}-{day.zfill(2)}"

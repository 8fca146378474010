from __future__ import annotations

import re
from typing import List, Optional

from .models import SalaryPeriod, SalaryRange


_CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₫": "VND",
    "¥": "JPY",
    "₹": "INR",
}
_CURRENCY_CODES = ("USD", "EUR", "GBP", "VND", "AUD", "CAD", "SGD", "JPY", "INR", "CHF")

# A k/m suffix only counts when it is not the start of a word ("5000 monthly").
_NUMBER_RE = re.compile(r"(\d[\d,.]*)\s*([kKmM](?![^\W\d_])|triệu)?")

_HOUR_WORDS = ("/hr", "/h", "hour", "hourly", "giờ")
_MONTH_WORDS = ("/mo", "month", "monthly", "tháng")


def _currency(text: str) -> str:
    upper = text.upper()
    for code in _CURRENCY_CODES:
        if code in upper:
            return code
    for sym, code in _CURRENCY_SYMBOLS.items():
        if sym in text:
            return code
    if "triệu" in text.lower():
        return "VND"
    return "USD"


def _period(text: str) -> SalaryPeriod:
    t = text.lower()
    if any(w in t for w in _HOUR_WORDS):
        return SalaryPeriod.HOUR
    if any(w in t for w in _MONTH_WORDS):
        return SalaryPeriod.MONTH
    return SalaryPeriod.YEAR


def _to_number(raw: str, suffix: Optional[str]) -> Optional[float]:
    digits = raw.rstrip(".,")
    # "60,000" / "60.000" are thousands separators; "12.5" is a decimal.
    if re.fullmatch(r"\d{1,3}([,.]\d{3})+", digits):
        digits = re.sub(r"[,.]", "", digits)
    else:
        digits = digits.replace(",", "")
    try:
        value = float(digits)
    except ValueError:
        return None
    if suffix in ("k", "K"):
        value *= 1_000
    elif suffix in ("m", "M", "triệu"):
        value *= 1_000_000
    return value


def parse_salary(text: str) -> Optional[SalaryRange]:
    """Parse board salary text like "$120k - $150k" or "€45/hr".

    Returns None when the text holds no number (e.g. "Competitive", "Thoả thuận").
    """
    text = (text or "").strip()
    if not text:
        return None

    matches = list(_NUMBER_RE.finditer(text))[:2]
    if not matches:
        return None
    # "15 - 25 triệu": a trailing unit applies to both ends of the range.
    last_suffix = matches[-1].group(2)

    values: List[float] = []
    for m in matches:
        v = _to_number(m.group(1), m.group(2) or last_suffix)
        if v is not None:
            values.append(v)
    if not values:
        return None

    low, high = values[0], values[-1]
    if high < low:
        low, high = high, low
    return SalaryRange(min=low, max=high, currency=_currency(text), period=_period(text))

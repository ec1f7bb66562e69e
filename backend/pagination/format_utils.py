"""Locale-aware formatting and parsing for amount cells. Never render raw floats."""
from __future__ import annotations

import re
from typing import NamedTuple

NUMERIC_LOCALES: dict[str, dict[str, str]] = {
    "en": {"thousands": ",", "decimal": "."},
    "de": {"thousands": ".", "decimal": ","},
    "de-CH": {"thousands": "'", "decimal": "."},
    "fr": {"thousands": " ", "decimal": ","},
    "nl": {"thousands": ".", "decimal": ","},
    "it": {"thousands": ".", "decimal": ","},
    "es": {"thousands": ".", "decimal": ","},
}

_NUMBER = re.compile(r"^(\d+(\.\d+)?|\.\d+)$")


class AmountParse(NamedTuple):
    value: float
    ok: bool


def numeric_locale(locale: str | None) -> dict[str, str]:
    """Exact match first, then the language prefix ("de-AT" -> "de"), then "en"."""
    if not locale:
        return NUMERIC_LOCALES["en"]
    key = locale.replace("_", "-")
    if key in NUMERIC_LOCALES:
        return NUMERIC_LOCALES[key]
    return NUMERIC_LOCALES.get(key.split("-")[0].lower(), NUMERIC_LOCALES["en"])


def format_amount(value: float, locale: str | None = "en", precision: int = 2) -> str:
    sep = numeric_locale(locale)
    text = f"{abs(value):,.{precision}f}"
    whole, _, frac = text.partition(".")
    whole = whole.replace(",", sep["thousands"])
    out = f"{whole}{sep['decimal']}{frac}" if frac else whole
    if round(value, precision) < 0:
        return f"-{out}"
    return out


def parse_amount(text: str | None, locale: str | None = "en") -> AmountParse:
    """
    Parse a displayed amount such as "1,234.50", "€ 1.234,50" or "(90.00)".
    Returns AmountParse(0.0, False) when the text holds no number.
    """
    if text is None:
        return AmountParse(0.0, False)
    s = "".join(str(text).split())
    if not s:
        return AmountParse(0.0, False)
    sep = numeric_locale(locale)
    negative = (s.startswith("(") and s.endswith(")")) or s.startswith("-") or s.endswith("-")
    thousands = sep["thousands"]
    decimal = sep["decimal"]
    allowed = re.escape(decimal) + ("" if thousands.isspace() else re.escape(thousands))
    cleaned = re.sub(rf"[^\d{allowed}]", "", s)
    if thousands and not thousands.isspace():
        cleaned = cleaned.replace(thousands, "")
    cleaned = cleaned.replace(decimal, ".")
    if not _NUMBER.match(cleaned):
        return AmountParse(0.0, False)
    value = float(cleaned)
    return AmountParse(-value if negative else value, True)

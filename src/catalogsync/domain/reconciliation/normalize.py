"""Deterministic normalisation of names, prices and variant sizes."""

from __future__ import annotations

import re
import unicodedata
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .policy import DEFAULT_ALLOWED_PUNCTUATION

_SIZE_PATTERN = re.compile(r"(\d+(?:[.,]\d+)?)\s*ml\b", re.IGNORECASE)
_CENTS = Decimal("0.01")


def fold_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(
    value: str | None,
    *,
    allowed_punctuation: str = DEFAULT_ALLOWED_PUNCTUATION,
) -> str | None:
    """Return the comparison form of a product name.

    NFKC, casefold, accent folding, punctuation removal (except characters in
    ``allowed_punctuation``) and whitespace collapsing. Empty results map to
    ``None`` so that blank names never match each other.
    """

    if value is None:
        return None
    text = unicodedata.normalize("NFKC", value)
    text = fold_accents(text.casefold())
    text = "".join(
        ch
        for ch in text
        if ch in allowed_punctuation or not unicodedata.category(ch).startswith("P")
    )
    text = " ".join(text.split())
    return text or None


def normalize_price(value: str | float | int | Decimal | None) -> str | None:
    """Return a fixed-point string with two decimals (``"12.00"``)."""

    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def normalize_size(value: str | None) -> str | None:
    """Extract a size code like ``"6ml"`` from an option value or variant title."""

    if not value:
        return None
    match = _SIZE_PATTERN.search(value)
    if match is None:
        return None
    amount = match.group(1).replace(",", ".")
    if "." in amount:
        amount = amount.rstrip("0").rstrip(".")
    return f"{amount}ml"


def normalize_group(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip().casefold()
    return text or None

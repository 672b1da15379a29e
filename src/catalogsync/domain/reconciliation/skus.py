"""SKU generation and validation.

A SKU is ``GROUP-NAME-SIZE`` with every segment uppercased and reduced to
ASCII alphanumerics, e.g. ``TERRA-ONYX-6ML``. Generation is a pure function of
``(collection_group, display_name, size)`` so it can be re-run at any time.
"""

from __future__ import annotations

import re

from catalogsync.domain.errors import ValidationError

from .normalize import fold_accents

SKU_PATTERN = re.compile(r"^[A-Z0-9]+-[A-Z0-9]+-[0-9]+ML$")
_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def _segment(value: str) -> str:
    return _NON_ALNUM.sub("", fold_accents(value).upper())


def generate_sku(collection_group: str, display_name: str, size: str) -> str:
    return "-".join(
        (_segment(collection_group), _segment(display_name), _segment(size))
    )


def validate_sku(sku: str) -> str:
    if not SKU_PATTERN.fullmatch(sku):
        raise ValidationError(f"SKU {sku!r} does not match GROUP-NAME-SIZE format")
    return sku

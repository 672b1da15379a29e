from __future__ import annotations

import pytest

from catalogsync.domain.errors import ValidationError
from catalogsync.domain.reconciliation.skus import generate_sku, validate_sku


def test_generate_sku_from_group_name_and_size() -> None:
    assert generate_sku("terra", "Onyx", "6ml") == "TERRA-ONYX-6ML"


def test_generate_sku_strips_spaces_accents_and_punctuation() -> None:
    assert generate_sku("petal", "Crème d'Iris", "12ml") == "PETAL-CREMEDIRIS-12ML"
    assert generate_sku("relic", "Mukhallat Al-Shifa", "3ml") == "RELIC-MUKHALLATALSHIFA-3ML"


def test_generate_sku_is_idempotent() -> None:
    first = generate_sku("ember", "Black Amber", "6ml")
    assert first == generate_sku("ember", "Black Amber", "6ml")
    assert validate_sku(first) == first


@pytest.mark.parametrize("sku", ["TERRA--6ML", "TERRA-ONYX-6", "terra-onyx-6ml", "TERRA-ONYX"])
def test_validate_sku_rejects_malformed(sku: str) -> None:
    with pytest.raises(ValidationError):
        validate_sku(sku)


def test_generated_sku_for_symbol_only_name_fails_validation() -> None:
    sku = generate_sku("terra", "???", "6ml")

    with pytest.raises(ValidationError) as exc:
        validate_sku(sku)

    assert exc.value.kind == "validation"

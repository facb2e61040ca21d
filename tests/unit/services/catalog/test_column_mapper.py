import pytest

from catalog_explorer.core.enums import CANONICAL_FIELDS
from catalog_explorer.services.catalog.column_mapper import (
    RULES_BY_FIELD,
    auto_map,
    find_candidate_columns,
    find_matching_column,
    mapping_ambiguities,
    merge_auto_mapping,
    resolve_mapping,
)


def test_auto_map_french_supplier_columns():
    mapping = auto_map(["id", "code_article", "desc_fr", "marque_nom"])

    assert mapping == {
        "id": "id",
        "reference": "code_article",
        "description": "desc_fr",
        "brand": "marque_nom",
    }
    for field in ("supplier_code", "price", "stock", "location", "ean", "name", "barcode"):
        assert field not in mapping


def test_auto_map_first_column_in_native_order_wins():
    assert auto_map(["product_ref", "reference"])["reference"] == "product_ref"
    assert auto_map(["reference", "product_ref"])["reference"] == "reference"


def test_auto_map_is_case_insensitive_and_keeps_original_names():
    mapping = auto_map(["EAN13", "Prix", "Emplacement"])

    assert mapping["ean"] == "EAN13"
    assert mapping["price"] == "Prix"
    assert mapping["location"] == "Emplacement"


def test_column_is_given_to_one_field_only():
    # "marque_nom" satisfies both brand and name; brand comes first
    mapping = auto_map(["marque_nom"])

    assert mapping == {"brand": "marque_nom"}


def test_field_name_fallback_rule():
    assert RULES_BY_FIELD["supplier_code"].matches("SUPPLIER_CODE")
    assert RULES_BY_FIELD["location"].matches("location")
    assert not RULES_BY_FIELD["price"].matches("description")


def test_auto_map_without_match_is_empty():
    assert auto_map(["foo", "bar"]) == {}
    assert auto_map([]) == {}


def test_every_canonical_field_has_a_rule():
    assert set(RULES_BY_FIELD) == set(CANONICAL_FIELDS)


def test_unknown_field_is_rejected():
    with pytest.raises(ValueError):
        find_matching_column("colour", ["colour"])


def test_find_matching_column_skips_excluded():
    assert find_matching_column("reference", ["ref_a", "sku"], exclude=["ref_a"]) == "sku"


def test_merge_keeps_explicit_mapping():
    columns = ["id", "code_article", "desc_fr", "marque_nom", "manu_name"]

    merged = merge_auto_mapping({"brand": "manu_name"}, columns)

    assert merged["brand"] == "manu_name"
    assert merged["reference"] == "code_article"
    assert merged["description"] == "desc_fr"


def test_merge_only_adds_missing_fields():
    merged = merge_auto_mapping({"price": "special_price"}, ["cost", "stock"])

    assert merged == {"price": "special_price", "stock": "stock"}


def test_resolve_mapping_prefers_explicit_existing_column():
    columns = ["id", "cost", "prix_public"]

    assert resolve_mapping(columns)["price"] == "cost"
    assert resolve_mapping(columns, {"price": "prix_public"})["price"] == "prix_public"


def test_resolve_mapping_ignores_explicit_column_that_does_not_exist():
    mapping = resolve_mapping(["id", "cost"], {"price": "gone_column"})

    assert mapping["price"] == "cost"


def test_resolve_mapping_matches_explicit_column_case_insensitively():
    mapping = resolve_mapping(["Cost"], {"price": "cost"})

    assert mapping["price"] == "Cost"


def test_resolve_mapping_releases_column_of_overridden_field():
    columns = ["ref_fournisseur", "sku"]

    assert resolve_mapping(columns) == {"reference": "ref_fournisseur"}

    mapping = resolve_mapping(columns, {"reference": "sku"})

    assert mapping["reference"] == "sku"
    assert mapping["supplier_code"] == "ref_fournisseur"


def test_explicit_column_is_not_auto_claimed_by_another_field():
    mapping = resolve_mapping(["id", "cost", "prix_public"], {"description": "cost"})

    assert mapping["description"] == "cost"
    assert mapping["price"] == "prix_public"


def test_merge_claims_explicit_columns_first():
    merged = merge_auto_mapping({"reference": "sku"}, ["ref_fournisseur", "sku"])

    assert merged == {"reference": "sku", "supplier_code": "ref_fournisseur"}


def test_resolve_mapping_follows_canonical_order():
    mapping = resolve_mapping(["cost", "id", "barcode"])

    assert list(mapping) == ["id", "barcode", "price"]


def test_mapping_ambiguities_lists_all_candidates():
    assert find_candidate_columns("reference", ["ref_a", "sku"]) == ["ref_a", "sku"]
    assert mapping_ambiguities(["ref_a", "sku"]) == {"reference": ["ref_a", "sku"]}
    assert mapping_ambiguities(["id", "barcode"]) == {}

"""Heuristics for mapping arbitrary table columns onto the canonical product fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from catalog_explorer.core.enums import CANONICAL_FIELDS

ColumnPredicate = Callable[[str], bool]


def equals(*names: str) -> ColumnPredicate:
    targets = frozenset(names)
    return lambda lower: lower in targets


def contains(*fragments: str) -> ColumnPredicate:
    return lambda lower: any(fragment in lower for fragment in fragments)


def ends_with(*suffixes: str) -> ColumnPredicate:
    return lambda lower: lower.endswith(tuple(suffixes))


@dataclass(frozen=True)
class FieldRule:
    field: str
    predicates: Tuple[ColumnPredicate, ...]

    def matches(self, column: str) -> bool:
        lower = column.lower()
        if any(predicate(lower) for predicate in self.predicates):
            return True
        # A column named exactly like the field always qualifies
        return lower == self.field


FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule("id", (equals("id", "uid"), ends_with("_id"))),
    FieldRule("reference", (
        equals("reference"),
        contains("ref", "articlenr", "code_article", "product_code", "sku"),
    )),
    FieldRule("barcode", (equals("barcode"), contains("code_barre", "upc", "gtin"))),
    FieldRule("description", (
        equals("description"),
        contains("desc", "description_odr", "product_desc"),
    )),
    FieldRule("brand", (equals("brand"), contains("marque", "manufacturer", "maker"))),
    FieldRule("supplier_code", (contains("supplier", "oemnr", "vendor", "fournisseur"),)),
    FieldRule("name", (
        equals("name"),
        contains("nom", "designation", "title", "product_name"),
    )),
    FieldRule("price", (equals("price"), contains("prix", "cost", "tarif", "montant"))),
    FieldRule("stock", (
        equals("stock"),
        contains("qty", "quantity", "inventory", "disponible"),
    )),
    FieldRule("location", (contains("location", "emplacement", "storage", "position", "warehouse"),)),
    FieldRule("ean", (
        equals("ean"),
        contains("eannr", "ean13", "ean8", "european_article_number"),
    )),
)

RULES_BY_FIELD: Dict[str, FieldRule] = {rule.field: rule for rule in FIELD_RULES}


def _rule_for(field: str) -> FieldRule:
    try:
        return RULES_BY_FIELD[field]
    except KeyError:
        raise ValueError(f"Unknown canonical field: {field}")


def find_candidate_columns(field: str, columns: Iterable[str]) -> List[str]:
    """Every column satisfying the field's rule, in native column order."""
    rule = _rule_for(field)
    return [column for column in columns if rule.matches(column)]


def find_matching_column(
    field: str,
    columns: Sequence[str],
    exclude: Iterable[str] = (),
) -> Optional[str]:
    """First column (native order) satisfying the field's rule, skipping excluded columns."""
    rule = _rule_for(field)
    excluded = set(exclude)
    for column in columns:
        if column in excluded:
            continue
        if rule.matches(column):
            return column
    return None


def auto_map(columns: Sequence[str], fixed: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Map canonical fields to table columns using the rule table.

    Fields are resolved in canonical order and each column is given to at most
    one field: a column already taken by an earlier field is not offered to a
    later one. Fields without a qualifying column are omitted.

    ``fixed`` pins fields to columns up front; those columns are claimed before
    any rule runs and the pinned fields are returned as given.
    """
    mapping: Dict[str, str] = dict(fixed or {})
    claimed: List[str] = list(mapping.values())
    for field in CANONICAL_FIELDS:
        if field in mapping:
            continue
        match = find_matching_column(field, columns, exclude=claimed)
        if match is not None:
            mapping[field] = match
            claimed.append(match)
    return _ordered(mapping)


def _ordered(mapping: Mapping[str, str]) -> Dict[str, str]:
    return {field: mapping[field] for field in CANONICAL_FIELDS if field in mapping}


def merge_auto_mapping(existing: Optional[Mapping[str, str]], columns: Sequence[str]) -> Dict[str, str]:
    """Additive auto-map: only fields without an explicit mapping receive the automatic suggestion."""
    return auto_map(columns, {field: column for field, column in (existing or {}).items() if column})


def resolve_mapping(columns: Sequence[str], explicit: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    The mapping a projection actually uses: explicit overrides naming an
    existing column, completed by ``auto_map`` for the remaining fields.
    """
    by_lower = {column.lower(): column for column in columns}
    pinned = {}
    for field, column in (explicit or {}).items():
        if not column:
            continue
        actual = column if column in columns else by_lower.get(column.lower())
        if actual is not None:
            pinned[field] = actual
    return auto_map(columns, pinned)


def mapping_ambiguities(columns: Sequence[str]) -> Dict[str, List[str]]:
    """Fields for which more than one column qualifies; first-match-wins still decides."""
    ambiguous = {}
    for field in CANONICAL_FIELDS:
        candidates = find_candidate_columns(field, columns)
        if len(candidates) > 1:
            ambiguous[field] = candidates
    return ambiguous

"""
Groups normalized rows coming from different tables into product groups.

Identity key per row, first non-empty of:

- barcode, then ean (kind ``barcode``)
- supplier_code (kind ``supplier_code``)
- id combined with the source table (kind ``reference``), so rows without a
  shared code never merge with rows from another table

Rows are walked table by table: tables in the order they first appear in the
input, and each table's rows in arrival order. That walk is what "first-seen"
means below, and it is also the order of ``members`` inside a group, so rows
from one table stay together even when the federated result interleaves them.

Groups are ordered by descending member count; ties keep first-seen order.
Inside a group the most complete row is the primary (ties go to the earliest
member), and any canonical field carrying more than one distinct value is
reported as a conflict instead of being resolved silently.
"""

from collections import OrderedDict
from typing import Dict, List, Sequence, Tuple

from catalog_explorer.core.enums import CANONICAL_FIELDS, GroupKeyKind
from catalog_explorer.schemas.catalog import NormalizedProductRow, ProductGroup


def identity_key(row: NormalizedProductRow, position: int = 0) -> Tuple[GroupKeyKind, str]:
    barcode = row.text("barcode") or row.text("ean")
    if barcode:
        return GroupKeyKind.BARCODE, barcode

    supplier_code = row.text("supplier_code")
    if supplier_code:
        return GroupKeyKind.SUPPLIER_CODE, supplier_code

    row_id = row.text("id")
    if row_id:
        return GroupKeyKind.REFERENCE, f"{row_id}@{row.source_table}"
    # No id either: the row stays on its own
    return GroupKeyKind.REFERENCE, f"#{position}@{row.source_table}"


def select_primary(members: Sequence[NormalizedProductRow]) -> NormalizedProductRow:
    """Row with the most filled fields; the first one wins a tie."""
    best = members[0]
    best_count = best.filled_count()
    for member in members[1:]:
        count = member.filled_count()
        if count > best_count:
            best, best_count = member, count
    return best


def unique_values(members: Sequence[NormalizedProductRow], field: str) -> List[str]:
    values: List[str] = []
    for member in members:
        value = member.text(field)
        if value is not None and value not in values:
            values.append(value)
    return values


def detect_conflicts(members: Sequence[NormalizedProductRow]) -> Dict[str, List[str]]:
    conflicts = {}
    for field in CANONICAL_FIELDS:
        values = unique_values(members, field)
        if len(values) > 1:
            conflicts[field] = values
    return conflicts


def field_sources(group: ProductGroup, field: str) -> Dict[str, List[str]]:
    """Each distinct value of a field mapped to the tables that reported it."""
    sources: Dict[str, List[str]] = OrderedDict()
    for member in group.members:
        value = member.text(field)
        if value is None:
            continue
        tables = sources.setdefault(value, [])
        if member.source_table not in tables:
            tables.append(member.source_table)
    return dict(sources)


def _partition_by_table(rows: Sequence[NormalizedProductRow]) -> "OrderedDict[str, List[NormalizedProductRow]]":
    by_table: "OrderedDict[str, List[NormalizedProductRow]]" = OrderedDict()
    for row in rows:
        by_table.setdefault(row.source_table, []).append(row)
    return by_table


def group_by_identity(rows: Sequence[NormalizedProductRow]) -> List[ProductGroup]:
    buckets: "OrderedDict[Tuple[GroupKeyKind, str], List[NormalizedProductRow]]" = OrderedDict()

    position = 0
    for table_rows in _partition_by_table(rows).values():
        for row in table_rows:
            buckets.setdefault(identity_key(row, position), []).append(row)
            position += 1

    groups = []
    for (kind, key), members in buckets.items():
        source_tables = []
        for member in members:
            if member.source_table not in source_tables:
                source_tables.append(member.source_table)
        groups.append(ProductGroup(
            group_key=key,
            group_key_kind=kind,
            members=members,
            primary=select_primary(members),
            source_tables=source_tables,
            conflicts=detect_conflicts(members),
        ))

    # sorted() is stable, so equal-sized groups keep first-seen order
    return sorted(groups, key=lambda group: len(group.members), reverse=True)

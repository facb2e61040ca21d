"""
SQL text for the catalog gateway.

Builds the normalizing projection of a table onto the canonical fields, the
per-table search predicate, and the federated ``UNION ALL`` query that shares
one bound parameter across every branch.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from catalog_explorer.core.enums import CANONICAL_FIELDS, SearchMode
from catalog_explorer.services.catalog.column_mapper import resolve_mapping

TABLES_QUERY = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema='public' AND (table_name LIKE 'raw_%' OR table_name='products') "
    "ORDER BY table_name"
)

COLUMNS_QUERY = (
    "SELECT column_name FROM information_schema.columns "
    "WHERE table_schema='public' AND table_name=$1 ORDER BY ordinal_position"
)

CONNECTION_TEST_QUERY = "SELECT 1 AS connection_test"

SEARCH_PLACEHOLDER = "$1"

# Numeric terms are treated as product codes and only compared against these
EXACT_SEARCH_COLUMNS = ("barcode", "eannr", "ean", "ean_code", "gtin", "upc", "article_code")

FUZZY_SEARCH_COLUMNS = (
    "id",
    "reference", "ref", "articlenr", "code_article", "product_code", "sku",
    "description", "desc", "description_odr1", "unspscdescription", "designation",
    "name", "product_name",
    "brand", "marque", "manufacturer", "oemnr",
    "supplier_code", "fournisseur", "vendor",
)

RESERVED_WORDS = frozenset({
    "all", "and", "any", "as", "asc", "between", "by", "case", "cast", "check",
    "column", "constraint", "create", "default", "desc", "distinct", "do", "else",
    "end", "except", "false", "fetch", "for", "foreign", "from", "grant", "group",
    "having", "in", "into", "is", "join", "like", "limit", "not", "null", "offset",
    "on", "or", "order", "primary", "references", "select", "table", "then", "to",
    "true", "union", "unique", "user", "using", "when", "where", "with",
})

_PLAIN_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
_EXACT_TERM = re.compile(r"^\d+$", re.ASCII)
_QUOTED_IDENTIFIER = re.compile(r'"(?:[^"]|"")*"')
_PLACEHOLDER = re.compile(r"\$\d+")


def quote_identifier(name: str) -> str:
    """Leave plain lowercase identifiers bare; double-quote anything else."""
    if _PLAIN_IDENTIFIER.match(name) and name not in RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def classify_search_term(term: str) -> Optional[SearchMode]:
    """EXACT for all-digit terms, FUZZY for any other non-empty term, None for a blank term."""
    term = (term or "").strip()
    if not term:
        return None
    if _EXACT_TERM.match(term):
        return SearchMode.EXACT
    return SearchMode.FUZZY


def search_parameter(term: str, mode: SearchMode) -> str:
    term = term.strip()
    if mode == SearchMode.EXACT:
        return term
    return f"%{term}%"


def build_projection(
    table: str,
    columns: Sequence[str],
    column_mapping: Optional[Mapping[str, str]] = None,
) -> str:
    """
    SELECT list projecting a table onto every canonical field.

    Fields without a matched column are emitted as ``NULL AS <field>`` so every
    table yields the same shape, followed by the literal source table name.
    """
    mapping = resolve_mapping(columns, column_mapping)
    parts = []
    for canonical in CANONICAL_FIELDS:
        column = mapping.get(canonical)
        if column:
            parts.append(f"{quote_identifier(column)} AS {canonical}")
        else:
            parts.append(f"NULL AS {canonical}")
    parts.append(f"{quote_literal(table)} AS source_table")
    return "SELECT " + ", ".join(parts)


def build_table_query(
    table: str,
    columns: Sequence[str],
    column_mapping: Optional[Mapping[str, str]] = None,
) -> str:
    return f"{build_projection(table, columns, column_mapping)} FROM {quote_identifier(table)}"


def searchable_columns(
    columns: Sequence[str],
    mode: SearchMode,
    extra: Iterable[str] = (),
) -> List[str]:
    """
    Columns of a table the search predicate may touch, in native order.

    Exact mode only considers barcode/EAN-like columns. Fuzzy mode considers
    identifier and text columns plus any ``extra`` columns the user selected.
    """
    whitelist = EXACT_SEARCH_COLUMNS if mode == SearchMode.EXACT else FUZZY_SEARCH_COLUMNS
    allowed = set(whitelist)
    if mode == SearchMode.FUZZY:
        allowed.update(name.lower() for name in extra)
    return [column for column in columns if column.lower() in allowed]


def build_search_predicate(columns: Sequence[str], mode: SearchMode) -> str:
    if not columns:
        return "WHERE 1=0"
    operator = "=" if mode == SearchMode.EXACT else "ILIKE"
    conditions = [f"{quote_identifier(column)}::text {operator} {SEARCH_PLACEHOLDER}" for column in columns]
    return "WHERE " + " OR ".join(conditions)


def bound_placeholders(predicate: str) -> set:
    """Positional parameters a predicate binds, ignoring text inside quoted identifiers."""
    return set(_PLACEHOLDER.findall(_QUOTED_IDENTIFIER.sub("", predicate)))


@dataclass
class SearchBranch:
    table: str
    mode: SearchMode
    searchable: List[str]
    sql: str
    predicate: str


def build_search_branch(
    table: str,
    columns: Sequence[str],
    mode: SearchMode,
    column_mapping: Optional[Mapping[str, str]] = None,
    extra_search_fields: Iterable[str] = (),
) -> Optional[SearchBranch]:
    """One UNION branch for a table, or None when the table has nothing searchable in this mode."""
    searchable = searchable_columns(columns, mode, extra_search_fields)
    if not searchable:
        return None
    predicate = build_search_predicate(searchable, mode)
    sql = f"{build_table_query(table, columns, column_mapping)} {predicate}"
    return SearchBranch(table=table, mode=mode, searchable=searchable, sql=sql, predicate=predicate)


@dataclass
class FederatedQuery:
    """
    A single logical search spread over several tables.

    Every branch binds the same single parameter as ``$1`` in the same match
    mode, so ``params`` always has exactly one element.
    """
    sql: str
    params: List[str]
    mode: SearchMode
    tables: List[str] = field(default_factory=list)


def build_federated_query(
    branches: Sequence[SearchBranch],
    term: str,
    mode: SearchMode,
    limit: int,
) -> FederatedQuery:
    if not branches:
        raise ValueError("A federated query needs at least one branch")
    for branch in branches:
        if branch.mode != mode:
            raise ValueError(f"Branch for {branch.table} uses {branch.mode.value} matching, expected {mode.value}")
        if bound_placeholders(branch.predicate) != {SEARCH_PLACEHOLDER}:
            raise ValueError(f"Branch for {branch.table} must bind exactly the shared {SEARCH_PLACEHOLDER} parameter")

    sql = " UNION ALL ".join(branch.sql for branch in branches) + f" LIMIT {int(limit)}"
    return FederatedQuery(
        sql=sql,
        params=[search_parameter(term, mode)],
        mode=mode,
        tables=[branch.table for branch in branches],
    )


def build_preview_queries(table: str, page: int, page_size: int) -> Dict[str, str]:
    offset = (page - 1) * page_size
    quoted = quote_identifier(table)
    return {
        "rows": f"SELECT * FROM {quoted} LIMIT {int(page_size)} OFFSET {int(offset)}",
        "count": f"SELECT COUNT(*) AS total FROM {quoted}",
    }

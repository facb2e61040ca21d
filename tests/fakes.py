# tests/fakes.py
from catalog_explorer.core.exceptions import DatabaseError
from catalog_explorer.schemas.catalog import NormalizedProductRow
from catalog_explorer.services.catalog.query_builder import (
    COLUMNS_QUERY,
    CONNECTION_TEST_QUERY,
    TABLES_QUERY,
)

CATALOG_TABLES = {
    "products": ["id", "reference", "barcode", "description", "brand", "price", "stock"],
    "raw_supplier_a": ["id", "articlenr", "eannr", "desc", "marque", "prix"],
}


class FakeGatewayClient:
    """
    In-process stand-in for GatewayClient.

    Answers the discovery and introspection queries from ``tables``, returns
    ``rows`` for any projected (search or browse) query and records every call.
    """

    def __init__(self, tables=None, rows=None, failing_tables=(), error=None,
                 preview_rows=None, total=0):
        self.tables = dict(tables if tables is not None else CATALOG_TABLES)
        self.rows = list(rows or [])
        self.failing_tables = set(failing_tables)
        self.error = error
        self.preview_rows = list(preview_rows or [])
        self.total = total
        self.calls = []

    async def execute(self, query, params=None):
        self.calls.append((query, list(params or [])))
        if self.error is not None:
            raise self.error

        if query == TABLES_QUERY:
            return [{"table_name": name} for name in self.tables]
        if query == COLUMNS_QUERY:
            table = params[0]
            if table in self.failing_tables:
                raise DatabaseError(f'Database error: relation "{table}" is not readable')
            return [{"column_name": column} for column in self.tables.get(table, [])]
        if query == CONNECTION_TEST_QUERY:
            return [{"connection_test": 1}]
        if query.startswith("SELECT COUNT(*)"):
            return [{"total": self.total}]
        if query.startswith("SELECT * FROM"):
            return list(self.preview_rows)
        return list(self.rows)

    @property
    def data_calls(self):
        """Calls that projected catalog rows (search and browse queries)."""
        return [call for call in self.calls if "AS source_table" in call[0]]

    def column_calls(self):
        return [params[0] for query, params in self.calls if query == COLUMNS_QUERY]


def make_row(source_table, **fields):
    return NormalizedProductRow(source_table=source_table, **fields)


import logging
from typing import Dict, List, Optional

from catalog_explorer.schemas.catalog import TableDescriptor
from catalog_explorer.services.catalog.query_builder import COLUMNS_QUERY, TABLES_QUERY
from catalog_explorer.services.gateway.client import GatewayClient
from catalog_explorer.services.table_config_store import TableConfigStore

logger = logging.getLogger(__name__)


class SchemaCatalogResolver:
    """
    Discovers catalog tables and their columns through information_schema.

    Column lists are cached per table for the lifetime of the resolver. Table
    discovery also registers unseen tables in the config store with default
    (disabled) settings.
    """

    def __init__(self, client: GatewayClient, config_store: Optional[TableConfigStore] = None):
        self.client = client
        self.config_store = config_store
        self._columns: Dict[str, List[str]] = {}

    async def list_candidate_tables(self) -> List[str]:
        """``raw_%`` tables plus ``products``, by name. Raises QueryError on gateway failure."""
        rows = await self.client.execute(TABLES_QUERY)
        tables = [row["table_name"] for row in rows if row.get("table_name")]
        logger.info(f"{len(tables)} candidate table(s) found")

        if self.config_store is not None:
            self.config_store.register_tables(tables)
        return tables

    async def list_columns(self, table: str) -> List[str]:
        """Columns in ordinal order. Raises QueryError on gateway failure."""
        if table in self._columns:
            return list(self._columns[table])

        rows = await self.client.execute(COLUMNS_QUERY, [table])
        columns = [row["column_name"] for row in rows if row.get("column_name")]
        # An empty list usually means the table does not exist yet; ask again next time
        if columns:
            self._columns[table] = columns
        logger.debug(f"Fetched {len(columns)} column(s) for {table}")
        return list(columns)

    async def describe(self, table: str) -> TableDescriptor:
        return TableDescriptor(name=table, columns=await self.list_columns(table))

    def cached_columns(self, table: str) -> Optional[List[str]]:
        columns = self._columns.get(table)
        return list(columns) if columns is not None else None

    def invalidate(self, table: Optional[str] = None):
        if table is None:
            self._columns.clear()
        else:
            self._columns.pop(table, None)

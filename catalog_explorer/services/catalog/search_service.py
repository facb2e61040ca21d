"""
Purpose: Federated product search over the discovered catalog tables.

Role: The operation boundary of the catalog core. Every public method catches
QueryError and returns an envelope carrying the error message instead of
raising.

Search steps:
- classify the term (all digits: exact code match, anything else: ILIKE)
- discover candidate tables, keep the enabled ones when any are enabled,
  and cap the list at SEARCH_TABLE_LIMIT (the capped names are reported back)
- fetch each table's columns one after the other; a table whose columns
  cannot be fetched is logged and skipped
- build one branch per table with something searchable, join them with
  UNION ALL, apply SEARCH_RESULT_LIMIT, execute once with the single shared
  parameter

Also serves the browse listing, the paginated table preview and the
connection test.
"""

import logging
from typing import List, Optional

from catalog_explorer.core.config import Settings, get_settings
from catalog_explorer.core.enums import SearchMode
from catalog_explorer.core.exceptions import QueryError, ValidationError
from catalog_explorer.schemas.catalog import (
    NormalizedProductRow,
    SearchResult,
    TableMappingView,
    TablePage,
    TablePageResult,
)
from catalog_explorer.schemas.gateway import QueryResult
from catalog_explorer.services.catalog.column_mapper import mapping_ambiguities, resolve_mapping
from catalog_explorer.services.catalog.query_builder import (
    CONNECTION_TEST_QUERY,
    build_federated_query,
    build_preview_queries,
    build_search_branch,
    build_table_query,
    classify_search_term,
)
from catalog_explorer.services.catalog.schema_resolver import SchemaCatalogResolver
from catalog_explorer.services.gateway.client import GatewayClient
from catalog_explorer.services.table_config_store import TableConfigStore

logger = logging.getLogger(__name__)


class CatalogSearchService:
    def __init__(
        self,
        client: GatewayClient,
        resolver: SchemaCatalogResolver,
        config_store: Optional[TableConfigStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.client = client
        self.resolver = resolver
        self.config_store = config_store
        self.settings = settings or get_settings()

    def _active_tables(self, tables: List[str]) -> List[str]:
        if self.config_store is None:
            return tables
        enabled = set(self.config_store.enabled_tables())
        if not enabled:
            return tables
        return [table for table in tables if table in enabled]

    def _to_rows(self, rows) -> List[NormalizedProductRow]:
        return [NormalizedProductRow.model_validate(row) for row in rows]

    async def search(self, term: str) -> SearchResult:
        """
        Search every active table for a term.

        Returns:
            SearchResult with normalized rows, or with ``error`` set and
            ``data`` None when discovery or the search query fails.
        """
        term = (term or "").strip()
        mode = classify_search_term(term)
        if mode is None:
            return SearchResult(data=[], count=0, term=term)

        try:
            return await self._federated_search(term, mode)
        except QueryError as e:
            logger.error(f"Search for '{term}' failed: {e.message}")
            return SearchResult(data=None, error=e.message, error_kind=e.kind, term=term, mode=mode)

    async def _federated_search(self, term: str, mode: SearchMode) -> SearchResult:
        tables = self._active_tables(await self.resolver.list_candidate_tables())

        limit = self.settings.SEARCH_TABLE_LIMIT
        selected, truncated = tables[:limit], tables[limit:]
        if truncated:
            logger.warning(
                f"Search limited to {limit} table(s); not searched: {', '.join(truncated)}"
            )

        branches = []
        skipped = []
        for table in selected:
            try:
                columns = await self.resolver.list_columns(table)
            except QueryError as e:
                logger.warning(f"Skipping {table}: could not fetch its columns ({e.message})")
                skipped.append(table)
                continue

            config = self.config_store.get(table) if self.config_store is not None else None
            branch = build_search_branch(
                table,
                columns,
                mode,
                column_mapping=config.column_mapping if config else None,
                extra_search_fields=config.search_fields if config else (),
            )
            if branch is None:
                logger.debug(f"{table} has no {mode.value}-searchable column")
                skipped.append(table)
                continue
            branches.append(branch)

        if not branches:
            logger.info(f"No table can be searched for '{term}' in {mode.value} mode")
            return SearchResult(
                data=[], count=0, term=term, mode=mode,
                tables_skipped=skipped, truncated_tables=truncated,
            )

        query = build_federated_query(branches, term, mode, self.settings.SEARCH_RESULT_LIMIT)
        logger.info(f"Searching '{term}' ({mode.value}) in {len(query.tables)} table(s)")
        rows = self._to_rows(await self.client.execute(query.sql, query.params))

        if not rows:
            logger.info(f"No product found for '{term}'")
        else:
            logger.info(f"{len(rows)} product(s) found for '{term}'")

        return SearchResult(
            data=rows,
            count=len(rows),
            term=term,
            mode=mode,
            tables_searched=query.tables,
            tables_skipped=skipped,
            truncated_tables=truncated,
        )

    async def browse(self, limit: Optional[int] = None) -> SearchResult:
        """First rows of the first active table, projected onto the canonical fields."""
        limit = limit or self.settings.BROWSE_LIMIT
        try:
            tables = self._active_tables(await self.resolver.list_candidate_tables())
            if not tables:
                logger.warning("No catalog table found in the database")
                return SearchResult(data=[], count=0)

            table = tables[0]
            columns = await self.resolver.list_columns(table)
            config = self.config_store.get(table) if self.config_store is not None else None
            query = f"{build_table_query(table, columns, config.column_mapping if config else None)} LIMIT {int(limit)}"
            rows = self._to_rows(await self.client.execute(query))
        except QueryError as e:
            logger.error(f"Browse failed: {e.message}")
            return SearchResult(data=None, error=e.message, error_kind=e.kind)

        logger.info(f"{len(rows)} product(s) listed from {table}")
        return SearchResult(data=rows, count=len(rows), tables_searched=[table])

    async def preview_table(self, table: str, page: int = 1, page_size: Optional[int] = None) -> TablePageResult:
        """Raw rows of one discovered table with offset/limit pagination and a total count."""
        page = max(int(page or 1), 1)
        page_size = page_size or self.settings.PREVIEW_PAGE_SIZE
        try:
            tables = await self.resolver.list_candidate_tables()
            if table not in tables:
                raise ValidationError(f"Unknown catalog table: {table}")

            columns = await self.resolver.list_columns(table)
            queries = build_preview_queries(table, page, page_size)
            rows = await self.client.execute(queries["rows"])
            count_rows = await self.client.execute(queries["count"])
        except QueryError as e:
            logger.error(f"Preview of {table} failed: {e.message}")
            return TablePageResult(error=e.message, error_kind=e.kind)

        total = int(count_rows[0]["total"]) if count_rows else 0
        return TablePageResult(data=TablePage(
            table=table,
            columns=columns,
            rows=rows,
            page=page,
            page_size=page_size,
            total_count=total,
        ))

    async def test_connection(self) -> QueryResult:
        try:
            rows = await self.client.execute(CONNECTION_TEST_QUERY)
        except QueryError as e:
            logger.error(f"Connection test failed: {e.message}")
            return QueryResult.failure(e)
        return QueryResult.ok(rows)

    async def table_mapping(self, table: str) -> TableMappingView:
        """Explicit, effective and ambiguous mappings for one table. Raises QueryError."""
        columns = await self.resolver.list_columns(table)
        config = self.config_store.get(table) if self.config_store is not None else None
        explicit = dict(config.column_mapping) if config else {}
        return TableMappingView(
            table=table,
            columns=columns,
            explicit=explicit,
            effective=resolve_mapping(columns, explicit),
            ambiguities=mapping_ambiguities(columns),
        )

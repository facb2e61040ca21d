"""
API routes for the discovered catalog tables and their configuration.

Reading: list tables, columns, a paginated preview and the effective mapping.
Writing: enable/disable a table, edit its search and display column
selections, and edit its column mapping (single field, auto-map, clear all).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from catalog_explorer.core.enums import CanonicalField, FieldSelection
from catalog_explorer.core.exceptions import QueryError
from catalog_explorer.dependencies import get_config_store, get_schema_resolver, get_search_service
from catalog_explorer.routes.errors import http_error, raise_for_envelope
from catalog_explorer.schemas.catalog import EnabledUpdate, FieldToggle, MappingUpdate, TableConfig
from catalog_explorer.services.catalog.schema_resolver import SchemaCatalogResolver
from catalog_explorer.services.catalog.search_service import CatalogSearchService
from catalog_explorer.services.table_config_store import TableConfigStore, default_table_config

router = APIRouter(prefix="/api/tables", tags=["tables"])

logger = logging.getLogger(__name__)


def _dump(config: TableConfig) -> dict:
    return config.model_dump(by_alias=True)


async def _columns(resolver: SchemaCatalogResolver, table: str):
    try:
        columns = await resolver.list_columns(table)
    except QueryError as e:
        raise http_error(e)
    if not columns:
        raise HTTPException(status_code=404, detail=f"Table {table} has no column or does not exist")
    return columns


@router.get("")
async def list_tables(
    resolver: SchemaCatalogResolver = Depends(get_schema_resolver),
    store: TableConfigStore = Depends(get_config_store),
):
    """Discover candidate tables and return their configuration"""
    try:
        tables = await resolver.list_candidate_tables()
    except QueryError as e:
        raise http_error(e)
    return {
        "tables": [_dump(store.get(table) or default_table_config(table)) for table in tables],
        "enabled": store.enabled_tables(),
    }


@router.get("/{table}/columns")
async def table_columns(table: str, resolver: SchemaCatalogResolver = Depends(get_schema_resolver)):
    return {"name": table, "columns": await _columns(resolver, table)}


@router.get("/{table}/preview")
async def preview_table(
    table: str,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    service: CatalogSearchService = Depends(get_search_service),
):
    result = await service.preview_table(table, page, page_size)
    raise_for_envelope(result)
    return {**result.data.model_dump(mode="json"), "has_next": result.data.has_next}


@router.get("/{table}/mapping")
async def table_mapping(table: str, service: CatalogSearchService = Depends(get_search_service)):
    """Explicit mapping, effective mapping and ambiguous fields for a table"""
    try:
        view = await service.table_mapping(table)
    except QueryError as e:
        raise http_error(e)
    return view.model_dump()


@router.put("/{table}/enabled")
async def set_table_enabled(
    table: str,
    body: EnabledUpdate,
    store: TableConfigStore = Depends(get_config_store),
):
    config = store.set_enabled(table, body.enabled)
    logger.info(f"Table {table} {'enabled' if body.enabled else 'disabled'} for search")
    return _dump(config)


@router.post("/{table}/fields/{kind}/toggle")
async def toggle_table_field(
    table: str,
    kind: FieldSelection,
    body: FieldToggle,
    store: TableConfigStore = Depends(get_config_store),
):
    return _dump(store.toggle_field(table, body.column, kind))


@router.post("/{table}/fields/{kind}/all")
async def select_all_table_fields(
    table: str,
    kind: FieldSelection,
    resolver: SchemaCatalogResolver = Depends(get_schema_resolver),
    store: TableConfigStore = Depends(get_config_store),
):
    columns = await _columns(resolver, table)
    return _dump(store.select_all_fields(table, columns, kind))


@router.delete("/{table}/fields/{kind}")
async def clear_table_fields(
    table: str,
    kind: FieldSelection,
    store: TableConfigStore = Depends(get_config_store),
):
    return _dump(store.clear_fields(table, kind))


@router.put("/{table}/mapping/{field}")
async def set_field_mapping(
    table: str,
    field: CanonicalField,
    body: MappingUpdate,
    store: TableConfigStore = Depends(get_config_store),
):
    return _dump(store.set_column_mapping(table, field.value, body.column))


@router.delete("/{table}/mapping/{field}")
async def remove_field_mapping(
    table: str,
    field: CanonicalField,
    store: TableConfigStore = Depends(get_config_store),
):
    return _dump(store.set_column_mapping(table, field.value, None))


@router.post("/{table}/mapping/auto")
async def auto_map_table(
    table: str,
    resolver: SchemaCatalogResolver = Depends(get_schema_resolver),
    store: TableConfigStore = Depends(get_config_store),
):
    """Fill unmapped fields from the column name heuristics"""
    columns = await _columns(resolver, table)
    mapping = store.auto_map_table(table, columns)
    logger.info(f"Auto-mapped {len(mapping)} field(s) for {table}")
    return {"name": table, "columnMapping": mapping}


@router.delete("/{table}/mapping")
async def clear_table_mapping(table: str, store: TableConfigStore = Depends(get_config_store)):
    return _dump(store.clear_column_mapping(table))

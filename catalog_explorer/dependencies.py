from functools import lru_cache

from catalog_explorer.core.config import get_settings
from catalog_explorer.services.catalog.schema_resolver import SchemaCatalogResolver
from catalog_explorer.services.catalog.search_service import CatalogSearchService
from catalog_explorer.services.gateway.client import GatewayClient
from catalog_explorer.services.table_config_store import TableConfigStore


@lru_cache()
def get_config_store() -> TableConfigStore:
    """Process-wide table configuration; an empty TABLE_CONFIG_PATH keeps it in memory."""
    return TableConfigStore(get_settings().TABLE_CONFIG_PATH or None)


@lru_cache()
def get_gateway_client() -> GatewayClient:
    return GatewayClient(get_settings())


@lru_cache()
def get_schema_resolver() -> SchemaCatalogResolver:
    """Shared so the per-table column cache survives across requests."""
    return SchemaCatalogResolver(get_gateway_client(), get_config_store())


@lru_cache()
def get_search_service() -> CatalogSearchService:
    return CatalogSearchService(
        get_gateway_client(),
        get_schema_resolver(),
        get_config_store(),
        get_settings(),
    )


def clear_dependency_cache():
    for dependency in (get_config_store, get_gateway_client, get_schema_resolver, get_search_service):
        dependency.cache_clear()

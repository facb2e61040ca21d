# tests/conftest.py
import pytest

from catalog_explorer.core.config import Settings
from catalog_explorer.services.catalog.schema_resolver import SchemaCatalogResolver
from catalog_explorer.services.catalog.search_service import CatalogSearchService
from catalog_explorer.services.table_config_store import TableConfigStore
from tests.fakes import FakeGatewayClient


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        GATEWAY_URL="https://gateway.test/functions/v1/catalog-db",
        GATEWAY_API_KEY="test_key",
        GATEWAY_READ_ONLY_TOKEN="read_only_token",
        DB_HOST="db.test",
        DB_PORT="5432",
        DB_NAME="catalog",
        DB_USER="reader",
        DB_PASSWORD="secret",
        DB_CONNECTION_STRING="",
        TABLE_CONFIG_PATH="",
        SEARCH_TABLE_LIMIT=5,
        SEARCH_RESULT_LIMIT=100,
        BROWSE_LIMIT=50,
        PREVIEW_PAGE_SIZE=10,
    )


@pytest.fixture
def fake_gateway():
    return FakeGatewayClient()


@pytest.fixture
def config_store():
    return TableConfigStore()


@pytest.fixture
def resolver(fake_gateway, config_store):
    return SchemaCatalogResolver(fake_gateway, config_store)


@pytest.fixture
def search_service(fake_gateway, resolver, config_store, settings):
    return CatalogSearchService(fake_gateway, resolver, config_store, settings)

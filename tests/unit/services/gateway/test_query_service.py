import pytest

from catalog_explorer.core.exceptions import ValidationError
from catalog_explorer.services.gateway.client import GatewayClient
from catalog_explorer.services.gateway.query_service import QueryService
from tests.fakes import FakeGatewayClient


@pytest.mark.asyncio
async def test_execute_query_success():
    service = QueryService(FakeGatewayClient())

    result = await service.execute_query("SELECT 1 AS connection_test")

    assert result.data == [{"connection_test": 1}]
    assert result.count == 1
    assert result.error is None


@pytest.mark.asyncio
async def test_execute_query_failure_is_envelope():
    service = QueryService(FakeGatewayClient(error=ValidationError("Write operation detected.")))

    result = await service.execute_query("SELECT 1")

    assert result.data is None
    assert result.count == 0
    assert result.error == "Write operation detected."
    assert result.error_kind == "validation"


@pytest.mark.asyncio
async def test_delete_rejected_without_calling_gateway(mocker, settings):
    mock_client = mocker.patch("httpx.AsyncClient")
    service = QueryService(GatewayClient(settings))

    result = await service.execute_query("DELETE FROM products")

    assert result.data is None
    assert result.error_kind == "validation"
    mock_client.assert_not_called()

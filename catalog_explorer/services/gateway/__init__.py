from catalog_explorer.services.gateway.client import GatewayClient, is_read_only_query
from catalog_explorer.services.gateway.query_service import QueryService

__all__ = ["GatewayClient", "QueryService", "is_read_only_query"]

"""
Boundary around the gateway client for callers that want the
``{data, count, error}`` envelope instead of exceptions.
"""

import logging
from typing import Any, Optional, Sequence

from catalog_explorer.core.exceptions import QueryError
from catalog_explorer.schemas.gateway import QueryResult
from catalog_explorer.services.gateway.client import GatewayClient

logger = logging.getLogger(__name__)


class QueryService:
    def __init__(self, client: GatewayClient):
        self.client = client

    async def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        try:
            rows = await self.client.execute(query, params)
        except QueryError as e:
            logger.warning(f"Query failed ({e.kind}): {e.message}")
            return QueryResult.failure(e)
        return QueryResult.ok(rows)

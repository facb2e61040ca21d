import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from catalog_explorer.core.config import Settings, get_settings
from catalog_explorer.core.exceptions import (
    ConfigError,
    DatabaseError,
    GatewayError,
    NetworkError,
    ValidationError,
)
from catalog_explorer.schemas.gateway import DbConfig, GatewayRequest

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    401: "Gateway authentication failed ({status}): check the access token and its permissions.",
    404: "Gateway not available ({status}): the endpoint was not found.",
    500: "Gateway server error ({status}): internal server problem.",
    503: "Gateway unavailable ({status}): the service is temporarily unavailable.",
}


def is_read_only_query(query: str) -> bool:
    """Only statements starting with SELECT may be sent through the read-only gateway."""
    return query.strip().upper().startswith("SELECT")


def status_error_message(status_code: int, body: str) -> str:
    template = STATUS_MESSAGES.get(status_code)
    if template:
        return template.format(status=status_code)
    return f"Gateway error ({status_code}): {body}"


class GatewayClient:
    """
    Asynchronous client for the read-only SQL execution gateway.

    Every query is POSTed as ``{query, params, readOnly, dbConfig}`` and the
    gateway answers ``{data, count, error}``. The client validates the
    connection configuration and the read-only constraint before any network
    call and raises a ``QueryError`` subclass for every failure:

    - ``ConfigError``: host, port, database or user missing
    - ``ValidationError``: statement does not start with SELECT
    - ``GatewayError``: non-2xx response
    - ``NetworkError``: transport failure or timeout
    - ``DatabaseError``: the database rejected the query

    Retries are the gateway's concern; the client makes exactly one attempt.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.url = self.settings.GATEWAY_URL
        self.timeout = self.settings.GATEWAY_TIMEOUT

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Gateway-Token": self.settings.GATEWAY_READ_ONLY_TOKEN,
        }
        if self.settings.GATEWAY_API_KEY:
            headers["apikey"] = self.settings.GATEWAY_API_KEY
            headers["Authorization"] = f"Bearer {self.settings.GATEWAY_API_KEY}"
        return headers

    def _db_config(self) -> DbConfig:
        db_config = self.settings.db_config()
        missing = db_config.missing_fields()
        if missing:
            raise ConfigError(
                f"Incomplete database configuration: {', '.join(missing)}. Check the environment variables."
            )
        return db_config

    async def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """
        Run a read-only query through the gateway.

        Args:
            query: SQL text, must start with SELECT
            params: Positional parameters bound to $1, $2, ...

        Returns:
            List of row dicts

        Raises:
            QueryError: one of its subclasses, see the class docstring
        """
        db_config = self._db_config()

        if not is_read_only_query(query):
            logger.error("Write operation rejected before reaching the gateway")
            raise ValidationError("Write operation detected. The gateway access is read-only.")

        request = GatewayRequest(query=query, params=list(params or []), db_config=db_config)

        logger.debug(f"Executing gateway query with {len(request.params)} param(s): {query}")
        logger.debug(f"Connection: {db_config.masked()}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method="POST",
                    url=self.url,
                    headers=self._get_headers(),
                    json=request.model_dump(by_alias=True),
                )
        except httpx.TimeoutException as e:
            logger.error(f"Gateway timeout: {str(e)}")
            raise NetworkError(f"Network error: request timed out ({str(e)})")
        except httpx.RequestError as e:
            logger.error(f"Network error: {str(e)}")
            raise NetworkError(f"Network error: {str(e)}")

        if response.status_code < 200 or response.status_code >= 300:
            message = status_error_message(response.status_code, response.text)
            logger.error(f"Gateway error {response.status_code}: {response.text}")
            raise GatewayError(message, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise GatewayError("Gateway returned a response that is not JSON", status_code=response.status_code)

        if payload.get("error"):
            logger.error(f"Database error returned: {payload['error']}")
            raise DatabaseError(f"Database error: {payload['error']}")

        rows = payload.get("data") or []
        logger.debug(f"Gateway returned {len(rows)} row(s)")
        return rows

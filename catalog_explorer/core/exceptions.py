class QueryError(Exception):
    """Base exception for every failure on the way to the query gateway."""

    kind = "query"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ConfigError(QueryError):
    """Raised when the connection configuration is missing or incomplete."""
    kind = "config"

class ValidationError(QueryError):
    """Raised when a non-SELECT query is submitted through the read-only path."""
    kind = "validation"

class GatewayError(QueryError):
    """Raised when the gateway answers with a non-2xx status."""
    kind = "gateway"

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

class NetworkError(QueryError):
    """Raised when the gateway cannot be reached."""
    kind = "network"

class DatabaseError(QueryError):
    """Raised when the gateway reached the database but the query failed there."""
    kind = "database"

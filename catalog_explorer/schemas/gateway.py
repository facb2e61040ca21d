"""
Schemas for the read-only query gateway: the request body it accepts and the
{data, count, error} envelope every query operation returns.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_CONNECTION_FIELDS = ("host", "port", "database", "user")


class DbConfig(BaseModel):
    host: str = ""
    port: str = ""
    database: str = ""
    user: str = ""
    password: str = ""

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_CONNECTION_FIELDS if not getattr(self, name)]

    def masked(self) -> Dict[str, str]:
        """Loggable view of the connection, without the password."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "passwordProvided": "Yes" if self.password else "No",
        }


class GatewayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str
    params: List[Any] = Field(default_factory=list)
    read_only: bool = Field(default=True, alias="readOnly")
    db_config: DbConfig = Field(alias="dbConfig")


class QueryResult(BaseModel):
    """Envelope returned at every operation boundary; errors never propagate past it."""
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, rows: List[Dict[str, Any]]) -> "QueryResult":
        return cls(data=rows, count=len(rows))

    @classmethod
    def failure(cls, exc) -> "QueryResult":
        return cls(data=None, count=0, error=exc.message, error_kind=exc.kind)

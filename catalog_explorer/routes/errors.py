from typing import Optional

from fastapi import HTTPException

from catalog_explorer.core.exceptions import QueryError

ERROR_STATUS_CODES = {
    "validation": 400,
    "config": 503,
}


def status_for_error_kind(kind: Optional[str]) -> int:
    """Gateway, network and database failures are all upstream problems: 502."""
    return ERROR_STATUS_CODES.get(kind or "", 502)


def raise_for_envelope(result):
    """Turn an envelope carrying an error into an HTTPException."""
    if result.error:
        raise HTTPException(status_code=status_for_error_kind(result.error_kind), detail=result.error)


def http_error(exc: QueryError) -> HTTPException:
    return HTTPException(status_code=status_for_error_kind(exc.kind), detail=exc.message)

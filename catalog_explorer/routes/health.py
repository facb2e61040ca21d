from fastapi import APIRouter, Depends

from catalog_explorer.dependencies import get_search_service
from catalog_explorer.services.catalog.search_service import CatalogSearchService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "Catalog Explorer"}


@router.get("/health/db")
async def database_health(service: CatalogSearchService = Depends(get_search_service)):
    """Check that the gateway can reach the database"""
    result = await service.test_connection()
    if result.error:
        return {
            "status": "unhealthy",
            "database": "error",
            "error": result.error,
            "error_kind": result.error_kind,
        }
    return {"status": "healthy", "database": "connected"}

"""
API routes for searching and browsing the product catalog.

- GET /api/search: federated search across the catalog tables, optionally
  reconciled into product groups
- GET /api/products: first rows of the first catalog table
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from catalog_explorer.dependencies import get_search_service
from catalog_explorer.routes.errors import raise_for_envelope
from catalog_explorer.services.catalog.reconciliation import group_by_identity
from catalog_explorer.services.catalog.search_service import CatalogSearchService

router = APIRouter(prefix="/api", tags=["search"])

logger = logging.getLogger(__name__)


@router.get("/search")
async def search_products(
    q: str = Query("", description="Barcode, reference or free text"),
    grouped: bool = Query(False, description="Reconcile rows sharing a barcode or supplier code"),
    service: CatalogSearchService = Depends(get_search_service),
):
    result = await service.search(q)
    raise_for_envelope(result)

    response = result.model_dump(mode="json")
    response["truncated"] = result.truncated
    if grouped:
        groups = group_by_identity(result.data or [])
        response["groups"] = [
            {**group.model_dump(mode="json"), "has_conflicts": group.has_conflicts}
            for group in groups
        ]
        logger.info(f"{len(result.data or [])} row(s) reconciled into {len(groups)} group(s)")
    return response


@router.get("/products")
async def browse_products(
    limit: Optional[int] = Query(None, ge=1, le=500),
    service: CatalogSearchService = Depends(get_search_service),
):
    result = await service.browse(limit)
    raise_for_envelope(result)
    return result.model_dump(mode="json")

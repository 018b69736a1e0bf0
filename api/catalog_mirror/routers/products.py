from __future__ import annotations
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from catalog_mirror.deps import get_query_engine
from catalog_mirror.models import ProductListOut, ProductOut
from catalog_mirror.services.query import (
    DEFAULT_LIMIT, ListingQuery, QueryEngine, SortMode, SortOrder,
    clamp_limit, clamp_page, page_count, page_offset,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["products"])

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _int_param(raw: Optional[str], default: int) -> int:
    """Leading integer of a query value; unparsable or 0 -> default."""
    m = _LEADING_INT.match(raw or "")
    value = int(m.group(1)) if m else 0
    return value or default


@router.get("/products", response_model=ProductListOut)
async def list_products(
    collection: Optional[str] = Query(None, description="Collection GID, e.g. gid://shopify/Collection/123"),
    sortBy: str = Query("color", description="color | number | name | price"),
    order: str = Query("asc", description="asc | desc"),
    instock: Optional[str] = Query(None, description="'true' to list only purchasable products"),
    page: Optional[str] = Query("1"),
    limit: Optional[str] = Query(str(DEFAULT_LIMIT), description="max 250"),
    engine: QueryEngine = Depends(get_query_engine),
):
    if not collection:
        raise HTTPException(status_code=400, detail="collection param required")

    page_num = clamp_page(_int_param(page, 1))
    limit_num = clamp_limit(_int_param(limit, DEFAULT_LIMIT))

    try:
        result = await engine.list(ListingQuery(
            collection_id=collection,
            sort_by=SortMode.parse(sortBy),
            order=SortOrder.parse(order),
            only_in_stock=(instock == "true"),
            limit=limit_num,
            offset=page_offset(page_num, limit_num),
        ))
    except Exception as e:
        logger.exception("[api/products] listing failed")
        raise HTTPException(status_code=500, detail=str(e))

    return ProductListOut(
        total=result.total,
        page=page_num,
        limit=limit_num,
        pages=page_count(result.total, limit_num),
        products=[ProductOut.model_validate(p) for p in result.products],
    )

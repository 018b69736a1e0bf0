from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse

from catalog_mirror.deps import get_settings, get_worker
from catalog_mirror.services.worker import SyncWorker
from catalog_mirror.settings import Settings
from catalog_mirror.webhooks import extract_product_id, verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


async def _verified_product_id(request: Request, hmac_header: Optional[str], settings: Settings, label: str):
    """(verified, product_id). Payload problems are logged, never raised."""
    raw = await request.body()
    if not verify_webhook(raw, hmac_header, settings.WEBHOOK_SECRET):
        return False, None
    try:
        product_id = extract_product_id(raw)
    except ValueError as e:
        logger.error("[webhook/%s] unreadable payload: %s", label, e)
        return True, None
    if not product_id:
        logger.warning("[webhook/%s] payload without admin_graphql_api_id", label)
    return True, product_id


@router.post("/products/update", response_class=PlainTextResponse)
async def product_updated(
    request: Request,
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    worker: SyncWorker = Depends(get_worker),
):
    verified, product_id = await _verified_product_id(request, x_shopify_hmac_sha256, settings, "update")
    if not verified:
        return PlainTextResponse("Unauthorized", status_code=401)
    if product_id:
        logger.info("[webhook] updating product: %s", product_id)
        worker.request_product_sync(product_id, reason="webhook products/update")
    return "OK"


@router.post("/products/delete", response_class=PlainTextResponse)
async def product_deleted(
    request: Request,
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    worker: SyncWorker = Depends(get_worker),
):
    verified, product_id = await _verified_product_id(request, x_shopify_hmac_sha256, settings, "delete")
    if not verified:
        return PlainTextResponse("Unauthorized", status_code=401)
    if product_id:
        worker.request_product_delete(product_id, reason="webhook products/delete")
    return "OK"

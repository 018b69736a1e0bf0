from __future__ import annotations
import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from catalog_mirror.deps import get_settings, get_worker
from catalog_mirror.models import SyncAcceptedOut
from catalog_mirror.services.worker import SyncWorker
from catalog_mirror.settings import Settings

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin_key(
    x_admin_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    expected = settings.ADMIN_KEY
    # no key configured -> the admin surface stays closed
    ok = bool(expected) and bool(x_admin_key) and hmac.compare_digest(x_admin_key.encode("utf-8"), expected.encode("utf-8"))
    if not ok:
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/sync", response_model=SyncAcceptedOut, dependencies=[Depends(require_admin_key)])
async def trigger_sync(worker: SyncWorker = Depends(get_worker)):
    worker.request_full_crawl(reason="admin trigger")
    return SyncAcceptedOut(message="Sync started in background")

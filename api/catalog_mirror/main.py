# catalog_mirror/main.py
# Catalog Mirror - Shopify catalog mirror + filtered listing API
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from catalog_mirror import __version__
from catalog_mirror.database import Database
from catalog_mirror.logging_setup import setup_logging
from catalog_mirror.models import HealthOut
from catalog_mirror.routers.admin import router as admin_router
from catalog_mirror.routers.products import router as products_router
from catalog_mirror.routers.webhooks import router as webhooks_router
from catalog_mirror.services.query import QueryEngine
from catalog_mirror.services.scheduler import DailyScheduler
from catalog_mirror.services.sync import SyncEngine
from catalog_mirror.services.worker import SyncWorker
from catalog_mirror.settings import Settings, settings as default_settings
from catalog_mirror.shopify_client import ShopifyCatalogClient
from catalog_mirror.store import CatalogStore

logger = logging.getLogger(__name__)

SchedulerFactory = Callable[[Callable[[], None], Settings], Optional[DailyScheduler]]


def default_scheduler(trigger: Callable[[], None], settings: Settings) -> Optional[DailyScheduler]:
    if not settings.SYNC_SCHEDULE_ENABLED:
        return None
    return DailyScheduler(
        trigger,
        hour=settings.SYNC_SCHEDULE_HOUR,
        minute=settings.SYNC_SCHEDULE_MINUTE,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    catalog_client: Optional[ShopifyCatalogClient] = None,
    scheduler_factory: SchedulerFactory = default_scheduler,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings)

    # ---------------------------------------------------------
    # Lifespan: store, remote client, worker, daily timer
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        db = Database.from_settings(settings)
        await db.open()
        store = CatalogStore(db)
        await store.setup()

        client = catalog_client or ShopifyCatalogClient.from_settings(settings)
        engine = SyncEngine(client, store, page_delay=settings.CRAWL_PAGE_DELAY_SECONDS)
        worker = SyncWorker(engine)
        worker.start()

        scheduler = scheduler_factory(
            lambda: worker.request_full_crawl(reason="daily schedule"), settings
        )
        if scheduler is not None:
            scheduler.start()

        app.state.settings = settings
        app.state.store = store
        app.state.query_engine = QueryEngine(store)
        app.state.sync_engine = engine
        app.state.worker = worker
        app.state.scheduler = scheduler

        count = await store.count()
        if count == 0 and settings.SYNC_ON_EMPTY_STORE:
            logger.info("Empty store - starting initial sync...")
            worker.request_full_crawl(reason="empty store at startup")
        else:
            logger.info("Store ready with %d products", count)
        logger.info("Catalog Mirror up - shop: %s", settings.SHOP_DOMAIN or "(not configured)")

        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            await worker.stop()
            if catalog_client is None:
                await client.aclose()
            await db.close()
            logger.info("Catalog Mirror stopped")

    # ---------------------------------------------------------
    # FastAPI app + CORS
    # ---------------------------------------------------------
    app = FastAPI(
        title="Catalog Mirror API",
        version=__version__,
        description="Shopify catalog mirror with filtered, sorted product listings",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(products_router)
    app.include_router(webhooks_router)
    app.include_router(admin_router)

    @app.get("/", response_model=HealthOut)
    @app.get("/health", response_model=HealthOut)
    async def health(request: Request):
        """Health check with product count, database and last-crawl status."""
        store: CatalogStore = request.app.state.store
        worker: SyncWorker = request.app.state.worker
        try:
            count = await store.count()
        except Exception as e:
            logger.warning("Product count failed: %s", e)
            count = -1
        database = await store.db.health()
        return HealthOut(
            status="ok" if database.get("status") == "healthy" else "degraded",
            shop=settings.SHOP_DOMAIN,
            products=count,
            version=__version__,
            database=database,
            sync=worker.crawl_status.as_dict(),
        )

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "catalog_mirror.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=default_settings.PORT,
    )


if __name__ == "__main__":
    run()

# catalog_mirror/services/sync.py
"""
SyncEngine - reconciles the local store with the remote catalog.

- run_full_crawl(): walk every page from an empty cursor, transform + upsert each node
- sync_product(id): refetch one product; delete it locally when the remote has none
- delete_product(id): forwarded removal notification

A failure anywhere in a crawl (fetch, transform, write) aborts the whole crawl.
Nothing is resumed; the next crawl starts from scratch.
"""
from __future__ import annotations
import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable

from catalog_mirror.services.transform import transform_product
from catalog_mirror.shopify_client import ShopifyCatalogClient
from catalog_mirror.store import CatalogStore

logger = logging.getLogger(__name__)


class SyncOutcome(str, enum.Enum):
    upserted = "upserted"
    deleted = "deleted"


class SyncEngine:
    def __init__(
        self,
        client: ShopifyCatalogClient,
        store: CatalogStore,
        *,
        page_delay: float = 0.3,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.store = store
        self.page_delay = page_delay
        self._sleep = sleep

    async def run_full_crawl(self) -> int:
        """Mirror every remote product. Returns the number of records processed."""
        logger.info("Full sync started")
        cursor = None
        total = 0
        page = 1

        while True:
            logger.info("  page %d...", page)
            result = await self.client.fetch_page(cursor)

            for node in result.nodes:
                await self.store.upsert(transform_product(node))
                total += 1

            logger.info("  %d products synced", total)

            if not result.has_next:
                break
            cursor = result.next_cursor
            page += 1
            await self._sleep(self.page_delay)

        logger.info("Full sync finished: %d products", total)
        return total

    async def sync_product(self, product_id: str) -> SyncOutcome:
        node = await self.client.fetch_one(product_id)
        if node is None:
            logger.warning("[sync] product %s not found remotely - deleting", product_id)
            await self.store.delete(product_id)
            return SyncOutcome.deleted

        record = transform_product(node)
        await self.store.upsert(record)
        logger.info("[sync] product updated: %s (%s)", record.title, record.id)
        return SyncOutcome.upserted

    async def delete_product(self, product_id: str) -> bool:
        removed = await self.store.delete(product_id)
        logger.info("[sync] product deleted: %s (existed=%s)", product_id, removed)
        return removed

# catalog_mirror/services/worker.py
"""
Background work for sync jobs.

HTTP handlers enqueue and return right away; consumer tasks run the jobs.
Failures go to the log only - whoever enqueued the job already got its answer.

Two lanes, each consumed serially:
- crawl lane:  full crawls
- record lane: single-product sync / delete from change notifications
The lanes run side by side; the remote client still serializes its own calls.
"""
from __future__ import annotations
import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from catalog_mirror.services.sync import SyncEngine

logger = logging.getLogger(__name__)


class JobKind(str, enum.Enum):
    full_crawl = "full_crawl"
    sync_product = "sync_product"
    delete_product = "delete_product"


class CrawlState(str, enum.Enum):
    idle = "idle"
    running = "running"
    completed = "completed"
    failed = "failed"


@dataclass(frozen=True)
class SyncJob:
    kind: JobKind
    product_id: Optional[str] = None
    reason: str = ""


@dataclass
class CrawlStatus:
    state: CrawlState = CrawlState.idle
    processed: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "processed": self.processed,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
        }


class SyncWorker:
    def __init__(self, engine: SyncEngine):
        self.engine = engine
        self.crawl_status = CrawlStatus()
        self._crawls: asyncio.Queue[SyncJob] = asyncio.Queue()
        self._records: asyncio.Queue[SyncJob] = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._crawl_pending = False

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._consume(self._crawls), name="sync-crawls"),
            asyncio.create_task(self._consume(self._records), name="sync-records"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def join(self) -> None:
        """Wait until everything queued so far has been processed."""
        await self._crawls.join()
        await self._records.join()

    # =========================================================================
    # Enqueue
    # =========================================================================

    def submit(self, job: SyncJob) -> bool:
        """Queue a job; False when a full crawl is already queued or running."""
        if job.kind is JobKind.full_crawl:
            if self._crawl_pending or self.crawl_status.state is CrawlState.running:
                logger.info("Full crawl already pending, skipped (%s)", job.reason or "-")
                return False
            self._crawl_pending = True
            queue = self._crawls
        elif not job.product_id:
            raise ValueError(f"{job.kind.value} job needs a product_id")
        else:
            queue = self._records
        queue.put_nowait(job)
        logger.info("Queued %s %s (%s)", job.kind.value, job.product_id or "", job.reason or "-")
        return True

    def request_full_crawl(self, reason: str = "") -> bool:
        return self.submit(SyncJob(JobKind.full_crawl, reason=reason))

    def request_product_sync(self, product_id: str, reason: str = "") -> None:
        self.submit(SyncJob(JobKind.sync_product, product_id, reason))

    def request_product_delete(self, product_id: str, reason: str = "") -> None:
        self.submit(SyncJob(JobKind.delete_product, product_id, reason))

    # =========================================================================
    # Consume
    # =========================================================================

    async def _consume(self, queue: "asyncio.Queue[SyncJob]") -> None:
        while True:
            job = await queue.get()
            try:
                await self.run(job)
            except Exception:
                logger.exception("[worker] %s %s failed", job.kind.value, job.product_id or "")
            finally:
                queue.task_done()

    async def run(self, job: SyncJob) -> None:
        if job.kind is JobKind.full_crawl:
            await self._run_crawl()
        elif job.kind is JobKind.sync_product:
            await self.engine.sync_product(job.product_id)
        elif job.kind is JobKind.delete_product:
            await self.engine.delete_product(job.product_id)

    async def _run_crawl(self) -> None:
        status = self.crawl_status
        self._crawl_pending = False
        status.state = CrawlState.running
        status.started_at = datetime.now(timezone.utc)
        status.finished_at = None
        status.error = None
        try:
            status.processed = await self.engine.run_full_crawl()
        except Exception as e:
            status.state = CrawlState.failed
            status.error = str(e)
            raise
        else:
            status.state = CrawlState.completed
        finally:
            status.finished_at = datetime.now(timezone.utc)

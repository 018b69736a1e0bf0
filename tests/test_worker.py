import asyncio
import logging

import pytest

from catalog_mirror.services.worker import CrawlState, JobKind, SyncJob, SyncWorker


class DummyEngine:
    def __init__(self, fail_crawl=False, fail_sync=False):
        self.fail_crawl = fail_crawl
        self.fail_sync = fail_sync
        self.calls = []

    async def run_full_crawl(self):
        self.calls.append(("crawl", None))
        if self.fail_crawl:
            raise RuntimeError("remote down")
        return 42

    async def sync_product(self, product_id):
        self.calls.append(("sync", product_id))
        if self.fail_sync:
            raise RuntimeError("boom")

    async def delete_product(self, product_id):
        self.calls.append(("delete", product_id))
        return True


@pytest.mark.asyncio
async def test_jobs_run_in_background_and_record_crawl_status():
    engine = DummyEngine()
    worker = SyncWorker(engine)
    worker.start()

    worker.request_full_crawl(reason="test")
    worker.request_product_sync("gid://shopify/Product/1")
    worker.request_product_delete("gid://shopify/Product/2")
    # nothing has run yet: enqueueing never waits for the work
    assert engine.calls == []

    await asyncio.wait_for(worker.join(), timeout=5)
    await worker.stop()

    assert sorted(engine.calls) == [
        ("crawl", None),
        ("delete", "gid://shopify/Product/2"),
        ("sync", "gid://shopify/Product/1"),
    ]
    assert worker.crawl_status.state is CrawlState.completed
    assert worker.crawl_status.processed == 42
    assert worker.crawl_status.finished_at is not None


@pytest.mark.asyncio
async def test_failures_are_logged_not_raised(caplog):
    engine = DummyEngine(fail_crawl=True, fail_sync=True)
    worker = SyncWorker(engine)
    worker.start()

    with caplog.at_level(logging.ERROR, logger="catalog_mirror.services.worker"):
        worker.request_full_crawl()
        worker.request_product_sync("gid://shopify/Product/1")
        worker.request_product_delete("gid://shopify/Product/1")
        await asyncio.wait_for(worker.join(), timeout=5)
    await worker.stop()

    assert worker.crawl_status.state is CrawlState.failed
    assert worker.crawl_status.error == "remote down"
    assert ("delete", "gid://shopify/Product/1") in engine.calls
    assert sum("failed" in r.getMessage() for r in caplog.records) == 2


def test_record_jobs_need_a_product_id():
    worker = SyncWorker(DummyEngine())

    with pytest.raises(ValueError):
        worker.submit(SyncJob(JobKind.sync_product))


def test_crawl_status_serializes():
    worker = SyncWorker(DummyEngine())

    assert worker.crawl_status.as_dict() == {
        "state": "idle",
        "processed": 0,
        "started_at": None,
        "finished_at": None,
        "error": None,
    }


class BlockingEngine(DummyEngine):
    def __init__(self):
        super().__init__()
        self.crawl_started = asyncio.Event()
        self.release = asyncio.Event()

    async def run_full_crawl(self):
        self.calls.append(("crawl", None))
        self.crawl_started.set()
        await self.release.wait()
        return 1


@pytest.mark.asyncio
async def test_full_crawl_requests_are_coalesced():
    engine = BlockingEngine()
    worker = SyncWorker(engine)

    assert worker.request_full_crawl(reason="first") is True
    assert worker.request_full_crawl(reason="queued duplicate") is False

    worker.start()
    await asyncio.wait_for(engine.crawl_started.wait(), timeout=5)
    assert worker.crawl_status.state is CrawlState.running
    assert worker.request_full_crawl(reason="while running") is False

    engine.release.set()
    await asyncio.wait_for(worker.join(), timeout=5)

    assert engine.calls == [("crawl", None)]
    # a finished crawl no longer blocks the next one
    assert worker.request_full_crawl(reason="after completion") is True
    await asyncio.wait_for(worker.join(), timeout=5)
    await worker.stop()

    assert engine.calls == [("crawl", None), ("crawl", None)]

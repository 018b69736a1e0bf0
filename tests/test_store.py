import asyncio

import pytest

from catalog_mirror.services.transform import transform_product


@pytest.mark.asyncio
async def test_upsert_inserts_then_replaces_whole_row(store, record_factory):
    await store.upsert(record_factory(
        "gid://shopify/Product/1",
        color="red",
        craft="knit",
        metafields={"custom.color": "red"},
        collections=["gid://shopify/Collection/1"],
    ))
    await store.upsert(record_factory(
        "gid://shopify/Product/1",
        color="blue",
        collections=["gid://shopify/Collection/2"],
    ))

    row = await store.get("gid://shopify/Product/1")

    assert await store.count() == 1
    assert row.color == "blue"
    # columns missing from the new record are reset, not merged
    assert row.craft == ""
    assert row.metafields == {}
    assert row.collections == ["gid://shopify/Collection/2"]


@pytest.mark.asyncio
async def test_upsert_is_idempotent_except_updated_at(store, node_factory):
    record = transform_product(node_factory(
        metafields=[{"namespace": "custom", "key": "number", "value": "#4"}],
        collections=["gid://shopify/Collection/7"],
    ))

    await store.upsert(record)
    first = await store.get(record.id)
    await asyncio.sleep(0.01)
    await store.upsert(record)
    second = await store.get(record.id)

    def columns(row):
        return {k: getattr(row, k) for k in record.as_row()}

    assert columns(first) == columns(second)
    assert second.updated_at >= first.updated_at
    assert second.number_num == 4.0


@pytest.mark.asyncio
async def test_delete_removes_row_and_is_noop_when_absent(store, record_factory):
    await store.upsert(record_factory("gid://shopify/Product/1"))

    assert await store.delete("gid://shopify/Product/1") is True
    assert await store.delete("gid://shopify/Product/1") is False
    assert await store.get("gid://shopify/Product/1") is None
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_count_tracks_distinct_ids(store, record_factory):
    for i in range(5):
        await store.upsert(record_factory(f"gid://shopify/Product/{i}"))
    await store.upsert(record_factory("gid://shopify/Product/0", title="renamed"))

    assert await store.count() == 5


@pytest.mark.asyncio
async def test_concurrent_upserts_on_different_ids(store, record_factory):
    await asyncio.gather(*[
        store.upsert(record_factory(f"gid://shopify/Product/{i}")) for i in range(10)
    ])

    assert await store.count() == 10


@pytest.mark.asyncio
async def test_health_reports_connected(store):
    health = await store.db.health()

    assert health["status"] == "healthy"

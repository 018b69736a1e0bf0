"""Shared fixtures: product node builder, fake Shopify GraphQL endpoint, SQLite-backed store."""
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from catalog_mirror.database import Database
from catalog_mirror.services.transform import ProductRecord
from catalog_mirror.shopify_client import ShopifyCatalogClient
from catalog_mirror.store import CatalogStore

GRAPHQL_URL = "https://test-shop.myshopify.com/admin/api/2024-10/graphql.json"


def make_node(
    pid: str = "gid://shopify/Product/1",
    *,
    title: str = "Cotton Yarn",
    variants: Optional[List[Dict[str, Any]]] = None,
    metafields: Optional[List[Dict[str, Any]]] = None,
    collections: Optional[List[str]] = None,
    image_url: Optional[str] = "https://cdn.shopify.com/yarn.jpg",
) -> Dict[str, Any]:
    return {
        "id": pid,
        "handle": title.lower().replace(" ", "-"),
        "title": title,
        "vendor": "Knit Co",
        "productType": "Yarn",
        "status": "ACTIVE",
        "featuredImage": {"url": image_url} if image_url else None,
        "variants": {"nodes": variants if variants is not None else [
            {"price": "12.50", "availableForSale": True, "inventoryQuantity": 4},
        ]},
        "collections": {"nodes": [{"id": c, "title": "ignored"} for c in (collections or [])]},
        "metafields": {"nodes": metafields or []},
    }


def make_record(pid: str, **fields) -> ProductRecord:
    fields.setdefault("title", pid.rsplit("/", 1)[-1])
    return ProductRecord(id=pid, **fields)


class FakeShopify:
    """In-memory stand-in for the Admin GraphQL endpoint (served through httpx.MockTransport)."""

    def __init__(self):
        self.pages: Dict[Optional[str], Dict[str, Any]] = {}
        self.products: Dict[str, Dict[str, Any]] = {}
        self.available = 1000
        self.errors: Optional[List[Dict[str, Any]]] = None
        self.fail_on_cursor: Optional[str] = None
        self.requests: List[Dict[str, Any]] = []

    def add_pages(self, *pages: List[Dict[str, Any]]) -> None:
        cursor = None
        for i, nodes in enumerate(pages):
            last = i == len(pages) - 1
            end = None if last else f"cursor-{i + 1}"
            self.pages[cursor] = {"nodes": nodes, "pageInfo": {"hasNextPage": not last, "endCursor": end}}
            cursor = end

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if self.errors:
            return httpx.Response(200, json={"errors": self.errors})

        variables = body.get("variables") or {}
        if "products(" in body["query"]:
            cursor = variables.get("cursor")
            if self.fail_on_cursor is not None and cursor == self.fail_on_cursor:
                return httpx.Response(502, text="Bad gateway")
            data = {"products": self.pages.get(cursor, {"nodes": [], "pageInfo": {"hasNextPage": False}})}
        else:
            data = {"product": self.products.get(variables.get("id"))}

        return httpx.Response(200, json={
            "data": data,
            "extensions": {"cost": {"throttleStatus": {"currentlyAvailable": self.available}}},
        })

    def client(self, sleeps: Optional[List[float]] = None, **kwargs) -> ShopifyCatalogClient:
        async def fake_sleep(seconds):
            if sleeps is not None:
                sleeps.append(seconds)

        return ShopifyCatalogClient(
            GRAPHQL_URL,
            "shpat_test",
            transport=httpx.MockTransport(self.handler),
            sleep=fake_sleep,
            **kwargs,
        )


@pytest.fixture
def fake_shopify():
    return FakeShopify()


@pytest.fixture
def node_factory():
    return make_node


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{(tmp_path / 'catalog.db').as_posix()}"


@pytest_asyncio.fixture
async def store(sqlite_url):
    db = Database(sqlite_url)
    await db.open()
    catalog = CatalogStore(db)
    await catalog.setup()
    yield catalog
    await db.close()

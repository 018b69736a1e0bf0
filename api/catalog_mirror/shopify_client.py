# catalog_mirror/shopify_client.py
"""
Shopify Admin GraphQL client used by the sync engine.

One query per call, strictly serial. After each call the returned cost budget
(extensions.cost.throttleStatus.currentlyAvailable) is checked; below the threshold
the caller is held back for a fixed delay before the result is handed over.
"""
from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = """
    id handle title vendor productType status
    featuredImage { url }
    variants(first: 10) {
      nodes { price availableForSale inventoryQuantity }
    }
    collections(first: 20) {
      nodes { id }
    }
    metafields(first: 30) {
      nodes { namespace key value }
    }
"""

PRODUCTS_PAGE_QUERY = """
  query($cursor: String, $first: Int!) {
    products(first: $first, after: $cursor) {
      nodes {%s}
      pageInfo { hasNextPage endCursor }
    }
  }
""" % PRODUCT_FIELDS

PRODUCT_BY_ID_QUERY = """
  query($id: ID!) {
    product(id: $id) {%s}
  }
""" % PRODUCT_FIELDS


class RemoteCatalogError(RuntimeError):
    """Remote API call failed (transport, HTTP status or GraphQL errors)."""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass
class CatalogPage:
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    has_next: bool = False
    next_cursor: Optional[str] = None


class ShopifyCatalogClient:
    """Paginated and by-id product queries against the Admin GraphQL API."""

    def __init__(
        self,
        graphql_url: str,
        access_token: str,
        *,
        page_size: int = 50,
        timeout: float = 30.0,
        throttle_threshold: int = 200,
        nominal_budget: int = 1000,
        throttle_delay: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.graphql_url = graphql_url
        self.page_size = page_size
        self.throttle_threshold = throttle_threshold
        self.nominal_budget = nominal_budget
        self.throttle_delay = throttle_delay
        self.last_available: Optional[float] = None
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": access_token,
            },
        )

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "ShopifyCatalogClient":
        return cls(
            settings.graphql_url,
            settings.ACCESS_TOKEN,
            page_size=settings.CRAWL_PAGE_SIZE,
            timeout=settings.SHOPIFY_TIMEOUT,
            throttle_threshold=settings.THROTTLE_THRESHOLD,
            nominal_budget=settings.THROTTLE_NOMINAL_BUDGET,
            throttle_delay=settings.THROTTLE_DELAY_SECONDS,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # Queries
    # =========================================================================

    async def fetch_page(self, cursor: Optional[str] = None) -> CatalogPage:
        data = await self.gql(PRODUCTS_PAGE_QUERY, {"cursor": cursor, "first": self.page_size})
        products = (data or {}).get("products")
        if not isinstance(products, dict):
            raise RemoteCatalogError("Response has no 'products' connection")
        page_info = products.get("pageInfo") or {}
        return CatalogPage(
            nodes=list(products.get("nodes") or []),
            has_next=bool(page_info.get("hasNextPage")),
            next_cursor=page_info.get("endCursor"),
        )

    async def fetch_one(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Product node, or None when the remote API does not know the id."""
        data = await self.gql(PRODUCT_BY_ID_QUERY, {"id": product_id})
        return (data or {}).get("product") or None

    # =========================================================================
    # Transport
    # =========================================================================

    async def gql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run one GraphQL query and return its `data` object."""
        async with self._lock:
            try:
                resp = await self._http.post(
                    self.graphql_url,
                    json={"query": query, "variables": variables or {}},
                )
                resp.raise_for_status()
                payload = resp.json()
            except httpx.HTTPStatusError as e:
                raise RemoteCatalogError(
                    f"Shopify HTTP {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except httpx.HTTPError as e:
                raise RemoteCatalogError(f"Network error calling Shopify: {e}") from e
            except json.JSONDecodeError as e:
                raise RemoteCatalogError(f"Shopify returned invalid JSON: {e}") from e

            if not isinstance(payload, dict):
                raise RemoteCatalogError("Shopify returned a non-object response")
            if payload.get("errors"):
                raise RemoteCatalogError(
                    f"GraphQL errors: {json.dumps(payload['errors'])[:500]}",
                    errors=payload["errors"],
                )

            await self._throttle(payload)
            return payload.get("data") or {}

    async def _throttle(self, payload: Dict[str, Any]) -> None:
        cost = (payload.get("extensions") or {}).get("cost") or {}
        available = (cost.get("throttleStatus") or {}).get("currentlyAvailable")
        if available is None:
            available = self.nominal_budget
        self.last_available = available
        if available < self.throttle_threshold:
            logger.info("Rate limit (%s pts), waiting %.1fs", available, self.throttle_delay)
            await self._sleep(self.throttle_delay)

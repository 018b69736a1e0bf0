# catalog_mirror/services/query.py
"""
Listing queries over the mirrored catalog.

Filters: collection membership (required) and in-stock only (optional).
Sort modes live in SORT_STRATEGIES; adding a mode means adding an enum member and
one ordering function.
"""
from __future__ import annotations
import enum
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.sql.elements import ColumnElement

from catalog_mirror.db_models import Product
from catalog_mirror.store import CatalogStore

DEFAULT_LIMIT = 48
MAX_LIMIT = 250
# keeps (page - 1) * MAX_LIMIT inside a 32-bit OFFSET
MAX_PAGE = 1_000_000


class SortMode(str, enum.Enum):
    color = "color"
    number = "number"
    name = "name"
    price = "price"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortMode":
        """Unknown or missing modes fall back to color."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.color


class SortOrder(str, enum.Enum):
    asc = "asc"
    desc = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        return cls.desc if (value or "").strip().lower() == "desc" else cls.asc


def _directed(column, order: SortOrder) -> ColumnElement:
    expr = column.desc() if order is SortOrder.desc else column.asc()
    return expr.nulls_last()


def _by_color(order: SortOrder) -> List[ColumnElement]:
    return [_directed(Product.color, order), Product.title.asc().nulls_last()]


def _by_number(order: SortOrder) -> List[ColumnElement]:
    return [
        _directed(Product.number_num, order),
        _directed(Product.number, order),
        Product.title.asc().nulls_last(),
    ]


def _by_name(order: SortOrder) -> List[ColumnElement]:
    return [_directed(Product.title, order)]


def _by_price(order: SortOrder) -> List[ColumnElement]:
    return [_directed(Product.price_min, order)]


SORT_STRATEGIES: Dict[SortMode, Callable[[SortOrder], List[ColumnElement]]] = {
    SortMode.color: _by_color,
    SortMode.number: _by_number,
    SortMode.name: _by_name,
    SortMode.price: _by_price,
}


def order_by_clauses(sort_by: SortMode, order: SortOrder) -> List[ColumnElement]:
    # id last so equal sort keys still page deterministically
    return SORT_STRATEGIES[sort_by](order) + [Product.id.asc()]


# ============================================================================
# Pagination helpers
# ============================================================================

def clamp_limit(limit: Optional[int]) -> int:
    if not limit:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, int(limit)))


def clamp_page(page: Optional[int]) -> int:
    if not page:
        return 1
    return min(max(1, int(page)), MAX_PAGE)


def page_offset(page: int, limit: int) -> int:
    return (clamp_page(page) - 1) * clamp_limit(limit)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / clamp_limit(limit))


@dataclass
class ListingQuery:
    collection_id: str
    sort_by: SortMode = SortMode.color
    order: SortOrder = SortOrder.asc
    only_in_stock: bool = False
    limit: int = DEFAULT_LIMIT
    offset: int = 0


@dataclass
class ListingResult:
    total: int
    products: List[Product] = field(default_factory=list)


class QueryEngine:
    """Builds one filtered, sorted, paginated listing against CatalogStore."""

    def __init__(self, store: CatalogStore):
        self.store = store

    def _collection_filter(self, collection_id: str) -> ColumnElement:
        if self.store.dialect_name == "postgresql":
            # TEXT[] @> ARRAY[...] hits the GIN index
            return Product.collections.contains([collection_id])
        members = func.json_each(Product.collections).table_valued("value")
        return select(members.c.value).where(members.c.value == collection_id).exists()

    def conditions(self, query: ListingQuery) -> List[ColumnElement]:
        conds = [self._collection_filter(query.collection_id)]
        if query.only_in_stock:
            conds.append(Product.available.is_(True))
        return conds

    async def list(self, query: ListingQuery) -> ListingResult:
        conds = self.conditions(query)
        count_stmt = select(func.count()).select_from(Product).where(*conds)
        data_stmt = (
            select(Product)
            .where(*conds)
            .order_by(*order_by_clauses(query.sort_by, query.order))
            .limit(clamp_limit(query.limit))
            .offset(max(0, query.offset))
        )
        async with self.store.db.session() as session:
            total = int((await session.execute(count_stmt)).scalar_one())
            rows = list((await session.execute(data_stmt)).scalars())
        return ListingResult(total=total, products=rows)

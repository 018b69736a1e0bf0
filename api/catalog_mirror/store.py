# catalog_mirror/store.py
"""
CatalogStore - persistence for canonical Product rows.

Every write replaces the full row. There is no version column: when two writers
race on the same id, the last transaction to commit wins.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite

from catalog_mirror.database import Database
from catalog_mirror.db_models import Product
from catalog_mirror.services.transform import ProductRecord

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class CatalogStore:
    """Insert-or-replace, delete and count over the products table."""

    def __init__(self, db: Database):
        self.db = db

    @property
    def dialect_name(self) -> str:
        return self.db.dialect_name

    async def setup(self) -> None:
        await self.db.create_schema()
        logger.info("Catalog store ready (%s)", self.dialect_name)

    async def upsert(self, record: ProductRecord) -> None:
        """Insert the row or overwrite every column of the existing one."""
        row = record.as_row()
        if not row.get("id"):
            raise ValueError("Product record without id")
        row["updated_at"] = datetime.now(timezone.utc)

        try:
            insert = _INSERTS[self.dialect_name]
        except KeyError:
            raise RuntimeError(f"Upsert not supported on dialect '{self.dialect_name}'")

        stmt = insert(Product).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.id],
            set_={col: stmt.excluded[col] for col in row if col != "id"},
        )
        async with self.db.session() as session:
            await session.execute(stmt)

    async def delete(self, product_id: str) -> bool:
        """Remove a row. Returns False when nothing was there."""
        async with self.db.session() as session:
            result = await session.execute(delete(Product).where(Product.id == product_id))
        return bool(result.rowcount)

    async def count(self) -> int:
        async with self.db.session() as session:
            result = await session.execute(select(func.count()).select_from(Product))
            return int(result.scalar_one())

    async def get(self, product_id: str) -> Optional[Product]:
        async with self.db.session() as session:
            return await session.get(Product, product_id)

# catalog_mirror/db_models.py
"""
SQLAlchemy ORM model for the mirrored catalog.

One table, one row per remote product.
"""
from __future__ import annotations
from datetime import datetime
from typing import Optional, List, Dict

from sqlalchemy import (
    String, Integer, Boolean, Text, DateTime, Numeric, Index, JSON, func
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB, ARRAY

from catalog_mirror.database import Base


# JSONB / TEXT[] on PostgreSQL, plain JSON on SQLite (local runs and tests)
MetafieldsType = JSONB().with_variant(JSON(), "sqlite")
CollectionsType = ARRAY(Text()).with_variant(JSON(), "sqlite")


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    handle: Mapped[Optional[str]] = mapped_column(Text)
    title: Mapped[Optional[str]] = mapped_column(Text)
    vendor: Mapped[Optional[str]] = mapped_column(Text)
    product_type: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[Optional[str]] = mapped_column(String(32))

    price_min: Mapped[Optional[float]] = mapped_column(Numeric(asdecimal=False))
    price_max: Mapped[Optional[float]] = mapped_column(Numeric(asdecimal=False))
    available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    inventory_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    image_src: Mapped[Optional[str]] = mapped_column(Text)

    color: Mapped[Optional[str]] = mapped_column(Text)
    number: Mapped[Optional[str]] = mapped_column(Text)
    number_num: Mapped[Optional[float]] = mapped_column(Numeric(asdecimal=False))
    craft: Mapped[Optional[str]] = mapped_column(Text)
    hand_dye: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    metafields: Mapped[Dict[str, Optional[str]]] = mapped_column(MetafieldsType, default=dict, nullable=False)
    collections: Mapped[List[str]] = mapped_column(CollectionsType, default=list, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_products_color", "color"),
        Index("idx_products_number_num", "number_num"),
        Index("idx_products_title", "title"),
        Index("idx_products_available", "available"),
        # set-containment lookups; GIN only exists on PostgreSQL
        Index(
            "idx_products_collections",
            "collections",
            postgresql_using="gin",
        ).ddl_if(dialect="postgresql"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.title!r}>"

# catalog_mirror/services/transform.py
"""
Remote product node -> canonical ProductRecord.

Pure functions only: no I/O, same input gives the same output.

Handles:
- price range over purchasable variants (non-positive / unparsable prices ignored)
- availability and summed inventory
- classification custom attributes (color, number, craft, hand_dye)
- flattening of all custom attributes into "namespace.key" -> value
- collection membership as bare ids
"""
from __future__ import annotations
import math
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional


class TransformError(ValueError):
    """Remote node cannot be mapped to a ProductRecord."""


@dataclass
class ProductRecord:
    id: str
    handle: Optional[str] = None
    title: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    available: bool = False
    inventory_qty: int = 0
    image_src: Optional[str] = None
    color: str = ""
    number: str = ""
    number_num: Optional[float] = None
    craft: str = ""
    hand_dye: bool = False
    metafields: Dict[str, Optional[str]] = field(default_factory=dict)
    collections: List[str] = field(default_factory=list)

    def as_row(self) -> Dict[str, Any]:
        """Column -> value mapping for the products table (copies nested values)."""
        return asdict(self)


_NOT_NUMERIC = re.compile(r"[^\d.]")
_DECIMAL = re.compile(r"^(?:\d+\.?\d*|\.\d+)$")


def _nodes(conn: Any) -> List[Any]:
    """Unwrap a GraphQL connection ({nodes: [...]}) into a list."""
    if not conn:
        return []
    if not isinstance(conn, Mapping):
        raise TransformError(f"Expected a connection object, got {type(conn).__name__}")
    nodes = conn.get("nodes") or []
    if not isinstance(nodes, list):
        raise TransformError("Connection 'nodes' is not a list")
    return nodes


def parse_price(value: Any) -> Optional[float]:
    """Positive finite price or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def parse_number(raw: Optional[str]) -> Optional[float]:
    """
    Numeric form of a free-form "number" attribute.

    Example:
        "#12.5 (large)"    -> 12.5
        "No. 4"            -> 0.4
        "n/a"              -> None
        "1.2.3"            -> None
    """
    stripped = _NOT_NUMERIC.sub("", raw or "")
    if not _DECIMAL.match(stripped):
        return None
    return float(stripped)


def normalize_label(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def find_metafield(metafields: List[Mapping[str, Any]], key: str) -> str:
    """Value of the first custom attribute with this exact key, "" when absent."""
    for mf in metafields:
        if mf.get("key") == key:
            value = mf.get("value")
            return "" if value is None else str(value)
    return ""


def flatten_metafields(metafields: List[Mapping[str, Any]]) -> Dict[str, Optional[str]]:
    out: Dict[str, Optional[str]] = {}
    for mf in metafields:
        out[f"{mf.get('namespace')}.{mf.get('key')}"] = mf.get("value")
    return out


def transform_product(node: Mapping[str, Any]) -> ProductRecord:
    """Map one remote product node to the canonical record."""
    if not isinstance(node, Mapping):
        raise TransformError(f"Product node must be an object, got {type(node).__name__}")
    product_id = node.get("id")
    if not product_id:
        raise TransformError("Product node without id")

    variants = _nodes(node.get("variants"))
    metafields = _nodes(node.get("metafields"))
    collections = _nodes(node.get("collections"))
    if not all(isinstance(x, Mapping) for x in variants + metafields + collections):
        raise TransformError(f"Malformed sub-selection on {product_id}")

    prices = [p for p in (parse_price(v.get("price")) for v in variants) if p is not None]
    try:
        inventory_qty = sum(int(v.get("inventoryQuantity") or 0) for v in variants)
    except (TypeError, ValueError) as e:
        raise TransformError(f"Bad inventoryQuantity on {product_id}: {e}") from e
    available = any(bool(v.get("availableForSale")) for v in variants)

    number_raw = find_metafield(metafields, "number")

    collection_ids: List[str] = []
    for c in collections:
        cid = c.get("id")
        if cid and cid not in collection_ids:
            collection_ids.append(cid)

    image = node.get("featuredImage") or {}

    return ProductRecord(
        id=product_id,
        handle=node.get("handle"),
        title=node.get("title"),
        vendor=node.get("vendor"),
        product_type=node.get("productType"),
        status=node.get("status"),
        price_min=min(prices) if prices else None,
        price_max=max(prices) if prices else None,
        available=available,
        inventory_qty=inventory_qty,
        image_src=image.get("url") or None,
        color=normalize_label(find_metafield(metafields, "color")),
        number=normalize_label(number_raw),
        number_num=parse_number(number_raw),
        craft=normalize_label(find_metafield(metafields, "craft")),
        hand_dye=find_metafield(metafields, "hand_dye") == "true",
        metafields=flatten_metafields(metafields),
        collections=collection_ids,
    )

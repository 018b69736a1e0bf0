# catalog_mirror/services/__init__.py
"""
Sync, query and background-work services for Catalog Mirror.
"""
from catalog_mirror.services.transform import ProductRecord, TransformError, transform_product

__all__ = [
    "ProductRecord",
    "TransformError",
    "transform_product",
]

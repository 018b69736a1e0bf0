"""Catalog Mirror - local, queryable copy of a Shopify product catalog."""

__version__ = "1.0.0"

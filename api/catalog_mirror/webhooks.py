# catalog_mirror/webhooks.py
"""
Shopify webhook signature check and payload parsing.
"""
from __future__ import annotations
import base64
import hashlib
import hmac
import json
from typing import Optional

HMAC_HEADER = "X-Shopify-Hmac-Sha256"


def sign_payload(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook(raw_body: bytes, hmac_header: Optional[str], secret: Optional[str]) -> bool:
    """Base64 HMAC-SHA256 of the raw body. No secret configured -> skipped (dev)."""
    if not secret:
        return True
    if not hmac_header:
        return False
    expected = sign_payload(raw_body, secret).encode("ascii")
    return hmac.compare_digest(expected, hmac_header.strip().encode("utf-8"))


def extract_product_id(raw_body: bytes) -> Optional[str]:
    """admin_graphql_api_id from a products/* webhook body."""
    body = json.loads(raw_body.decode("utf-8"))
    if not isinstance(body, dict):
        raise ValueError("Webhook body is not a JSON object")
    gid = body.get("admin_graphql_api_id")
    return str(gid) if gid else None

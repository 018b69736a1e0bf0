import json

import pytest

from catalog_mirror.webhooks import extract_product_id, sign_payload, verify_webhook

BODY = json.dumps({"id": 1, "admin_graphql_api_id": "gid://shopify/Product/1"}).encode()


def test_valid_signature_passes():
    assert verify_webhook(BODY, sign_payload(BODY, "s3cret"), "s3cret") is True


def test_wrong_or_missing_signature_fails():
    assert verify_webhook(BODY, sign_payload(BODY, "other"), "s3cret") is False
    assert verify_webhook(BODY, None, "s3cret") is False
    assert verify_webhook(BODY + b" ", sign_payload(BODY, "s3cret"), "s3cret") is False


def test_no_secret_skips_verification():
    assert verify_webhook(BODY, None, None) is True
    assert verify_webhook(BODY, "garbage", "") is True


def test_extract_product_id():
    assert extract_product_id(BODY) == "gid://shopify/Product/1"
    assert extract_product_id(b'{"id": 1}') is None
    with pytest.raises(ValueError):
        extract_product_id(b"not json")
    with pytest.raises(ValueError):
        extract_product_id(b"[1, 2]")

"""
Tests for OAuth 1.0a request signing.

Run with:
    pytest test_oauth_signature.py
"""

import base64
import hashlib
import hmac
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from netsuite_sync.oauth import (
    build_auth_header,
    build_signature_base_string,
    generate_oauth_signature,
    normalize_url,
    percent_encode,
)

# Published HMAC-SHA1 example request (Twitter API documentation)
EXAMPLE_URL = "https://api.twitter.com/1.1/statuses/update.json?include_entities=true"
EXAMPLE_PARAMS = {
    "status": "Hello Ladies + Gentlemen, a signed OAuth request!",
    "oauth_consumer_key": "xvz1evFS4wEEPTGEFPHBog",
    "oauth_nonce": "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg",
    "oauth_signature_method": "HMAC-SHA1",
    "oauth_timestamp": "1318622958",
    "oauth_token": "370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
    "oauth_version": "1.0",
}
EXAMPLE_CONSUMER_SECRET = "kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw"
EXAMPLE_TOKEN_SECRET = "LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE"


def test_percent_encode_uses_rfc3986():
    assert percent_encode("Hello Ladies + Gentlemen, a signed OAuth request!") == (
        "Hello%20Ladies%20%2B%20Gentlemen%2C%20a%20signed%20OAuth%20request%21"
    )
    assert percent_encode("a-b._~c") == "a-b._~c"
    assert percent_encode(1000) == "1000"


def test_normalize_url_drops_query_and_default_port():
    base_url, query = normalize_url("HTTPS://Example.COM:443/services/rest?b=2&a=1")
    assert base_url == "https://example.com/services/rest"
    assert query == [("b", "2"), ("a", "1")]

    base_url, _ = normalize_url("http://example.com:8080/x")
    assert base_url == "http://example.com:8080/x"


def test_signature_base_string_matches_published_example():
    base_string = build_signature_base_string("post", EXAMPLE_URL, EXAMPLE_PARAMS)
    assert base_string.startswith(
        "POST&https%3A%2F%2Fapi.twitter.com%2F1.1%2Fstatuses%2Fupdate.json&include_entities%3Dtrue%26oauth_consumer_key"
    )
    assert "status%3DHello%2520Ladies%2520%252B%2520Gentlemen" in base_string


def test_hmac_sha1_signature_matches_published_example():
    signature = generate_oauth_signature(
        "POST",
        EXAMPLE_URL,
        EXAMPLE_PARAMS,
        EXAMPLE_CONSUMER_SECRET,
        EXAMPLE_TOKEN_SECRET,
        signature_method="HMAC-SHA1",
    )
    assert signature == "hCtSmYh+iHYCEqBWrE7C7hYmtUk="


def test_hmac_sha256_signature_is_keyed_hash_of_base_string():
    params = {"oauth_consumer_key": "ck", "oauth_token": "tk", "oauth_nonce": "n", "oauth_timestamp": "1"}
    url = "https://1234567.suitetalk.api.netsuite.com/services/rest/record/v1/vendor?limit=1000"

    signature = generate_oauth_signature("GET", url, params, "c&secret", "t secret")

    expected = base64.b64encode(hmac.new(
        b"c%26secret&t%20secret",
        build_signature_base_string("GET", url, params).encode(),
        hashlib.sha256,
    ).digest()).decode()
    assert signature == expected


def test_realm_and_signature_are_not_signed():
    params = {"oauth_consumer_key": "ck"}
    url = "https://example.com/x"
    with_extra = dict(params, realm="ACCOUNT", oauth_signature="abc")
    assert build_signature_base_string("GET", url, params) == build_signature_base_string("GET", url, with_extra)


def test_empty_secrets_are_rejected():
    with pytest.raises(ValueError):
        generate_oauth_signature("GET", "https://example.com", {}, "", "token-secret")
    with pytest.raises(ValueError):
        generate_oauth_signature("GET", "https://example.com", {}, "consumer-secret", "")


def test_unsupported_signature_method_is_rejected():
    with pytest.raises(ValueError):
        generate_oauth_signature("GET", "https://example.com", {}, "a", "b", signature_method="PLAINTEXT")


def test_auth_header_format():
    header = build_auth_header(
        "GET",
        "https://1234567.suitetalk.api.netsuite.com/services/rest/record/v1/vendor?limit=10",
        consumer_key="ck",
        consumer_secret="cs",
        token_id="tid",
        token_secret="ts",
        realm="1234567",
        timestamp="1700000000",
        nonce="abc123",
    )
    assert header.startswith('OAuth realm="1234567", ')
    assert 'oauth_consumer_key="ck"' in header
    assert 'oauth_token="tid"' in header
    assert 'oauth_signature_method="HMAC-SHA256"' in header
    assert 'oauth_timestamp="1700000000"' in header
    assert 'oauth_nonce="abc123"' in header
    assert 'oauth_version="1.0"' in header
    assert 'oauth_signature="' in header


def test_auth_header_is_unique_per_call():
    kwargs = dict(
        consumer_key="ck",
        consumer_secret="cs",
        token_id="tid",
        token_secret="ts",
        realm="R",
    )
    first = build_auth_header("GET", "https://example.com/vendor", **kwargs)
    second = build_auth_header("GET", "https://example.com/vendor", **kwargs)
    assert first != second

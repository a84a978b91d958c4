"""OAuth 1.0a request signing for NetSuite token-based authentication."""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

SIGNATURE_METHODS = {
    "HMAC-SHA256": hashlib.sha256,
    "HMAC-SHA1": hashlib.sha1,
}


def percent_encode(value) -> str:
    """RFC 3986 percent-encoding (only unreserved characters stay literal)."""
    return quote(str(value), safe="~")


def normalize_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Split a request URL into the base string URI and its query parameters.

    Scheme and host are lower-cased, default ports are dropped and the query
    string is removed (query parameters are signed as normal parameters).
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = parts.port
    if port and not ((scheme == "http" and port == 80) or (scheme == "https" and port == 443)):
        host = f"{host}:{port}"
    base_url = urlunsplit((scheme, host, parts.path or "/", "", ""))
    query = parse_qsl(parts.query, keep_blank_values=True)
    return base_url, query


def build_signature_base_string(method: str, url: str, params: Dict[str, str]) -> str:
    """
    Build the OAuth signature base string:
    METHOD & encoded(base URL) & encoded(sorted, encoded parameter string).

    `realm` and `oauth_signature` are never part of the signed parameters.
    """
    base_url, query = normalize_url(url)
    pairs = [
        (percent_encode(k), percent_encode(v))
        for k, v in list(params.items()) + query
        if k not in ("realm", "oauth_signature")
    ]
    pairs.sort()
    param_string = "&".join(f"{k}={v}" for k, v in pairs)
    return "&".join([
        method.upper(),
        percent_encode(base_url),
        percent_encode(param_string),
    ])


def generate_oauth_signature(
    method: str,
    url: str,
    params: Dict[str, str],
    consumer_secret: str,
    token_secret: str,
    signature_method: str = "HMAC-SHA256",
) -> str:
    """
    Compute the base64 HMAC of the signature base string, keyed by
    encoded(consumer_secret) & encoded(token_secret).

    Raises:
        ValueError: if a secret is empty or the signature method is unsupported
    """
    if not consumer_secret or not token_secret:
        raise ValueError("consumer_secret and token_secret are required for signing")
    digestmod = SIGNATURE_METHODS.get(signature_method.upper())
    if digestmod is None:
        raise ValueError(f"Unsupported signature method: {signature_method}")

    base_string = build_signature_base_string(method, url, params)
    signing_key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    digest = hmac.new(
        signing_key.encode("utf-8"),
        base_string.encode("utf-8"),
        digestmod,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_nonce() -> str:
    return secrets.token_hex(16)


def build_auth_header(
    method: str,
    url: str,
    consumer_key: str,
    consumer_secret: str,
    token_id: str,
    token_secret: str,
    realm: str,
    signature_method: str = "HMAC-SHA256",
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None,
) -> str:
    """
    Build a one-time `Authorization: OAuth ...` header value for one request.

    A fresh nonce and the current timestamp are used unless given explicitly,
    so two calls never produce the same header.
    """
    oauth_params = {
        "oauth_consumer_key": consumer_key,
        "oauth_token": token_id,
        "oauth_signature_method": signature_method.upper(),
        "oauth_timestamp": timestamp or str(int(time.time())),
        "oauth_nonce": nonce or generate_nonce(),
        "oauth_version": "1.0",
    }
    oauth_params["oauth_signature"] = generate_oauth_signature(
        method,
        url,
        oauth_params,
        consumer_secret,
        token_secret,
        signature_method,
    )

    header_parts = ", ".join(
        f'{key}="{percent_encode(value)}"' for key, value in oauth_params.items()
    )
    return f'OAuth realm="{realm}", {header_parts}'

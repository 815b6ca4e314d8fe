"""
OAuth1 request signing (RFC 5849, RSA-SHA1).

Bitbucket Server application links only accept RSA-SHA1, so the consumer
signs every request with its private key and token secrets never enter
the signature.
"""

from __future__ import annotations

import base64
import logging
import secrets
import time
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from config.settings import config
from connectors.models import TokenPair

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "RSA-SHA1"
OAUTH_VERSION = "1.0"

_DEFAULT_PORTS = {"http": "80", "https": "443"}


def percent_encode(value: str) -> str:
    """RFC 3986 encoding: everything but ALPHA / DIGIT / - . _ ~ is escaped."""
    return quote(str(value), safe="")


def _normalize_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Split ``url`` into the base string URI and its query parameters."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    host, _, port = netloc.rpartition(":")
    if host and _DEFAULT_PORTS.get(scheme) == port:
        netloc = host
    base = urlunsplit((scheme, netloc, parts.path or "/", "", ""))
    return base, parse_qsl(parts.query, keep_blank_values=True)


def signature_base_string(
    method: str,
    url: str,
    params: Iterable[Tuple[str, str]],
) -> str:
    """
    Build the signature base string.

    ``params`` are the protocol + request parameters (without
    ``oauth_signature``); query parameters embedded in ``url`` are added.
    """
    base_url, query = _normalize_url(url)
    encoded = sorted(
        (percent_encode(k), percent_encode(v)) for k, v in [*params, *query]
    )
    normalized = "&".join(f"{k}={v}" for k, v in encoded)
    return "&".join(
        [method.upper(), percent_encode(base_url), percent_encode(normalized)]
    )


def load_private_key(pem: bytes) -> RSAPrivateKey:
    """Parse a PEM RSA key; raises ``ValueError`` on anything else."""
    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("OAuth1 RSA-SHA1 needs an RSA private key")
    return key


def sign_rsa_sha1(base_string: str, signing_key: RSAPrivateKey) -> str:
    """Sign ``base_string`` with ``signing_key``; returns base64."""
    signature = signing_key.sign(base_string.encode(), padding.PKCS1v15(), hashes.SHA1())
    return base64.b64encode(signature).decode()


def authorization_header(
    method: str,
    url: str,
    *,
    consumer_key: str,
    signing_key: RSAPrivateKey,
    token: str = "",
    oauth_params: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    nonce: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> str:
    """
    Return the ``Authorization: OAuth ...`` header value for one request.

    ``oauth_params`` carries extra protocol parameters such as
    ``oauth_callback`` or ``oauth_verifier``; ``params`` are form/query
    parameters that take part in the signature but not in the header.
    """
    protocol = {
        "oauth_consumer_key": consumer_key,
        "oauth_nonce": nonce or secrets.token_hex(16),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": str(timestamp if timestamp is not None else int(time.time())),
        "oauth_version": OAUTH_VERSION,
    }
    if token:
        protocol["oauth_token"] = token
    protocol.update(oauth_params or {})

    base = signature_base_string(
        method, url, [*protocol.items(), *(params or {}).items()]
    )
    protocol["oauth_signature"] = sign_rsa_sha1(base, signing_key)

    return "OAuth " + ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(protocol.items())
    )


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=config.http_timeout_seconds)


async def signed_request(
    method: str,
    url: str,
    *,
    consumer_key: str,
    signing_key: RSAPrivateKey,
    token: str = "",
    oauth_params: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """Send one signed request and raise on a non-2xx answer."""
    target = str(httpx.URL(url, params=params)) if params else url
    request_headers = {
        "Authorization": authorization_header(
            method,
            target,
            consumer_key=consumer_key,
            signing_key=signing_key,
            token=token,
            oauth_params=oauth_params,
        ),
        **(headers or {}),
    }
    logger.debug("OAuth1 %s %s", method.upper(), target)
    async with _http_client() as client:
        resp = await client.request(method.upper(), target, headers=request_headers)
        resp.raise_for_status()
    return resp


def parse_token_response(body: str) -> TokenPair:
    """Parse a form-encoded ``oauth_token=...&oauth_token_secret=...`` answer."""
    values = dict(parse_qsl(body, keep_blank_values=True))
    if "oauth_problem" in values:
        raise ValueError(f"OAuth error: {values['oauth_problem']}")
    if not values.get("oauth_token"):
        raise ValueError("OAuth response is missing oauth_token")
    return TokenPair(
        token=values["oauth_token"],
        secret=values.get("oauth_token_secret", ""),
    )

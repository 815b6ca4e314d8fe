"""
Shared fixtures: an RSA consumer key pair and a fake HTTP transport.
"""

import base64
from contextlib import contextmanager
from typing import Callable, Dict
from unittest.mock import patch
from urllib.parse import unquote

import httpx
import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from connectors.oauth1 import signature_base_string


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_pem(rsa_key) -> bytes:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def parse_oauth_header(value: str) -> Dict[str, str]:
    assert value.startswith("OAuth ")
    params = {}
    for item in value[len("OAuth "):].split(", "):
        key, _, quoted = item.partition("=")
        params[unquote(key)] = unquote(quoted.strip('"'))
    return params


def verify_signature(public_key, request: httpx.Request) -> Dict[str, str]:
    """Check the RSA-SHA1 signature of ``request``; return its OAuth params."""
    params = parse_oauth_header(request.headers["Authorization"])
    signature = base64.b64decode(params.pop("oauth_signature"))
    base = signature_base_string(request.method, str(request.url), params.items())
    public_key.verify(signature, base.encode(), padding.PKCS1v15(), hashes.SHA1())
    return params


@contextmanager
def fake_http(handler: Callable[[httpx.Request], httpx.Response]):
    """Route every ``connectors.oauth1`` request through ``handler``."""
    transport = httpx.MockTransport(handler)
    with patch(
        "connectors.oauth1._http_client",
        lambda: httpx.AsyncClient(transport=transport),
    ):
        yield

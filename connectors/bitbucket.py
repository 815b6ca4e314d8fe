"""
BitbucketConsumer — OAuth1 (RSA-SHA1) for self-hosted Bitbucket Server.

One consumer is built per configured server with ``new()``; the OAuth
endpoints are always the server URL plus fixed suffixes and cannot be
set by callers.  Binding it to a user's access token yields a
``BitbucketClient``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple
from urllib.parse import quote

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, computed_field

from config.settings import config
from connectors import oauth1
from connectors.base import VCSAuthorizedClient, VCSServer
from connectors.errors import MalformedIdentifier
from connectors.models import Repository, RepositoryAddress, TokenPair

logger = logging.getLogger(__name__)

# Bitbucket Server OAuth1 endpoints, relative to the server URL
REQUEST_TOKEN_PATH = "/plugins/servlet/oauth/request-token"
AUTHORIZE_PATH = "/plugins/servlet/oauth/authorize"
ACCESS_TOKEN_PATH = "/plugins/servlet/oauth/access-token"
REST_API_PATH = "/rest/api/1.0"

# Callback value when the user cannot be redirected back (CLI flows)
OAUTH1_OOB = "oob"

_REQUEST_TOKEN_KEY = "bitbucket:request_token:{token}"
_PENDING = "pending"


def get_repo(fullname: str) -> RepositoryAddress:
    """
    Split ``<project>/<slug>``.

    Only the segment count is checked: ``"/slug"`` and ``"project/"`` are
    accepted with an empty segment.
    """
    parts = fullname.split("/")
    if len(parts) != 2:
        raise MalformedIdentifier(fullname)
    return RepositoryAddress(project=parts[0], slug=parts[1])


class BitbucketConsumer(BaseModel, VCSServer):
    """A configured Bitbucket Server instance."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    consumer_key: str
    private_key: bytes = Field(repr=False, exclude=True)
    url: str
    callback_url: str = OAUTH1_OOB
    api_url: str = ""
    ui_url: str = ""
    cache: Any = Field(default=None, repr=False, exclude=True)
    disable_status: bool = False

    # (pem, parsed key) — filled on first signature
    _signing_key: Optional[Tuple[bytes, RSAPrivateKey]] = PrivateAttr(default=None)

    @computed_field
    @property
    def request_token_url(self) -> str:
        return self.url + REQUEST_TOKEN_PATH

    @computed_field
    @property
    def authorization_url(self) -> str:
        return self.url + AUTHORIZE_PATH

    @computed_field
    @property
    def access_token_url(self) -> str:
        return self.url + ACCESS_TOKEN_PATH

    @property
    def provider_name(self) -> str:
        return "bitbucket"

    @property
    def display_name(self) -> str:
        return "Bitbucket Server"

    @property
    def icon(self) -> str:
        return "🪣"

    @property
    def status_enabled(self) -> bool:
        return not self.disable_status

    def is_configured(self) -> bool:
        return bool(self.consumer_key and self.private_key and self.url)

    def parse_fullname(self, fullname: str) -> RepositoryAddress:
        return get_repo(fullname)

    def signing_key(self) -> RSAPrivateKey:
        """
        The parsed private key, owned by this consumer.

        Parsed on first use, so a bad key surfaces on the first request
        rather than at construction.
        """
        cached = self._signing_key
        if cached is None or cached[0] is not self.private_key:
            cached = (self.private_key, oauth1.load_private_key(self.private_key))
            self._signing_key = cached
        return cached[1]

    # ── OAuth flow ──────────────────────────────────────────────────────

    async def authorize_redirect(self) -> Tuple[str, str]:
        """Get a request token and build the URL the user must visit."""
        resp = await oauth1.signed_request(
            "POST",
            self.request_token_url,
            consumer_key=self.consumer_key,
            signing_key=self.signing_key(),
            oauth_params={"oauth_callback": self.callback_url},
        )
        request_token = oauth1.parse_token_response(resp.text)

        # RSA-SHA1 never signs with the token secret; only remember the token
        if self.cache is not None:
            self.cache.set(
                _REQUEST_TOKEN_KEY.format(token=request_token.token),
                _PENDING,
                ttl=config.request_token_ttl_seconds,
            )

        logger.info("Bitbucket request token issued by %s", self.url)
        url = f"{self.authorization_url}?oauth_token={oauth1.percent_encode(request_token.token)}"
        return request_token.token, url

    async def authorize_token(self, token: str, verifier: str) -> TokenPair:
        """Exchange an authorized request token + verifier for an access token."""
        cache_key = _REQUEST_TOKEN_KEY.format(token=token)
        if self.cache is not None:
            if self.cache.get(cache_key) is None:
                raise ValueError(f"Unknown or expired Bitbucket request token: {token}")

        resp = await oauth1.signed_request(
            "POST",
            self.access_token_url,
            consumer_key=self.consumer_key,
            signing_key=self.signing_key(),
            token=token,
            oauth_params={"oauth_verifier": verifier},
        )
        access = oauth1.parse_token_response(resp.text)

        if self.cache is not None:
            self.cache.delete(cache_key)

        logger.info("Bitbucket access token granted by %s", self.url)
        return access

    def get_authorized_client(
        self, access_token: str, access_token_secret: str
    ) -> "BitbucketClient":
        return BitbucketClient(self, access_token, access_token_secret)


def new(
    consumer_key: str,
    private_key: bytes,
    url: str,
    api_url: str,
    ui_url: str,
    cache: Any,
    disable_status: bool,
    callback_url: str = "",
) -> BitbucketConsumer:
    """
    Build a ``BitbucketConsumer`` for the server at ``url``.

    Nothing is validated here: a bad URL or key surfaces on the first
    request made with the consumer.
    """
    return BitbucketConsumer(
        consumer_key=consumer_key,
        private_key=private_key,
        url=url,
        callback_url=callback_url or OAUTH1_OOB,
        api_url=api_url,
        ui_url=ui_url,
        cache=cache,
        disable_status=disable_status,
    )


class BitbucketClient(VCSAuthorizedClient):
    """A ``BitbucketConsumer`` acting on behalf of one user."""

    def __init__(
        self,
        consumer: BitbucketConsumer,
        access_token: str,
        access_token_secret: str,
    ) -> None:
        self.consumer = consumer
        self.access_token = access_token
        self.access_token_secret = access_token_secret

    def __repr__(self) -> str:
        return f"BitbucketClient(url={self.consumer.url!r}, access_token='***')"

    async def _get_json(self, path: str) -> Any:
        resp = await oauth1.signed_request(
            "GET",
            f"{self.consumer.url}{REST_API_PATH}{path}",
            consumer_key=self.consumer.consumer_key,
            signing_key=self.consumer.signing_key(),
            token=self.access_token,
            headers={"Accept": "application/json"},
        )
        return resp.json()

    async def repo_by_fullname(self, fullname: str) -> Repository:
        project, slug = get_repo(fullname)
        data = await self._get_json(
            f"/projects/{quote(project, safe='')}/repos/{quote(slug, safe='')}"
        )
        return Repository.from_bitbucket(data)

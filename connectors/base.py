"""
VCSServer — abstract interface for all VCS connectors.

Every provider (Bitbucket Server, GitHub, GitLab, …) ships one concrete
server type built once per configured instance, and one authorized client
type produced by binding that server to a user's access token.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from connectors.models import Repository, RepositoryAddress, TokenPair


class VCSAuthorizedClient(ABC):
    """A connector bound to one user's access token."""

    @abstractmethod
    async def repo_by_fullname(self, fullname: str) -> Repository:
        """Fetch repository metadata for a provider fullname."""
        ...


class VCSServer(ABC):
    """Abstract base for all OAuth VCS connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug: 'bitbucket', 'github', 'gitlab'."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable: 'Bitbucket Server', 'GitHub'."""
        ...

    @property
    def icon(self) -> str:
        """Optional emoji / icon for UI."""
        return "🔗"

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    async def authorize_redirect(self) -> Tuple[str, str]:
        """
        Start the flow.

        Returns
        -------
        (request_token, url) — the URL to send the user to.
        """
        ...

    @abstractmethod
    async def authorize_token(self, token: str, verifier: str) -> TokenPair:
        """
        Exchange an authorized request token for an access token.

        Parameters
        ----------
        token : str
            Request token returned by ``authorize_redirect``.
        verifier : str
            Verifier shown to / redirected back from the user.
        """
        ...

    @abstractmethod
    def get_authorized_client(
        self, access_token: str, access_token_secret: str
    ) -> VCSAuthorizedClient:
        ...

    # ── Addressing ──────────────────────────────────────────────────────

    @abstractmethod
    def parse_fullname(self, fullname: str) -> RepositoryAddress:
        """Split a provider fullname; raises ``MalformedIdentifier``."""
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """
        Return True if this connector has all required config
        (consumer key, private key, server URL).
        """
        return True

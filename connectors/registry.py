"""
ConnectorRegistry — builds and provides access to all configured VCS servers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config.settings import Settings, config
from connectors import bitbucket
from connectors.base import VCSServer
from connectors.cache import MemoryCache

logger = logging.getLogger(__name__)


def _build_bitbucket(settings: Settings, cache: Any) -> VCSServer:
    return bitbucket.new(
        consumer_key=settings.bitbucket_consumer_key,
        private_key=settings.load_bitbucket_private_key(),
        url=settings.bitbucket_url,
        api_url=settings.api_url,
        ui_url=settings.ui_url,
        cache=cache,
        disable_status=settings.bitbucket_disable_status,
        callback_url=settings.bitbucket_callback_url,
    )


# ── All known servers — add new providers here ───────────────────────────

_BUILDERS = {
    "bitbucket": _build_bitbucket,
    # "github": _build_github,   # future
    # "gitlab": _build_gitlab,   # future
}


class ConnectorRegistry:
    """Singleton registry for all VCS servers."""

    _instance: Optional["ConnectorRegistry"] = None

    def __new__(cls) -> "ConnectorRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._servers = {}
            cls._instance._known = {}
            cls._instance._discovered = False
        return cls._instance

    def discover(
        self,
        settings: Optional[Settings] = None,
        cache: Any = None,
    ) -> None:
        """
        Build every configured server.

        All servers share ``cache``; a ``MemoryCache`` is created when none
        is given.
        """
        if self._discovered:
            return
        settings = settings or config
        cache = cache if cache is not None else MemoryCache()
        for name, build in _BUILDERS.items():
            server = build(settings, cache)
            self._known[name] = server
            if server.is_configured():
                self._servers[server.provider_name] = server
                logger.info(
                    "Connector registered: %s (%s)",
                    server.display_name,
                    server.provider_name,
                )
            else:
                logger.warning(
                    "Connector %s skipped — not configured (missing url/consumer key/private key)",
                    name,
                )
        self._discovered = True

    def get(self, provider: str) -> Optional[VCSServer]:
        """Get a configured server by provider name."""
        return self._servers.get(provider)

    def list_providers(self) -> List[Dict[str, Any]]:
        """Return info about all known servers."""
        return [
            {
                "provider": s.provider_name,
                "display_name": s.display_name,
                "icon": s.icon,
                "configured": s.is_configured(),
            }
            for s in self._known.values()
        ]

    def list_configured(self) -> List[str]:
        """Return names of configured servers."""
        return list(self._servers.keys())

    # ── reset (for tests) ──────────────────────────────────────────────

    @classmethod
    def reset(cls) -> None:
        """Destroy singleton — only useful in test teardown."""
        cls._instance = None

"""
connectors — OAuth integration module for self-hosted VCS servers.

Provides a connector framework that handles:
  • Building one immutable server descriptor per configured instance
  • OAuth1 (RSA-SHA1) request-token / access-token handshake
  • Tracking pending request tokens in the shared cache
  • Parsing provider repository fullnames (``<project>/<slug>``)

Each provider (Bitbucket Server, …) is a subclass of VCSServer.
"""

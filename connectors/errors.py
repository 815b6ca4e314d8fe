"""
Connector errors.
"""

from __future__ import annotations


class MalformedIdentifier(ValueError):
    """A repository fullname does not have the ``<project>/<slug>`` shape."""

    def __init__(self, fullname: str) -> None:
        self.fullname = fullname
        super().__init__(f"fullname {fullname!r} must be <project>/<slug>")

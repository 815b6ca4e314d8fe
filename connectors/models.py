"""
Data models shared by the VCS connectors.
"""

from __future__ import annotations

from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict


class RepositoryAddress(NamedTuple):
    """A parsed ``<project>/<slug>`` fullname."""

    project: str
    slug: str

    @property
    def fullname(self) -> str:
        return f"{self.project}/{self.slug}"


class TokenPair(BaseModel):
    """An OAuth1 token and its secret (request or access leg)."""

    model_config = ConfigDict(frozen=True)

    token: str
    secret: str

    def __repr__(self) -> str:
        return f"TokenPair(token={self.token!r}, secret='***')"


class Repository(BaseModel):
    id: int
    name: str
    slug: str
    project_key: str
    fullname: str
    http_clone_url: Optional[str] = None
    ssh_clone_url: Optional[str] = None
    link: Optional[str] = None

    @classmethod
    def from_bitbucket(cls, data: Dict[str, Any]) -> "Repository":
        """Build from a Bitbucket Server ``/rest/api/1.0`` repository payload."""
        links = data.get("links") or {}
        clone = {c.get("name"): c.get("href") for c in links.get("clone", [])}
        self_links = links.get("self") or [{}]
        project_key = (data.get("project") or {}).get("key", "")
        return cls(
            id=data["id"],
            name=data.get("name", data["slug"]),
            slug=data["slug"],
            project_key=project_key,
            fullname=f"{project_key}/{data['slug']}",
            http_clone_url=clone.get("http"),
            ssh_clone_url=clone.get("ssh"),
            link=self_links[0].get("href"),
        )

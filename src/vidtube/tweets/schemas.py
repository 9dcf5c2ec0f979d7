"""Request schemas for tweets."""

from __future__ import annotations

from vidtube.responses import CamelModel


class TweetContent(CamelModel):
    """Create/update body. Blank content is rejected by the service."""

    content: str | None = None

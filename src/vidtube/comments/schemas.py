"""Request schemas for comments."""

from __future__ import annotations

from vidtube.responses import CamelModel


class CommentContent(CamelModel):
    content: str | None = None

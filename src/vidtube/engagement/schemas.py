"""Like toggle response."""

from __future__ import annotations

from vidtube.responses import CamelModel


class LikeStatus(CamelModel):
    is_liked: bool

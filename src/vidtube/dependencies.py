"""Shared FastAPI dependencies."""

from fastapi import Query

from vidtube.feed.pagination import PageRequest, page_request


def get_page_request(
    page: int | None = Query(None),
    limit: int | None = Query(None),
    page_size: int | None = Query(None, alias="pageSize"),
) -> PageRequest:
    """Pagination query parameters. `limit` and `pageSize` are synonyms."""
    return page_request(page, page_size if page_size is not None else limit)

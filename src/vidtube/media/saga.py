"""
Compensation for media uploads that accompany a database write.

Usage::

    async with MediaSaga(store) as saga:
        media = await saga.upload(data, filename="a.png", resource_type="image")
        saga.retire(user.avatar_public_id)
        user.avatar_url = media.url
        await db.commit()

If the block raises, every object uploaded inside it is deleted again. If it
completes, objects passed to `retire()` are deleted. Cleanup failures are
logged and never replace the original outcome.
"""

from __future__ import annotations

from types import TracebackType

import structlog
from fastapi import UploadFile

from vidtube.config import get_settings
from vidtube.errors import AppError, bad_request
from vidtube.media.storage import BaseObjectStore, StoredMedia

logger = structlog.get_logger()


async def read_upload(upload: UploadFile | None, label: str, *, required: bool = True) -> bytes | None:
    """Read an uploaded file into memory, enforcing presence and size."""
    if upload is None:
        if required:
            msg = f"{label} is required"
            raise bad_request(msg)
        return None
    data = await upload.read()
    if not data:
        msg = f"{label} is empty"
        raise bad_request(msg)
    if len(data) > get_settings().max_upload_bytes:
        msg = f"{label} exceeds the maximum upload size"
        raise bad_request(msg)
    return data


class MediaSaga:
    """Tracks uploads made during one write and undoes them on failure."""

    def __init__(self, store: BaseObjectStore) -> None:
        self._store = store
        self._uploaded: list[str] = []
        self._retired: list[str] = []

    async def upload(self, data: bytes, *, filename: str, resource_type: str = "auto") -> StoredMedia:
        media = await self._store.put(data, filename=filename, resource_type=resource_type)
        self._uploaded.append(media.public_id)
        return media

    def retire(self, public_id: str | None) -> None:
        """Schedule an existing object for deletion once the write succeeds."""
        if public_id:
            self._retired.append(public_id)

    async def __aenter__(self) -> MediaSaga:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self._delete_all(self._retired, reason="replaced")
        else:
            await self._delete_all(self._uploaded, reason="rollback")

    async def _delete_all(self, public_ids: list[str], reason: str) -> None:
        for public_id in public_ids:
            try:
                await self._store.delete(public_id)
            except AppError as e:
                logger.error("media_cleanup_failed", public_id=public_id, reason=reason, error=e.message)
            else:
                logger.info("media_cleaned_up", public_id=public_id, reason=reason)

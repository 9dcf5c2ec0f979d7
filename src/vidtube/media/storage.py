"""
Object store with provider abstraction.

Supports an in-process store (development and tests) and Cloudinary's signed
upload API. Provider is selected via configuration. Every provider failure is
raised as an UPSTREAM AppError; nothing is swallowed here.
"""

from __future__ import annotations

import hashlib
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from vidtube.config import get_settings
from vidtube.errors import upstream

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoredMedia:
    """Result of a successful upload."""

    url: str
    public_id: str
    duration: float | None = None


class BaseObjectStore(ABC):
    """Abstract base class for media storage providers."""

    @abstractmethod
    async def put(self, data: bytes, *, filename: str, resource_type: str = "auto") -> StoredMedia:
        """Store bytes and return the public URL plus deletion handle."""
        ...

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        """Delete a previously stored object."""
        ...


class MemoryObjectStore(BaseObjectStore):
    """Keeps objects in a dict. Not shared between processes."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    async def put(self, data: bytes, *, filename: str, resource_type: str = "auto") -> StoredMedia:
        public_id = f"{resource_type}:{uuid.uuid4().hex}"
        self.objects[public_id] = data
        logger.debug("media_stored", public_id=public_id, filename=filename, size=len(data), provider="memory")
        return StoredMedia(url=f"memory://{public_id}/{filename}", public_id=public_id, duration=None)

    async def delete(self, public_id: str) -> None:
        self.objects.pop(public_id, None)
        logger.debug("media_deleted", public_id=public_id, provider="memory")


class CloudinaryObjectStore(BaseObjectStore):
    """Upload and destroy through the Cloudinary REST API."""

    API_BASE = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self._transport = transport

    def _sign(self, params: dict[str, Any]) -> str:
        """SHA-1 over the sorted parameters followed by the API secret."""
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
        return hashlib.sha1((to_sign + self.api_secret).encode()).hexdigest()  # noqa: S324

    def _signed(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {**params, "timestamp": int(time.time())}
        return {**params, "api_key": self.api_key, "signature": self._sign(params)}

    async def _post(self, path: str, data: dict[str, Any], files: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.API_BASE}/{self.cloud_name}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                body: dict[str, Any] = response.json()
        except httpx.HTTPError as e:
            logger.error("media_provider_error", provider="cloudinary", path=path, error=str(e))
            msg = "Media storage request failed"
            raise upstream(msg) from e
        return body

    async def put(self, data: bytes, *, filename: str, resource_type: str = "auto") -> StoredMedia:
        params = self._signed({"folder": self.folder} if self.folder else {})
        body = await self._post(f"{resource_type}/upload", params, files={"file": (filename, data)})
        if not body.get("secure_url") or not body.get("public_id"):
            msg = "Invalid response from media storage"
            raise upstream(msg)
        stored_type = body.get("resource_type", "image")
        logger.info("media_stored", public_id=body["public_id"], provider="cloudinary")
        return StoredMedia(
            url=body["secure_url"],
            # Destroy needs the resource type, so it travels with the handle
            public_id=f"{stored_type}:{body['public_id']}",
            duration=body.get("duration"),
        )

    async def delete(self, public_id: str) -> None:
        resource_type, _, raw_id = public_id.partition(":")
        if not raw_id:
            resource_type, raw_id = "image", public_id
        body = await self._post(f"{resource_type}/destroy", self._signed({"public_id": raw_id}))
        if body.get("result") not in ("ok", "not found"):
            msg = f"Media storage refused to delete {raw_id}"
            raise upstream(msg)
        logger.info("media_deleted", public_id=raw_id, provider="cloudinary")


def _create_provider() -> BaseObjectStore:
    """Create the object store based on configuration."""
    settings = get_settings()
    provider_name = settings.media_provider.lower()

    if provider_name == "memory":
        return MemoryObjectStore()
    if provider_name == "cloudinary":
        return CloudinaryObjectStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            timeout=settings.media_timeout_seconds,
        )
    msg = f"Unsupported media provider: {provider_name}"
    raise ValueError(msg)


# Module-level singleton
_object_store: BaseObjectStore | None = None


def get_object_store() -> BaseObjectStore:
    """Get or create the object store singleton (FastAPI dependency)."""
    global _object_store  # noqa: PLW0603
    if _object_store is None:
        _object_store = _create_provider()
    return _object_store


def reset_object_store() -> None:
    """Reset the object store singleton (for testing)."""
    global _object_store  # noqa: PLW0603
    _object_store = None

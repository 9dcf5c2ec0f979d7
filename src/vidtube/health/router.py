"""Liveness, readiness and build info for load balancers and deploy checks."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.config import Settings, get_settings
from vidtube.database import get_session

router = APIRouter()


def _media_check(settings: Settings) -> str:
    provider = settings.media_provider.lower()
    if provider == "memory":
        return "ok"
    if provider == "cloudinary":
        missing = [
            name
            for name in ("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret")
            if not getattr(settings, name)
        ]
        return f"error: missing {', '.join(missing)}" if missing else "ok"
    return f"error: unsupported provider {provider}"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Database round trip plus media store configuration. Never raises; failures degrade the status."""
    settings = get_settings()
    checks: dict[str, str] = {"media": _media_check(settings)}
    try:
        await db.scalar(text("SELECT 1"))
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"
    else:
        checks["database"] = "ok"

    ready = all(value == "ok" for value in checks.values())
    return {"status": "ready" if ready else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": "vidtube-api",
        "version": settings.app_version,
        "environment": settings.environment,
        "mediaProvider": settings.media_provider,
    }

"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vidtube.auth.jwt import TokenConfig, TokenService
from vidtube.auth.router import router as auth_router
from vidtube.comments.router import router as comments_router
from vidtube.config import get_settings
from vidtube.database import close_db, init_db
from vidtube.engagement.router import router as likes_router
from vidtube.health.router import router as health_router
from vidtube.middleware import setup_middleware
from vidtube.tweets.router import router as tweets_router
from vidtube.users.router import router as users_router
from vidtube.videos.router import router as videos_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    yield
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="VidTube API",
        description="Backend API for VidTube: videos, tweets, comments and likes",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.token_service = TokenService(TokenConfig.from_settings(settings))

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(videos_router)
    app.include_router(tweets_router)
    app.include_router(comments_router)
    app.include_router(likes_router)

    return app


app = create_app()

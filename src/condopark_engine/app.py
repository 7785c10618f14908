"""FastAPI application factory for CondoPark-Engine."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from condopark_engine.common.config import get_settings
from condopark_engine.common.logging import setup_logging
from condopark_engine.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from condopark_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from condopark_engine.auth.router import router as auth_router
    from condopark_engine.slots.router import router as slots_router
    from condopark_engine.bookings.router import router as bookings_router
    from condopark_engine.tenants.router import router as tenant_router

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix)
    app.include_router(slots_router, prefix=prefix)
    app.include_router(bookings_router, prefix=prefix)
    app.include_router(tenant_router, prefix=prefix)

    return app

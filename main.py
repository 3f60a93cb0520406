"""
WorkZen HR - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from workzen import __version__
from workzen.config import settings
from workzen.database import async_session_maker, close_db, init_db
from workzen.middleware.security import setup_security_middleware
from workzen.routers import auth, employees, onboarding, users
from workzen.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def seed_roles():
    """
    Make sure the roles lookup table is populated.
    Migrations seed it too; this covers databases built with init_db.
    """
    from workzen.models.user import ROLE_DESCRIPTIONS, Role

    async with async_session_maker() as session:
        result = await session.execute(select(Role.name))
        existing = set(result.scalars().all())
        for role, description in ROLE_DESCRIPTIONS.items():
            if role.value not in existing:
                session.add(Role(name=role.value, description=description))
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    # Initialize database (production uses migrations)
    if not settings.is_production:
        await init_db()
        logger.info("Database tables initialized")

        try:
            await seed_roles()
        except Exception as e:
            logger.warning(f"Role seeding skipped: {e}")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="HR management: onboarding, employee records and account access",
    version=__version__,
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_security_middleware(app=app, development_mode=not settings.is_production)
setup_exception_handlers(app)


# ===========================================
# HEALTH
# ===========================================

@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.app_name, "version": __version__}


@app.get(f"{settings.api_prefix}/health")
async def api_health_check():
    return {"status": "ok", "environment": settings.app_env}


# ===========================================
# API ROUTERS
# ===========================================

app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(onboarding.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)
app.include_router(employees.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=5000,
        reload=settings.is_development,
    )

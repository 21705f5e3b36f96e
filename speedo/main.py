"""
The SpeedoTransfer ASGI application.

Importing this module builds `app`: logging and table creation run in the
lifespan hook, domain errors are turned into JSON responses by the
handlers in exceptions.py, and the auth, users, accounts and transfers
routers are mounted under their own prefixes.

Running locally:
    uvicorn speedo.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import speedo.models  # noqa: F401  (registers every table on Base.metadata)
from speedo.config import settings
from speedo.database import engine, Base
from speedo.exceptions import register_exception_handlers
from speedo.logging_config import get_logger, setup_logging
from speedo.routers import accounts, auth, transfers, users

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging and create missing tables; dispose of the engine on exit."""
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Multi-currency accounts and funds transfers",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(transfers.router, prefix="/transfers", tags=["Transfers"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe."""
    return {"status": "ok", "version": settings.APP_VERSION}

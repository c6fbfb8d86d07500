# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Inferno Guild API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    DatabaseError,
    GuildApiException,
    UpstreamDiscordError,
    guild_api_exception_handler,
    validation_exception_handler,
)
from app.middleware import PageGateMiddleware
from app.routers import admin, catalog, discord, health, leave, member, pages, sync
from app.auth import routes as auth_routes
from lib.discord_client import DiscordApiError
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown:
    - Startup: Log configuration that commonly goes missing
    - Shutdown: Release the Redis connection pool
    """
    logger.info(f"Starting Inferno Guild API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.DISCORD_BOT_TOKEN:
        logger.warning("DISCORD_BOT_TOKEN is not set: logins will be rejected and member sync is disabled")

    yield

    logger.info("Shutting down Inferno Guild API")
    from lib.session_store import SessionStore

    if SessionStore._redis is not None:
        SessionStore._redis.close()
        SessionStore._redis = None


# Create FastAPI application
app = FastAPI(
    title="Inferno Guild API",
    description="""
## Guild Management API

Discord-login dashboards for the three Inferno guilds.

### Roles

| Role | Access |
|------|--------|
| **Member** | Own profile, loadout, equipment and leave requests |
| **Head** | Admin dashboard for their own guild |
| **Admin** | Every guild, party assignment, catalogs |

### Sign-in

1. `GET /api/auth/discord/start` redirects to Discord
2. Discord redirects back to `/api/auth/discord/callback`
3. The session cookie is set and the browser lands on `/me`
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Discord sign-in and the current session"},
        {"name": "Member", "description": "Self-service profile and war loadout"},
        {"name": "Leave", "description": "Leave requests for war dates"},
        {"name": "Catalog", "description": "Classes, ultimate skills and the club roster"},
        {"name": "Admin", "description": "Staff dashboard: roster, parties, notes, catalogs"},
        {"name": "Discord", "description": "Discord member lookups"},
        {"name": "Sync", "description": "Discord to member table sync triggers"},
        {"name": "Health", "description": "API health and readiness checks"},
        {"name": "Pages", "description": "Dashboard page shells"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(PageGateMiddleware)

# CORS middleware - cookies are sent cross-origin, so origins are explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(GuildApiException)
async def handle_guild_api_exception(request: Request, exc: GuildApiException):
    """Handle custom guild API exceptions."""
    return await guild_api_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_supabase_error(request: Request, exc: SupabaseClientError):
    """Backend query failures surface as DATABASE_ERROR."""
    logger.error(f"Supabase error on {request.url.path}: {exc.message}")
    return await guild_api_exception_handler(request, DatabaseError(exc.message))


@app.exception_handler(DiscordApiError)
async def handle_discord_error(request: Request, exc: DiscordApiError):
    logger.error(f"Discord error on {request.url.path}: {exc.message}")
    return await guild_api_exception_handler(request, UpstreamDiscordError(exc.message))


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Discord sign-in, logout and /api/me
app.include_router(
    auth_routes.router,
    prefix="/api",
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api",
    tags=["Health"]
)

# Member self-service endpoints
app.include_router(
    member.router,
    prefix="/api/member",
    tags=["Member"]
)

# Leave request endpoints
app.include_router(
    leave.router,
    prefix="/api/leave",
    tags=["Leave"]
)

# Public catalogs and club roster
app.include_router(
    catalog.router,
    prefix="/api",
    tags=["Catalog"]
)

# Staff dashboard endpoints
app.include_router(
    admin.router,
    prefix="/api/admin",
    tags=["Admin"]
)

# Discord lookups
app.include_router(
    discord.router,
    prefix="/api/discord",
    tags=["Discord"]
)

# Secret-protected sync triggers
app.include_router(
    sync.router,
    prefix="/api",
    tags=["Sync"]
)

# Page shells (gated by PageGateMiddleware)
app.include_router(
    pages.router,
    tags=["Pages"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Inferno Guild API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }

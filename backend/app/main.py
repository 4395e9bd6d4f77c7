"""
Rail Complaint Desk - FastAPI Application

Main entry point for the complaint backend.

Architecture:
- Identity & Access: login, token pairs, role gate (app.auth, services.identity)
- Complaint Store: lifecycle + append-only audit trail (services.complaints)
- Admin Query Engine: filtered, paginated staff views (services.complaints.query_engine)
- Metrics Aggregator: dashboard counters and charts (services.dashboard)
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .database import init_db
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware, register_exception_handlers
from .responses import success_response
from .routers import auth_router, complaints_router, admin_router, dashboard_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate settings and initialize database on startup."""
    config.configure_logging()
    config.validate_settings()
    init_db()
    logger.info(f"Server running in {config.APP_ENV} mode, API prefix {config.API_PREFIX}")
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Rail Complaint Desk",
    description="""
    Rail Complaint Desk - Passenger Complaint Management

    Riders submit and track complaints without an account; staff log in to
    triage, reassign, annotate and resolve them and to watch dashboard metrics.

    ## Key Principles
    - Complaint numbers (CMP-YYYY-NNNN) are allocated once, from an atomic per-year counter
    - Every status change is recorded in an append-only audit trail
    - resolvedAt/resolvedBy are set exactly while a complaint is resolved
    - Listing totals are always computed over the filtered set
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix=config.API_PREFIX)
app.include_router(complaints_router, prefix=config.API_PREFIX)
app.include_router(admin_router, prefix=config.API_PREFIX)
app.include_router(dashboard_router, prefix=config.API_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return success_response(
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": config.APP_ENV,
        },
        "Rail complaint API is running",
    )


# For running with: python -m app.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

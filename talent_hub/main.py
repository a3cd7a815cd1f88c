"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from talent_hub.config import settings
from talent_hub.database import Base, engine
from talent_hub.errors import register_error_handlers
from talent_hub.logging_config import configure_logging
from talent_hub.services.rate_limiter import RateLimiter

# Import routers
from talent_hub.routers import opportunities, events, pages

# Import all models so Base.metadata knows about them
from talent_hub.models.user import User                                # noqa: F401
from talent_hub.models.page import Page, PageOwnership                 # noqa: F401
from talent_hub.models.opportunity import Opportunity, OpportunityApplicant  # noqa: F401
from talent_hub.models.event import Event, RegisteredEvent             # noqa: F401

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Talent Hub",
    description="Page-scoped opportunity and event management: ownership checks and applicant lifecycle",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# One limiter per process; replaced per test.
app.state.rate_limiter = RateLimiter(
    limit=settings.RATE_LIMIT_REQUESTS,
    window_ms=settings.RATE_LIMIT_WINDOW_MS,
)

# Register routers
app.include_router(opportunities.router, prefix="/api/opportunities", tags=["Opportunities"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(pages.router, prefix="/api/pages", tags=["Pages"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}

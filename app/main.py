from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import engine, Base, SessionLocal
from app.api import products, health
from app.api.errors import register_exception_handlers
from app.middleware import RequestLoggingMiddleware
from app.seed import seed_database
from app.utils.logging import configure_logging

settings = get_settings()

# Configure logging
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    if settings.SEED_SAMPLE_DATA:
        db = SessionLocal()
        try:
            seed_database(db)
        finally:
            db.close()

    if settings.SIMULATE_SLOW_QUERIES or settings.SIMULATE_RANDOM_ERRORS:
        logger.warning(
            f"Debug simulations enabled: slow_queries={settings.SIMULATE_SLOW_QUERIES}, "
            f"random_errors={settings.SIMULATE_RANDOM_ERRORS}"
        )

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    A product catalog API built to be debugged:

    - **Product Management**: CRUD, search, stock adjustment and discontinuation
    - **Lifecycle Rules**: unique names, positive prices, guarded status transitions
    - **Request Tracing**: every request gets an id that appears in all of its log lines

    ## Features

    ### Stock-driven Status
    Stock reaching zero moves an ACTIVE product to OUT_OF_STOCK; restocking moves
    it back to ACTIVE. A DISCONTINUED product can never be reactivated.

    ### Error Responses
    Errors carry an `error_id` that is also written to the log, and every
    response echoes its request id in the `X-Request-ID` header.

    ### Debug Simulations
    `SIMULATE_SLOW_QUERIES` and `SIMULATE_RANDOM_ERRORS` inject delays and
    failures for practising diagnosis.
    """,
    version=settings.APP_VERSION,
    contact={
        "name": "API Support",
        "email": "support@example.com"
    },
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    RequestLoggingMiddleware,
    slow_request_threshold_ms=settings.SLOW_REQUEST_THRESHOLD_MS,
)

register_exception_handlers(app)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }

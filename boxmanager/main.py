"""FastAPI application entry point."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from boxmanager.config import settings
from boxmanager.database import store
from boxmanager.logging_setup import setup_logging
from boxmanager.routes import activity_logs, backup, boxes, items, locations, search
from boxmanager.services.sample_data import seed_sample_data


def initialize_store() -> None:
    """Create directories and schema, and seed sample data on an empty store."""
    settings.ensure_directories()
    if not store.is_open:
        store.open()
    store.ensure_schema()
    if settings.SEED_SAMPLE_DATA:
        db = store.session()
        try:
            seed_sample_data(db)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")
    initialize_store()
    yield
    store.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Personal inventory of storage boxes, their items and receipts",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(search.router, prefix="/api")
app.include_router(boxes.router, prefix="/api")
app.include_router(items.router, prefix="/api")
app.include_router(locations.router, prefix="/api")
app.include_router(activity_logs.router, prefix="/api")
app.include_router(backup.router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

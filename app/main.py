"""Music library ingestion and streaming service - FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1.router import v1_router
from app.api.v1.health import router as health_root_router
from app.api.v1 import health as health_api
from app.api.v1 import jobs as jobs_api
from app.api.v1 import songs as songs_api
from app.ingestion.worker import IngestionWorker
from app.jobs.in_process_queue import InProcessQueue
from app.jobs.models import PROCESS_AUDIO
from app.storage.blob_store import blob_store
from app.tracks.repository import build_track_repository

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

# Global dispatcher reference
_dispatcher = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    global _dispatcher

    logger.info("Starting music library service on port %s", settings.api_port)
    blob_store.ensure_roots()
    logger.info("Upload dir: %s", blob_store.upload_dir)
    logger.info("Processed dir: %s", blob_store.processed_dir)

    tracks = build_track_repository()
    logger.info("Track store: %s", settings.track_store)

    # Start the ingestion queue
    _dispatcher = InProcessQueue(handlers={PROCESS_AUDIO: IngestionWorker(tracks, blob_store)})
    await _dispatcher.start()

    # Wire dispatcher, repository and blob store into API endpoints
    songs_api.set_dispatcher(_dispatcher)
    songs_api.set_track_repository(tracks)
    songs_api.set_blob_store(blob_store)
    jobs_api.set_dispatcher(_dispatcher)
    health_api.set_dispatcher(_dispatcher)

    yield

    logger.info("Shutting down music library service")
    await _dispatcher.stop()


app = FastAPI(
    title="Music Library Service",
    description="Audio upload ingestion and byte-range streaming",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
)

# Mount routers
app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints

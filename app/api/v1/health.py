"""Health check endpoint."""

from fastapi import APIRouter
import platform
import sys

router = APIRouter()

# Set by main.py during lifespan
_dispatcher = None


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


@router.get("/health")
async def health_check():
    """Service health and ingestion queue depth."""
    queue = None
    if _dispatcher is not None:
        queue = {
            "pending": _dispatcher.pending_count(),
            "draining": _dispatcher.is_draining(),
        }

    return {
        "status": "healthy",
        "queue": queue,
        "python_version": sys.version,
        "platform": platform.platform(),
    }

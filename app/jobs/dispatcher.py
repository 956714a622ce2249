"""Job dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Optional

from app.jobs.models import IngestionJob


class JobDispatcher(ABC):
    """Abstract interface for ingestion job dispatching."""

    @abstractmethod
    async def enqueue(self, job: IngestionJob) -> str:
        """Admit a job for processing without waiting for it. Returns job_id."""
        ...

    @abstractmethod
    async def get_status(self, job_id: str) -> Optional[IngestionJob]:
        """Get current status of a job."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., begin draining queued jobs)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher."""
        ...

    @abstractmethod
    async def wait_idle(self) -> None:
        """Wait until no job is pending or running."""
        ...

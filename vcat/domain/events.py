"""Domain events for the rendition pipeline.

Events flow through the EventBus from the orchestrator's worker threads to the
console reporter. See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pydantic import BaseModel
from .models import JobStatus, RenditionJob


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class BatchStarted(Event):
    """Emitted once the file list is indexed, before any dispatch."""

    files_count: int
    workers: int


class JobEvent(Event):
    """Base class for events related to a single source file."""

    job: RenditionJob


class JobStarted(JobEvent):
    """Emitted when a worker picks up a file."""

    pass


class JobStatusChanged(JobEvent):
    """Emitted on every state machine transition short of DONE/FAILED."""

    status: JobStatus


class JobCompleted(JobEvent):
    """Emitted when a file reaches DONE."""

    pass


class JobFailed(JobEvent):
    """Emitted when a file fails; the error lands in its result slot."""

    error_message: str


class TeaserSelected(JobEvent):
    """Emitted once per batch when the teaser record is chosen."""

    pass


class BatchFinished(Event):
    completed: int
    failed: int

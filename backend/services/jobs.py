import threading
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from services.errors import JobStateError


class JobStatus(str, Enum):
    started = "started"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    error = "error"


TERMINAL_STATUSES = frozenset({JobStatus.completed, JobStatus.failed, JobStatus.error})

_ALLOWED = {
    None: {JobStatus.started},
    JobStatus.started: {JobStatus.processing} | TERMINAL_STATUSES,
    JobStatus.processing: {JobStatus.processing} | TERMINAL_STATUSES,
}


class OutputFiles(BaseModel):
    model_config = ConfigDict(frozen=True)

    vocals: str
    instrumental: str


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: JobStatus
    message: str
    progress: int
    files: Optional[OutputFiles] = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class SeparationJob:
    """Lifecycle of one separation run.

    started -> processing* -> completed | failed | error

    `_transition` is the only mutator and every accepted transition hands
    exactly one event to `publish`.
    """

    def __init__(self, filename: str, publish: Callable[[ProgressEvent], None]):
        self.filename = filename
        self.status: Optional[JobStatus] = None
        self.progress = 0
        self.files: Optional[OutputFiles] = None
        self._publish = publish
        self._last_event: Optional[ProgressEvent] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> Optional[ProgressEvent]:
        return self._last_event

    def start(self) -> ProgressEvent:
        return self._transition(JobStatus.started, "Starting audio separation", 0)

    def advance(self, percent: int) -> Optional[ProgressEvent]:
        if self.status == JobStatus.processing and percent < self.progress:
            return None
        return self._transition(JobStatus.processing, f"Processing: {percent}% complete", percent)

    def complete(self, files: Dict[str, str]) -> ProgressEvent:
        self.files = OutputFiles(**files)
        return self._transition(JobStatus.completed, "Audio separation completed successfully", 100, self.files)

    def fail(self, exit_code: Optional[int]) -> ProgressEvent:
        return self._transition(JobStatus.failed, f"Process exited with code {exit_code}", -1)

    def error(self, reason: str) -> ProgressEvent:
        return self._transition(JobStatus.error, f"Error: {reason}", -1)

    def _transition(self, status: JobStatus, message: str, progress: int, files: Optional[OutputFiles] = None) -> ProgressEvent:
        if status not in _ALLOWED.get(self.status, ()):
            raise JobStateError(f"{self.filename}: cannot go from {self.status} to {status.value}")
        self.status = status
        self.progress = progress
        event = ProgressEvent(status=status, message=message, progress=progress, files=files)
        self._last_event = event
        self._publish(event)
        return event


# Active jobs keyed by input filename. Read from threadpool routes too.
_JOBS: Dict[str, SeparationJob] = {}
_JOB_LOCK = threading.Lock()


def job_claim(filename: str, job: SeparationJob) -> bool:
    with _JOB_LOCK:
        if filename in _JOBS:
            return False
        _JOBS[filename] = job
        return True


def job_get(filename: str) -> Optional[SeparationJob]:
    with _JOB_LOCK:
        return _JOBS.get(filename)


def job_pop(filename: str) -> Optional[SeparationJob]:
    with _JOB_LOCK:
        return _JOBS.pop(filename, None)


def job_list() -> List[SeparationJob]:
    with _JOB_LOCK:
        return list(_JOBS.values())

from __future__ import annotations


class PitchSyncError(RuntimeError):
    """Base exception for failures outside the upstream provider layer."""


class PersistenceError(PitchSyncError):
    """A store write failed; the enclosing unit of work has been rolled back."""


class ValidationError(PitchSyncError, ValueError):
    """Caller input was malformed; raised before any job starts."""


class MissingScopeError(ValidationError):
    """Natural-key resolution was requested without its scoping key."""


class JobAlreadyRunning(PitchSyncError):
    """A job was started while another run with the same key is still running."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id!r} is already running")
        self.job_id = job_id


class JobNotFound(PitchSyncError, KeyError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Unknown job {job_id!r}")
        self.job_id = job_id

    def __str__(self) -> str:
        return self.args[0]

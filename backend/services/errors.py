from typing import Optional


class SeparationError(Exception):
    """Base class for failures surfaced to the caller of a separation run."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFilename(SeparationError, ValueError):
    pass


class InputNotFound(SeparationError):
    pass


class JobAlreadyRunning(SeparationError):
    pass


class LaunchFailure(SeparationError):
    """The separation process never ran."""


class RuntimeFailure(SeparationError):
    """The separation process ran and exited with a non-zero code."""

    def __init__(self, message: str, exit_code: Optional[int]):
        super().__init__(message)
        self.exit_code = exit_code


class JobStateError(RuntimeError):
    pass


class UploadTooLarge(Exception):
    def __init__(self, limit: int):
        super().__init__(f"File is too large. Maximum size is {limit // (1024 * 1024)}MB.")
        self.limit = limit

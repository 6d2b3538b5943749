"""
Error kinds for the GoLinks directory.

Two layers:
    - Store errors are raised by storage backends and never leave the directory.
    - Directory errors are what callers (the HTTP layer, scripts, tests) see.

    GoLinksError
    ├── StoreError              persistence failure or timeout
    │   └── UniquenessViolation insert hit an existing short code
    └── DirectoryError
        ├── AlreadyExists       custom code already taken (user-correctable)
        ├── GenerationExhausted random codes kept colliding (server-side)
        ├── NotFound            lookup / delete / click target absent
        └── StoreUnavailable    classified StoreError
"""

from typing import Optional


class GoLinksError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------
# Store level
# ---------------------------------------------------------------------
class StoreError(GoLinksError):
    """The backing store failed or did not answer in time."""


class UniquenessViolation(StoreError):
    """Insert rejected because the short code already exists."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' already exists")
        self.short_code = short_code


# ---------------------------------------------------------------------
# Directory level
# ---------------------------------------------------------------------
class DirectoryError(GoLinksError):
    """Base for errors surfaced by LinkDirectory."""


class AlreadyExists(DirectoryError):
    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' already exists.")
        self.short_code = short_code


class GenerationExhausted(DirectoryError):
    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate a unique short code after {attempts} attempts.")
        self.attempts = attempts


class NotFound(DirectoryError):
    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' not found")
        self.short_code = short_code


class StoreUnavailable(DirectoryError):
    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"Link store unavailable during {operation}")
        self.operation = operation
        self.cause = cause

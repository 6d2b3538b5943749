"""
Base storage interface for GoLinks.

Purpose:
    Define a small, stable contract that storage backends (in-memory, Postgres)
    implement without requiring changes to the directory logic.

Contract:
    - Every method is atomic with respect to the others.
    - `insert` is the arbiter of short-code uniqueness: it raises
      UniquenessViolation instead of overwriting.
    - `increment_clicks` adds one inside the store (no read-modify-write by
      the caller), so concurrent increments are never lost.
    - Any other failure, including a timeout, raises StoreError.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import Link


class BaseLinkStore(ABC):
    """Abstract base class for link stores."""

    @abstractmethod  # pragma: no cover
    def insert(self, short_code: str, target_url: str) -> Link:
        """
        Persist a new mapping with click_count 0.

        Returns:
            Link: The stored record, including its assigned id and timestamps.

        Raises:
            UniquenessViolation: If `short_code` is already present.
            StoreError: On any other persistence failure.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_by_code(self, short_code: str) -> Optional[Link]:
        """Return the Link for `short_code`, or None if absent."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_all(self) -> List[Link]:
        """Return every Link ordered by id."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_clicks(self, short_code: str) -> bool:
        """
        Atomically add 1 to click_count and refresh updated_at.

        Returns:
            bool: False if the code does not exist.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_by_code(self, short_code: str) -> bool:
        """
        Delete the mapping for `short_code`.

        Returns:
            bool: False if the code does not exist.
        """
        raise NotImplementedError

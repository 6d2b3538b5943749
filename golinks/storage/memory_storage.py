"""
In-memory link store.

Responsibilities:
    - Keep links keyed by short code with a store-assigned, increasing id
    - Enforce short-code uniqueness inside the insert itself
    - Apply click increments atomically

Design:
    - One lock guards the table; every public method is a single critical
      section, which gives the same atomicity a transactional DB provides.
    - The lock is acquired with a timeout so a wedged caller surfaces as a
      StoreError instead of hanging the request.
    - Records are frozen Link values; updates swap in a new value.
    - Intended for tests, local runs and single-process demos. Data is lost
      on restart.
"""

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from ..config import settings
from ..errors import StoreError, UniquenessViolation
from ..models import Link
from .base import BaseLinkStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryLinkStore(BaseLinkStore):
    def __init__(self, timeout: Optional[float] = None):
        """
        Internal schema:
            self.links = { short_code: Link(...) }
        """
        self.links: Dict[str, Link] = {}
        self.timeout = settings.STORE_TIMEOUT if timeout is None else timeout
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.timeout):
            raise StoreError(f"{operation} timed out after {self.timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def insert(self, short_code: str, target_url: str) -> Link:
        with self._locked("insert"):
            if short_code in self.links:
                raise UniquenessViolation(short_code)
            now = _utcnow()
            link = Link(
                id=next(self._ids),
                short_code=short_code,
                target_url=target_url,
                click_count=0,
                created_at=now,
                updated_at=now,
            )
            self.links[short_code] = link
            return link

    def get_by_code(self, short_code: str) -> Optional[Link]:
        with self._locked("get_by_code"):
            return self.links.get(short_code)

    def list_all(self) -> List[Link]:
        with self._locked("list_all"):
            return sorted(self.links.values(), key=lambda link: link.id)

    def increment_clicks(self, short_code: str) -> bool:
        with self._locked("increment_clicks"):
            link = self.links.get(short_code)
            if link is None:
                return False
            self.links[short_code] = replace(
                link, click_count=link.click_count + 1, updated_at=_utcnow()
            )
            return True

    def delete_by_code(self, short_code: str) -> bool:
        with self._locked("delete_by_code"):
            return self.links.pop(short_code, None) is not None

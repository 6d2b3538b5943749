"""
LinkDirectory module for GoLinks.

Responsibilities:
    - Create links under a custom or a generated short code
    - Look up, list and remove links
    - Record usage (click increments) for the redirect path
    - Classify every store failure into a directory error kind

Design notes:
    - The store is injected; the directory holds no state of its own beyond
      its collaborators and caches nothing between calls.
    - Custom codes: the existence pre-check only produces a friendlier error
      early. The store's insert is the arbiter, and a UniquenessViolation at
      insert time is reported as AlreadyExists with no retry.
    - Generated codes: bounded retry loop. A collision draws a new candidate;
      running out of attempts raises GenerationExhausted.
    - Removal is check-then-delete. A concurrent delete between the two
      steps is reported as NotFound.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..config import settings
from ..errors import (
    AlreadyExists,
    GenerationExhausted,
    NotFound,
    StoreError,
    StoreUnavailable,
    UniquenessViolation,
)
from ..models import Link
from ..storage.base import BaseLinkStore
from .generator import BaseCodeGenerator, RandomCodeGenerator

log = logging.getLogger("golinks.directory")


class LinkDirectory:
    """
    Business rules for the short-code to URL mapping.

    All public methods either return a value or raise a DirectoryError
    subclass; StoreError never escapes.
    """

    def __init__(
        self,
        store: BaseLinkStore,
        generator: Optional[BaseCodeGenerator] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Args:
            store (BaseLinkStore): Backend link store.
            generator (Optional[BaseCodeGenerator]): Candidate source for generated
                codes. Defaults to RandomCodeGenerator().
            max_attempts (Optional[int]): Generation attempts before giving up.
                Defaults to settings.MAX_ATTEMPTS.
        """
        self.store = store
        self.generator = generator or RandomCodeGenerator()
        self.max_attempts = settings.MAX_ATTEMPTS if max_attempts is None else max_attempts
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        """Translate StoreError (but not UniquenessViolation) into StoreUnavailable."""
        try:
            yield
        except UniquenessViolation:
            raise
        except StoreError as exc:
            log.error("Store failure during %s: %s", operation, exc)
            raise StoreUnavailable(operation, exc) from exc

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create(self, target_url: str, short_code: Optional[str] = None) -> Link:
        """
        Create a link, using `short_code` when given or a generated one otherwise.

        Returns:
            Link: The persisted record (id, timestamps, click_count == 0).

        Raises:
            AlreadyExists: The custom code is taken.
            GenerationExhausted: Every generated candidate collided.
            StoreUnavailable: The store failed.
        """
        if short_code:
            return self._create_custom(short_code, target_url)
        return self._create_generated(target_url)

    def _create_custom(self, short_code: str, target_url: str) -> Link:
        with self._store_call("create"):
            if self.store.get_by_code(short_code) is not None:
                raise AlreadyExists(short_code)
            try:
                link = self.store.insert(short_code, target_url)
            except UniquenessViolation as exc:
                # Lost the race to a concurrent writer after the pre-check.
                log.info("Custom code %r claimed concurrently", short_code)
                raise AlreadyExists(short_code) from exc
        log.info("Created link %r -> %s", link.short_code, link.target_url)
        return link

    def _create_generated(self, target_url: str) -> Link:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator.generate()
            try:
                with self._store_call("create"):
                    link = self.store.insert(candidate, target_url)
            except UniquenessViolation:
                log.debug("Generated code %r collided (attempt %d/%d)", candidate, attempt, self.max_attempts)
                continue
            log.info("Created link %r -> %s", link.short_code, link.target_url)
            return link
        log.warning("Short code generation exhausted after %d attempts", self.max_attempts)
        raise GenerationExhausted(self.max_attempts)

    def lookup(self, short_code: str) -> Link:
        """Return the link for `short_code` or raise NotFound."""
        with self._store_call("lookup"):
            link = self.store.get_by_code(short_code)
        if link is None:
            raise NotFound(short_code)
        return link

    def remove(self, short_code: str) -> None:
        """Delete the link for `short_code` or raise NotFound."""
        with self._store_call("remove"):
            if self.store.get_by_code(short_code) is None:
                raise NotFound(short_code)
            if not self.store.delete_by_code(short_code):
                raise NotFound(short_code)
        log.info("Removed link %r", short_code)

    def list_all(self) -> List[Link]:
        with self._store_call("list_all"):
            return self.store.list_all()

    def record_click(self, short_code: str) -> None:
        """Add one usage to `short_code`; raises NotFound if it was deleted meanwhile."""
        with self._store_call("record_click"):
            if not self.store.increment_clicks(short_code):
                raise NotFound(short_code)

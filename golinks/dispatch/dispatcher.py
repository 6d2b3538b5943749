"""
Redirect dispatcher for GoLinks.

Responsibilities:
    - Turn a directory lookup into a permanent (301) redirect
    - Record the click without making the visitor wait for it

Design:
    - Click increments run on a small ThreadPoolExecutor owned by the
      dispatcher. `resolve` submits and returns; it never waits on the future.
    - Each submitted unit logs its own failure and returns nothing. Nothing
      flows back to the caller, so a failed or slow increment cannot change
      a redirect or its latency.
    - Counting is eventual: a redirect may be served before its increment
      lands. `settle()` waits for in-flight increments (tests, shutdown).
    - At most `max_pending` increments are in flight. Past that, new clicks are
      dropped with a warning instead of growing the queue while the store is slow.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for
from dataclasses import dataclass
from typing import Optional, Set

from ..config import settings
from ..directory.link_directory import LinkDirectory
from ..errors import DirectoryError, NotFound

log = logging.getLogger("golinks.dispatch")

PERMANENT_REDIRECT = 301


@dataclass(frozen=True)
class Redirect:
    target: str
    status_code: int = PERMANENT_REDIRECT


class RedirectDispatcher:
    def __init__(
        self,
        directory: LinkDirectory,
        max_workers: Optional[int] = None,
        max_pending: Optional[int] = None,
    ):
        self.directory = directory
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.CLICK_WORKERS,
            thread_name_prefix="golinks-clicks",
        )
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()
        self._max_pending = max_pending or settings.CLICK_QUEUE
        self._slots = threading.BoundedSemaphore(self._max_pending)

    def resolve(self, short_code: str) -> Optional[Redirect]:
        """
        Resolve `short_code` to a redirect.

        Returns:
            Optional[Redirect]: The redirect on a hit, None when the code is unknown.

        Raises:
            StoreUnavailable: The lookup itself failed.
        """
        try:
            link = self.directory.lookup(short_code)
        except NotFound:
            return None
        self._schedule_click(short_code)
        return Redirect(target=link.target_url)

    def _schedule_click(self, short_code: str) -> None:
        if not self._slots.acquire(blocking=False):
            log.warning(
                "Dropped click for %r: %d click updates already queued",
                short_code, self._max_pending,
            )
            return
        try:
            future = self._executor.submit(self._record_click, short_code)
        except RuntimeError:
            self._slots.release()
            # Executor already shut down (app stopping); the redirect still goes out.
            log.warning("Dropped click for %r: dispatcher is shut down", short_code)
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _record_click(self, short_code: str) -> None:
        """Worker body; runs detached from the request and reports only to the log."""
        try:
            self.directory.record_click(short_code)
        except NotFound:
            log.info("Click for %r not recorded: link removed before update", short_code)
        except DirectoryError as exc:
            log.warning("Failed to increment click count for %r: %s", short_code, exc)
        except Exception:
            log.exception("Unexpected error while recording click for %r", short_code)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        self._slots.release()

    def pending(self) -> int:
        """Number of click increments not finished yet."""
        with self._lock:
            return len(self._pending)

    def settle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the click increments submitted so far.

        Returns:
            bool: True if all of them finished within `timeout`.
        """
        with self._lock:
            snapshot = list(self._pending)
        _, not_done = wait_for(snapshot, timeout=timeout)
        return not not_done

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting clicks; with `wait`, finish the queued ones first."""
        self._executor.shutdown(wait=wait)

"""
Unit tests for RedirectDispatcher.

Covers:
    - Hit -> permanent redirect, click recorded once settled
    - Miss -> None, nothing scheduled
    - Redirect returned while the click update is still blocked
    - Click failures logged, never raised
    - Lookup failures propagate; clicks after shutdown are dropped
    - Clicks past the in-flight limit are dropped, redirects still served
"""

import threading

import pytest

from golinks.directory.link_directory import LinkDirectory
from golinks.dispatch.dispatcher import Redirect, RedirectDispatcher
from golinks.errors import StoreUnavailable


class BlockingDirectory(LinkDirectory):
    """record_click waits until the test releases it."""

    def __init__(self, store):
        super().__init__(store=store)
        self.release = threading.Event()
        self.started = threading.Event()

    def record_click(self, short_code):
        self.started.set()
        assert self.release.wait(timeout=5)
        super().record_click(short_code)


class BrokenClickDirectory(LinkDirectory):
    def record_click(self, short_code):
        raise StoreUnavailable("record_click")


def test_resolve_hit_returns_permanent_redirect(directory, dispatcher):
    directory.create("https://example.com/a", "hit")
    result = dispatcher.resolve("hit")
    assert result == Redirect(target="https://example.com/a", status_code=301)
    assert dispatcher.settle(timeout=5)
    assert directory.lookup("hit").click_count == 1


def test_resolve_miss_returns_none(dispatcher):
    assert dispatcher.resolve("nothing") is None
    assert dispatcher.pending() == 0


def test_redirect_does_not_wait_for_click(store):
    directory = BlockingDirectory(store)
    directory.create("https://example.com/slow", "slow")
    d = RedirectDispatcher(directory, max_workers=1)
    try:
        result = d.resolve("slow")
        assert result.target == "https://example.com/slow"
        assert directory.started.wait(timeout=5)
        # The redirect is back while the increment is still parked.
        assert d.pending() == 1
        assert directory.lookup("slow").click_count == 0

        directory.release.set()
        assert d.settle(timeout=5)
        assert directory.lookup("slow").click_count == 1
    finally:
        directory.release.set()
        d.shutdown(wait=True)


def test_click_failure_is_logged_not_raised(store, caplog):
    directory = BrokenClickDirectory(store=store)
    directory.create("https://example.com/a", "hit")
    d = RedirectDispatcher(directory, max_workers=1)
    try:
        with caplog.at_level("WARNING", logger="golinks.dispatch"):
            assert d.resolve("hit").target == "https://example.com/a"
            assert d.settle(timeout=5)
        assert "Failed to increment click count for 'hit'" in caplog.text
    finally:
        d.shutdown(wait=True)


def test_click_for_deleted_link_is_logged(directory, store, dispatcher, caplog):
    directory.create("https://example.com/a", "brief")
    # Simulate a delete racing the increment: the lookup sees the link, the update does not.
    original = store.increment_clicks
    store.increment_clicks = lambda code: (store.delete_by_code(code), original(code))[1]
    with caplog.at_level("INFO", logger="golinks.dispatch"):
        assert dispatcher.resolve("brief") is not None
        assert dispatcher.settle(timeout=5)
    assert "link removed before update" in caplog.text


def test_lookup_failure_propagates(failing_store):
    d = RedirectDispatcher(LinkDirectory(store=failing_store), max_workers=1)
    try:
        with pytest.raises(StoreUnavailable):
            d.resolve("abc")
    finally:
        d.shutdown(wait=True)


def test_clicks_after_shutdown_are_dropped(directory, caplog):
    directory.create("https://example.com/a", "late")
    d = RedirectDispatcher(directory, max_workers=1)
    d.shutdown(wait=True)
    with caplog.at_level("WARNING", logger="golinks.dispatch"):
        assert d.resolve("late").target == "https://example.com/a"
    assert "dispatcher is shut down" in caplog.text
    assert directory.lookup("late").click_count == 0


def test_settle_with_nothing_pending(dispatcher):
    assert dispatcher.settle(timeout=0.1) is True


def test_clicks_beyond_queue_limit_are_dropped(store, caplog):
    directory = BlockingDirectory(store)
    directory.create("https://example.com/busy", "busy")
    d = RedirectDispatcher(directory, max_workers=1, max_pending=1)
    try:
        assert d.resolve("busy") is not None
        assert directory.started.wait(timeout=5)
        with caplog.at_level("WARNING", logger="golinks.dispatch"):
            # The redirect is still served while the click queue is full.
            assert d.resolve("busy").target == "https://example.com/busy"
        assert "click updates already queued" in caplog.text
        assert d.pending() == 1

        directory.release.set()
        assert d.settle(timeout=5)
        assert directory.lookup("busy").click_count == 1
    finally:
        directory.release.set()
        d.shutdown(wait=True)

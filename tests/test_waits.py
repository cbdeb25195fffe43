# tests/test_waits.py
"""
Tests for wait utilities.
"""

import pytest
import time
from webauto.waits import wait_until, wait_until_not
from webauto.exceptions import TimeoutError

from tests.conftest import FakeNode
from webauto.locators import Locator


class TestWaitUntil:
    """Tests for wait_until function."""

    def test_returns_immediately_when_true(self):
        """Should return immediately when predicate is true."""
        result = wait_until(lambda: True, timeout=5)
        assert result is True

    def test_returns_truthy_value(self):
        """Should return the truthy value from predicate."""
        result = wait_until(lambda: "hello", timeout=5)
        assert result == "hello"

    def test_waits_for_condition(self):
        """Should wait until condition becomes true."""
        start = time.time()
        counter = {"value": 0}

        def predicate():
            counter["value"] += 1
            return counter["value"] >= 3

        result = wait_until(predicate, timeout=5, interval=0.1)
        elapsed = time.time() - start

        assert result is True
        assert elapsed >= 0.2  # At least 2 intervals
        assert elapsed < 2.0

    def test_timeout_raises_error(self):
        """Should raise TimeoutError when timeout expires."""
        with pytest.raises(TimeoutError) as exc_info:
            wait_until(lambda: False, timeout=0.3, interval=0.1, description="nothing")

        assert "Timed out waiting for nothing" in str(exc_info.value)
        assert exc_info.value.timeout == 0.3
        assert exc_info.value.attempt_count >= 2
        assert exc_info.value.elapsed_time >= 0.3

    def test_preserves_exception(self):
        """Should preserve the last exception in TimeoutError."""
        def failing_predicate():
            raise ValueError("test error")

        with pytest.raises(TimeoutError) as exc_info:
            wait_until(failing_predicate, timeout=0.3, interval=0.1)

        assert isinstance(exc_info.value.original_exception, ValueError)
        assert "test error" in str(exc_info.value.original_exception)
        assert "Original exception: ValueError" in str(exc_info.value)

    def test_recovers_after_exception(self):
        """A predicate that raises and then succeeds returns the success value."""
        calls = {"n": 0}

        def flaky():
            calls["n"] += 1
            if calls["n"] < 2:
                raise RuntimeError("not yet")
            return "ok"

        assert wait_until(flaky, timeout=2, interval=0.05) == "ok"


class TestWaitUntilNot:
    """Tests for wait_until_not function."""

    def test_returns_when_false(self):
        assert wait_until_not(lambda: False, timeout=1) is None

    def test_waits_for_false(self):
        state = {"value": True}

        def predicate():
            value = state["value"]
            state["value"] = False
            return value

        wait_until_not(predicate, timeout=2, interval=0.05)

    def test_timeout(self):
        with pytest.raises(TimeoutError) as exc_info:
            wait_until_not(lambda: True, timeout=0.2, interval=0.05)
        assert exc_info.value.original_exception is None


class TestElementWaits:
    """Waits driven through an Element."""

    def test_wait_visible_returns_element(self, session, backend):
        node = FakeNode("div", {"id": "box"})
        backend.respond(Locator.exact_attribute("*", "id", "box"), node)
        el = session.find_element({"id": "box"})
        assert el.wait("visible", timeout=1) is el

    def test_wait_enabled_times_out(self, session, backend):
        node = FakeNode("button", {"id": "go"}, enabled=False)
        backend.respond(Locator.exact_attribute("*", "id", "go"), node)
        el = session.find_element({"id": "go"})
        with pytest.raises(TimeoutError):
            el.wait("enabled", timeout=0.2, interval=0.05)

    def test_wait_unknown_state(self, session, backend):
        node = FakeNode("div", {"id": "box"})
        backend.respond(Locator.exact_attribute("*", "id", "box"), node)
        with pytest.raises(ValueError):
            session.find_element({"id": "box"}).wait("focused", timeout=0.1)

    def test_wait_until_hidden(self, session, backend):
        node = FakeNode("div", {"id": "spinner"}, displayed=False)
        backend.respond(Locator.exact_attribute("*", "id", "spinner"), node)
        session.find_element({"id": "spinner"}).wait_until_hidden(timeout=1)

    def test_session_wait_until_passes_session(self, session):
        seen = []
        result = session.wait_until(lambda s: seen.append(s) or s.title(), timeout=1)
        assert result == "Home"
        assert seen[0] is session

# tests/conftest.py
"""
Shared fixtures: an in-memory backend that answers locators from a table
and records every lookup it receives.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from webauto.backend import IBackend
from webauto.config import CacheSpec, SessionConfig
from webauto.locators import Locator
from webauto.session import Session


@dataclass(eq=False)
class FakeNode:
    """Stand-in for a browser element handle."""
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    displayed: bool = True
    enabled: bool = True
    selected: bool = False
    children: List["FakeNode"] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"<{self.tag} {self.attrs} {self.text!r}>"


class FakeBackend(IBackend):
    """IBackend answering from `responses` (Locator -> list of FakeNode)."""

    def __init__(self):
        self.responses: Dict[Locator, List[FakeNode]] = {}
        self.calls: List[Locator] = []
        self.events: List[Any] = []
        self.windows: List[List[str]] = [["w1", "Home", "http://example.test/"]]
        self.current = "w1"
        self.cookies: List[Dict[str, Any]] = []

    def respond(self, locator: Locator, *nodes: FakeNode) -> None:
        self.responses[locator] = list(nodes)

    def find_one(self, locator: Locator) -> Optional[Any]:
        self.calls.append(locator)
        nodes = self.responses.get(locator, [])
        return nodes[0] if nodes else None

    def find_all(self, locator: Locator) -> List[Any]:
        self.calls.append(locator)
        return list(self.responses.get(locator, []))

    def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        return handle.attrs.get(name)

    def get_text(self, handle: Any) -> str:
        return handle.text

    def get_tag_name(self, handle: Any) -> str:
        return handle.tag

    def get_rect(self, handle: Any) -> Dict[str, float]:
        return {"x": 1.0, "y": 2.0, "width": 30.0, "height": 40.0}

    def is_displayed(self, handle: Any) -> bool:
        return handle.displayed

    def is_enabled(self, handle: Any) -> bool:
        return handle.enabled

    def is_selected(self, handle: Any) -> bool:
        return handle.selected

    def click(self, handle: Any) -> None:
        self.events.append(("click", handle))
        if handle.tag == "option" or handle.attrs.get("type") in ("checkbox", "radio"):
            handle.selected = not handle.selected

    def send_keys(self, handle: Any, text: str) -> None:
        self.events.append(("send_keys", handle, text))

    def clear(self, handle: Any) -> None:
        self.events.append(("clear", handle))

    def submit(self, handle: Any) -> None:
        self.events.append(("submit", handle))

    def select_options(self, handle: Any) -> List[Any]:
        return [c for c in handle.children if c.tag == "option"]

    def selected_options(self, handle: Any) -> List[Any]:
        return [o for o in self.select_options(handle) if o.selected]

    def is_multiple(self, handle: Any) -> bool:
        return "multiple" in handle.attrs

    def _matching_options(self, handle: Any, by: str, value: Any) -> List[Any]:
        options = self.select_options(handle)
        if by == "value":
            matched = [o for o in options if o.attrs.get("value") == value]
        elif by == "index":
            matched = [o for i, o in enumerate(options) if i == value]
        elif by == "text":
            matched = [o for o in options if o.text == value]
        else:
            raise ValueError(by)
        if not matched:
            raise LookupError(f"No option with {by} {value!r}")
        return matched

    def select_option(self, handle: Any, by: str, value: Any) -> None:
        self.events.append(("select_option", by, value))
        matched = self._matching_options(handle, by, value)
        if not self.is_multiple(handle):
            for o in self.select_options(handle):
                o.selected = False
            matched = matched[:1]
        for o in matched:
            o.selected = True

    def deselect_option(self, handle: Any, by: str, value: Any) -> None:
        self.events.append(("deselect_option", by, value))
        if not self.is_multiple(handle):
            raise NotImplementedError("You may only deselect options of a multi-select")
        for o in self._matching_options(handle, by, value):
            o.selected = False

    def _window(self, window_id: str) -> List[str]:
        for w in self.windows:
            if w[0] == window_id:
                return w
        raise KeyError(window_id)

    def current_url(self) -> str:
        return self._window(self.current)[2]

    def title(self) -> str:
        return self._window(self.current)[1]

    def page_source(self) -> str:
        return "<html></html>"

    def list_windows(self) -> List[str]:
        return [w[0] for w in self.windows]

    def current_window(self) -> str:
        return self.current

    def switch_to_window(self, window_id: str) -> None:
        self._window(window_id)
        self.current = window_id
        self.events.append(("switch_to_window", window_id))

    def switch_to_frame(self, frame: Any) -> None:
        self.events.append(("switch_to_frame", frame))

    def switch_to_default(self) -> None:
        self.events.append(("switch_to_default",))

    def active_element(self) -> Any:
        return FakeNode("input", {"id": "focused"})

    def navigate_back(self) -> None:
        self.events.append(("back",))

    def navigate_forward(self) -> None:
        self.events.append(("forward",))

    def refresh(self) -> None:
        self.events.append(("refresh",))

    def navigate_to(self, url: str) -> None:
        self.events.append(("navigate_to", url))
        self._window(self.current)[2] = url

    def close_window(self) -> None:
        self.events.append(("close_window", self.current))
        self.windows = [w for w in self.windows if w[0] != self.current]

    def quit(self) -> None:
        self.events.append(("quit",))

    def execute_script(self, script: str, *args: Any) -> Any:
        self.events.append(("execute_script", script, args))
        return len(args)

    def screenshot(self, fmt: str) -> Any:
        if fmt == "base64":
            return "iVBORw0KGgo="
        if fmt == "bytes":
            return b"\x89PNG\r\n\x1a\n"
        raise ValueError(fmt)

    def get_cookies(self) -> List[Dict[str, Any]]:
        return list(self.cookies)

    def add_cookie(self, cookie: Dict[str, Any]) -> None:
        self.cookies.append(dict(cookie))

    def delete_cookie(self, name: str) -> None:
        self.cookies = [c for c in self.cookies if c.get("name") != name]

    def delete_all_cookies(self) -> None:
        self.cookies = []


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend):
    s = Session(backend)
    yield s
    if s.is_active:
        s.quit()


@pytest.fixture
def caching_session(backend):
    s = Session(backend, config=SessionConfig(cache=CacheSpec(enabled=True)))
    yield s
    if s.is_active:
        s.quit()

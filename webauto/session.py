# webauto/session.py
"""
@file session.py
@brief Session: owns a browser backend and its element cache.
"""

from __future__ import annotations
import base64
import logging
import shutil
import weakref
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from .backend import IBackend, SeleniumBackend
from .cache import ElementCache
from .config import SessionConfig
from .element import Element
from .exceptions import WebAutoError
from .locators import Locator
from .predicates import Query
from .resolver import Resolver
from .waits import wait_until
from .window import WindowHandle


_SESSIONS: "weakref.WeakValueDictionary[str, Session]" = weakref.WeakValueDictionary()

SCREENSHOT_FORMATS = ("file", "base64", "bytes")


class Session:
    """
    Owns one backend connection and one ElementCache.

    Every navigation and window/frame switch empties the cache, since
    elements found on the previous page are no longer valid. DOM changes
    made by the page itself without navigation are not detected.

    A session must not be driven from several threads at once.
    """

    def __init__(
        self,
        backend: IBackend,
        config: Optional[SessionConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.backend = backend
        self.config = config or SessionConfig()
        self.cache = ElementCache(self.config.cache)
        self.log = logger or logging.getLogger("webauto")
        self.session_id = uuid4().hex
        self._active = True
        _SESSIONS[self.session_id] = self

    @classmethod
    def start(
        cls,
        browser: Optional[str] = None,
        url: Optional[str] = None,
        config: Optional[SessionConfig] = None,
        headless: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Session:
        """
        Launch a local browser and optionally open a URL.

        @param browser Overrides config.browser
        @param url Page to open after start
        @param config Session configuration (defaults when None)
        @param headless Overrides config.headless
        """
        config = config or SessionConfig()
        backend = SeleniumBackend.launch(
            browser or config.browser,
            headless=config.headless if headless is None else headless,
            arguments=list(config.arguments),
        )
        session = cls(backend, config=config, logger=logger)
        session.log.info("Started session %s", session.session_id)
        if url:
            session.get_url(url)
        return session

    @staticmethod
    def lookup(session_id: str) -> Optional[Session]:
        """Active session with the given id, if any."""
        return _SESSIONS.get(session_id)

    @property
    def is_active(self) -> bool:
        return self._active

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._active:
            self.quit()

    def __repr__(self) -> str:
        state = "active" if self._active else "quit"
        return f"<Session {self.session_id} {state}>"

    # --- Navigation ---

    def back(self) -> Session:
        self.backend.navigate_back()
        self.cache.seed()
        return self

    def forward(self) -> Session:
        self.backend.navigate_forward()
        self.cache.seed()
        return self

    def refresh(self) -> Session:
        self.backend.refresh()
        self.cache.seed()
        return self

    def get_url(self, url: str) -> Session:
        """Navigate to a URL."""
        self.log.info("Navigating to %s", url)
        self.backend.navigate_to(url)
        self.cache.seed()
        return self

    def to(self, url: str) -> Session:
        """Alias of get_url."""
        return self.get_url(url)

    def close(self) -> Session:
        """
        Close the current window.

        When other windows remain, focus moves to the next window if the
        closed one was first, otherwise to the previous one.
        """
        handles = self.backend.list_windows()
        if len(handles) > 1:
            current = self.backend.current_window()
            idx = handles.index(current)
            neighbour = handles[idx + 1] if idx == 0 else handles[idx - 1]
            self.backend.close_window()
            self.backend.switch_to_window(neighbour)
        else:
            self.backend.close_window()
        self.cache.seed()
        return self

    def quit(self) -> None:
        """Destroy the browser session."""
        self.log.info("Quitting session %s", self.session_id)
        try:
            self.backend.quit()
        finally:
            self.cache.seed()
            self._active = False
            _SESSIONS.pop(self.session_id, None)

    # --- Page state ---

    def current_url(self) -> str:
        return self.backend.current_url()

    def title(self) -> str:
        return self.backend.title()

    def page_source(self) -> str:
        return self.backend.page_source()

    # --- Windows and frames ---

    def window_handle(self) -> WindowHandle:
        return WindowHandle(
            handle=self.backend.current_window(),
            title=self.title(),
            url=self.current_url(),
            session_id=self.session_id,
        )

    def window_handles(self) -> List[WindowHandle]:
        """
        Snapshot of every open window.

        Each window is focused briefly to read its title and url; focus is
        restored afterwards and the cache is left untouched.
        """
        current = self.backend.current_window()
        records = []
        try:
            for window_id in self.backend.list_windows():
                self.backend.switch_to_window(window_id)
                records.append(WindowHandle(
                    handle=window_id,
                    title=self.backend.title(),
                    url=self.backend.current_url(),
                    session_id=self.session_id,
                ))
        finally:
            self.backend.switch_to_window(current)
        return records

    def other_window_handles(self) -> List[WindowHandle]:
        current = self.backend.current_window()
        return [w for w in self.window_handles() if w.handle != current]

    def switch_to_window(self, handle: Union[str, int, WindowHandle, None]) -> Session:
        """
        Focus a window by backend id, WindowHandle, or enumeration index.
        """
        if handle is None:
            raise WebAutoError("No window can be found")
        if isinstance(handle, WindowHandle):
            if handle.session_id != self.session_id:
                raise WebAutoError(
                    f"Window {handle.handle} belongs to session {handle.session_id}, not {self.session_id}"
                )
            window_id = handle.handle
        elif isinstance(handle, int):
            windows = self.window_handles()
            if not 0 <= handle < len(windows):
                raise WebAutoError(f"No window at index {handle} ({len(windows)} open)")
            window_id = windows[handle].handle
        else:
            window_id = str(handle)
        self.backend.switch_to_window(window_id)
        self.cache.seed()
        return self

    def switch_to_other_window(self) -> Session:
        """Given exactly two open windows, focus the one that is not current."""
        others = self.other_window_handles()
        if len(others) != 1:
            raise WebAutoError(
                "You may only use this function when two and only two browser windows are open."
            )
        return self.switch_to_window(others[0])

    def switch_to_frame(self, frame: Union[int, str, Element]) -> Session:
        if isinstance(frame, Element):
            frame = frame.handle
        self.backend.switch_to_frame(frame)
        self.cache.seed()
        return self

    def switch_to_default(self) -> Session:
        """Focus the top-level document."""
        self.backend.switch_to_default()
        self.cache.seed()
        return self

    def switch_to_active(self) -> Element:
        """Element that currently has focus."""
        return Element(self.backend.active_element(), self.session_id, "active-element")

    # --- Finding elements ---

    def find_elements(self, spec: Any) -> List[Element]:
        """All elements matching a query spec (mapping or ancestor chain)."""
        return Resolver(self, "find_elements").find_them(spec)

    def find_element(self, spec: Any) -> Element:
        """First match, or a MissingElement. Never consults the cache."""
        return Resolver(self, "find_element").find_element(spec)

    def find_it(self, spec: Any) -> Element:
        """First match, served from and stored in the element cache."""
        return Resolver(self, "find_it").find_it(spec)

    def exists(self, spec: Any) -> bool:
        return self.find_element(spec).exists()

    def locate(self, locator: Locator) -> Element:
        return Resolver(self, "locate").locate(locator)

    def locate_all(self, locator: Locator) -> List[Element]:
        return Resolver(self, "locate_all").locate_all(locator)

    def find_windows(self, criteria: Any) -> List[WindowHandle]:
        return Resolver(self, "find_windows").find_windows(criteria)

    def find_window(self, criteria: Any) -> Optional[WindowHandle]:
        return Resolver(self, "find_window").find_window(criteria)

    def find_table_cell(self, table: Any, coordinates: Any) -> Element:
        return Resolver(self, "find_table_cell").find_table_cell(table, coordinates)

    def find_table_row(self, table: Any, row: int) -> List[Element]:
        return Resolver(self, "find_table_row").find_table_row(table, row)

    def seed_cache(self, entries: Optional[Iterable[Tuple[Query, Element]]] = None) -> None:
        """Replace the element cache contents (empty by default)."""
        self.cache.seed(entries)

    # --- Pass-throughs ---

    def execute_script(self, script: str, *args: Any) -> Any:
        unwrapped = [a.handle if isinstance(a, Element) else a for a in args]
        return self.backend.execute_script(script, *unwrapped)

    def get_screenshot(self, fmt: str = "file", destination: Optional[str] = None) -> Any:
        """
        Capture the viewport.

        @param fmt "file" (path of a temporary PNG), "base64" or "bytes"
        @param destination Optional path the PNG is also written to
        """
        if fmt not in SCREENSHOT_FORMATS:
            raise ValueError(f"Unknown screenshot format: {fmt}. Use one of {SCREENSHOT_FORMATS}")
        output = self.backend.screenshot(fmt)
        if destination:
            if fmt == "file":
                shutil.copyfile(output, destination)
            else:
                data = base64.b64decode(output) if fmt == "base64" else output
                with open(destination, "wb") as f:
                    f.write(data)
            self.log.info("Screenshot written to %s", destination)
        return output

    def cookies(self) -> List[Dict[str, Any]]:
        return self.backend.get_cookies()

    def cookie_named(self, name: str) -> Optional[Dict[str, Any]]:
        for cookie in self.backend.get_cookies():
            if cookie.get("name") == name:
                return cookie
        return None

    def add_cookie(self, cookie: Dict[str, Any]) -> None:
        self.backend.add_cookie(cookie)

    def delete_cookie_named(self, name: str) -> None:
        self.backend.delete_cookie(name)

    def delete_all_cookies(self) -> None:
        self.backend.delete_all_cookies()

    def wait_until(
        self,
        predicate: Callable[[Session], Any],
        timeout: float = 10.0,
        interval: float = 0.2,
        description: str = "page condition",
    ) -> Any:
        """Poll predicate(session) until it returns a truthy value."""
        return wait_until(lambda: predicate(self), timeout=timeout, interval=interval, description=description)

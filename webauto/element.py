# webauto/element.py
"""
@file element.py
@brief Element wrapper with state queries, actions and waits.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .exceptions import ElementNotFoundError, InvalidArgumentError, WebAutoError
from .waits import wait_until, wait_until_not

if TYPE_CHECKING:
    from .backend import IBackend
    from .session import Session


class Element:
    """
    Element wrapper providing high-level operations on a page element.

    The wrapper keeps only the owning session's id; the session itself is
    looked up in the session registry on demand, so an element never keeps
    a session alive.
    """

    def __init__(self, handle: Any, session_id: str, query: Any = None):
        """
        @param handle Opaque backend element handle
        @param session_id Id of the owning Session
        @param query The query this element was found by, for error messages
        """
        self._handle = handle
        self._session_id = session_id
        self._query = query

    @property
    def handle(self) -> Any:
        """Get the underlying backend element."""
        return self._handle

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def query(self) -> Any:
        return self._query

    @property
    def session(self) -> "Session":
        from .session import Session
        session = Session.lookup(self._session_id)
        if session is None:
            raise WebAutoError(f"Session '{self._session_id}' is no longer active")
        return session

    @property
    def _backend(self) -> "IBackend":
        return self.session.backend

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        return self._session_id == other._session_id and self._handle == other._handle

    def __hash__(self) -> int:
        return hash((self._session_id, self._handle))

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<Element {self._handle!r} query={self._query!r}>"

    # --- Reads ---

    def attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when the element has no such attribute."""
        return self._backend.get_attribute(self._handle, name)

    def text(self) -> str:
        return self._backend.get_text(self._handle)

    def tag(self) -> str:
        return self._backend.get_tag_name(self._handle)

    def value(self) -> Optional[str]:
        return self.attribute("value")

    def html(self) -> Optional[str]:
        """Outer HTML of the element."""
        return self.attribute("outerHTML")

    def rect(self) -> Dict[str, float]:
        return self._backend.get_rect(self._handle)

    def location(self) -> Dict[str, float]:
        r = self.rect()
        return {"x": r["x"], "y": r["y"]}

    def size(self) -> Dict[str, float]:
        r = self.rect()
        return {"width": r["width"], "height": r["height"]}

    # --- State Queries ---

    def exists(self) -> bool:
        return True

    def is_visible(self) -> bool:
        return bool(self._backend.is_displayed(self._handle))

    def is_present(self) -> bool:
        """Exists and is visible."""
        return self.exists() and self.is_visible()

    def is_enabled(self) -> bool:
        return bool(self._backend.is_enabled(self._handle))

    def is_selected(self) -> bool:
        return bool(self._backend.is_selected(self._handle))

    # --- Actions ---

    def click(self) -> Element:
        self._backend.click(self._handle)
        return self

    def send_keys(self, text: str) -> Element:
        self._backend.send_keys(self._handle, text)
        return self

    def input_text(self, text: str, clear_first: bool = False) -> Element:
        """Type text into the element, optionally clearing it first."""
        if clear_first:
            self.clear()
        return self.send_keys(text)

    def clear(self) -> Element:
        self._backend.clear(self._handle)
        return self

    def submit(self) -> Element:
        self._backend.submit(self._handle)
        return self

    def toggle(self) -> Element:
        """Flip a checkbox."""
        return self.click()

    def select(self) -> Element:
        """Select a checkbox, radio button or option if it is not already selected."""
        if not self.is_selected():
            self.click()
        return self

    def deselect(self) -> Element:
        if self.is_selected():
            self.click()
        return self

    # --- Select Lists ---

    SELECT_BY = ("value", "index", "text")

    def _option_criterion(self, value: Any, index: Any, text: Any):
        given = [(by, v) for by, v in zip(self.SELECT_BY, (value, index, text)) if v is not None]
        if len(given) != 1:
            raise InvalidArgumentError(
                f"Give exactly one of value, index or text to pick an option, got {len(given)}")
        return given[0]

    def _wrap(self, handles: List[Any]) -> List[Element]:
        return [Element(h, self._session_id, self._query) for h in handles]

    def all_options(self) -> List[Element]:
        return self._wrap(self._backend.select_options(self._handle))

    def all_selected_options(self) -> List[Element]:
        return self._wrap(self._backend.selected_options(self._handle))

    def first_selected_option(self) -> Element:
        """First selected option, or a MissingElement when nothing is selected."""
        selected = self.all_selected_options()
        if not selected:
            return MissingElement(self._session_id, self._query)
        return selected[0]

    def is_multiple(self) -> bool:
        """True when the select list allows several selected options."""
        return bool(self._backend.is_multiple(self._handle))

    def select_option(self, value: Optional[str] = None, index: Optional[int] = None,
                      text: Optional[str] = None) -> Element:
        """
        Select the option(s) of a select list matching one criterion.

        @param value Option value attribute
        @param index 0-based option position
        @param text Visible option text
        @return self for chaining
        """
        by, v = self._option_criterion(value, index, text)
        self._backend.select_option(self._handle, by, v)
        return self

    def deselect_option(self, value: Optional[str] = None, index: Optional[int] = None,
                        text: Optional[str] = None) -> Element:
        """Deselect the option(s) matching one criterion (see select_option)."""
        by, v = self._option_criterion(value, index, text)
        self._backend.deselect_option(self._handle, by, v)
        return self

    def select_by_value(self, value: str) -> Element:
        return self.select_option(value=value)

    def select_by_index(self, index: int) -> Element:
        return self.select_option(index=index)

    def select_by_text(self, text: str) -> Element:
        return self.select_option(text=text)

    def deselect_by_value(self, value: str) -> Element:
        return self.deselect_option(value=value)

    def deselect_by_index(self, index: int) -> Element:
        return self.deselect_option(index=index)

    def deselect_by_text(self, text: str) -> Element:
        return self.deselect_option(text=text)

    def select_all(self) -> Element:
        for option in self.all_options():
            option.select()
        return self

    def deselect_all(self) -> Element:
        for option in self.all_selected_options():
            option.deselect()
        return self

    # --- Wait Operations ---

    def wait(self, state: str = "visible", timeout: float = 10.0, interval: float = 0.2) -> Element:
        """
        Wait for the element to reach a state.

        @param state One of: "visible", "enabled", "selected"
        @param timeout Seconds to wait
        @param interval Polling interval
        @return self for chaining
        """
        checks = {
            "visible": self.is_visible,
            "enabled": lambda: self.is_visible() and self.is_enabled(),
            "selected": self.is_selected,
        }
        if state not in checks:
            raise ValueError(f"Unknown state: {state}. Use 'visible', 'enabled' or 'selected'")
        wait_until(checks[state], timeout=timeout, interval=interval,
                   description=f"element {self._query!r} to be {state}")
        return self

    def wait_until_hidden(self, timeout: float = 10.0, interval: float = 0.2) -> None:
        wait_until_not(self.is_visible, timeout=timeout, interval=interval,
                       description=f"element {self._query!r} to be hidden")


class MissingElement(Element):
    """
    Result of a single-element lookup that matched nothing.

    Falsy, reports every state as False and refuses actions, so existence
    checks compose without exception handling.
    """

    def __init__(self, session_id: str, query: Any = None):
        super().__init__(None, session_id, query)

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MissingElement)

    def __hash__(self) -> int:
        return hash(MissingElement)

    def __repr__(self) -> str:
        return f"<MissingElement query={self._query!r}>"

    def _missing(self, action: str):
        raise ElementNotFoundError(self._query, action=action)

    def attribute(self, name: str) -> Optional[str]:
        return None

    def text(self) -> str:
        return ""

    def tag(self) -> str:
        self._missing("tag")

    def rect(self) -> Dict[str, float]:
        self._missing("rect")

    def exists(self) -> bool:
        return False

    def is_visible(self) -> bool:
        return False

    def is_enabled(self) -> bool:
        return False

    def is_selected(self) -> bool:
        return False

    def click(self) -> Element:
        self._missing("click")

    def send_keys(self, text: str) -> Element:
        self._missing("send_keys")

    def clear(self) -> Element:
        self._missing("clear")

    def submit(self) -> Element:
        self._missing("submit")

    def all_options(self) -> List[Element]:
        return []

    def all_selected_options(self) -> List[Element]:
        return []

    def is_multiple(self) -> bool:
        return False

    def select_option(self, value: Optional[str] = None, index: Optional[int] = None,
                      text: Optional[str] = None) -> Element:
        self._missing("select_option")

    def deselect_option(self, value: Optional[str] = None, index: Optional[int] = None,
                        text: Optional[str] = None) -> Element:
        self._missing("deselect_option")

    def select_all(self) -> Element:
        self._missing("select_all")

    def deselect_all(self) -> Element:
        self._missing("deselect_all")

# webauto/window.py
"""
@file window.py
@brief Snapshot record of an open browser window.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import WebAutoError

if TYPE_CHECKING:
    from .session import Session


@dataclass(frozen=True)
class WindowHandle:
    """
    Backend window id plus the title and url read when the handle was built.

    The title and url are not refreshed; enumerate the windows again for
    current values. The owning session is referenced by id only.
    """
    handle: str
    title: str
    url: str
    session_id: str

    @property
    def session(self) -> "Session":
        from .session import Session
        session = Session.lookup(self.session_id)
        if session is None:
            raise WebAutoError(f"Session '{self.session_id}' is no longer active")
        return session

    def switch_to(self) -> "Session":
        """Focus this window in its session."""
        return self.session.switch_to_window(self)

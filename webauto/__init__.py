# webauto/__init__.py
"""
webauto - declarative element queries and element caching over Selenium WebDriver.

This package provides:
- Session: browser session owning a backend and an element cache
- Resolver: query spec -> locators -> elements (rule table, regex post-filter)
- Locator builders: XPath/CSS construction for attribute maps
- Predicates: Exact / Pattern values and query normalisation
- Config: YAML session configuration with cache include/exclude rules
"""

from webauto.backend import IBackend, SeleniumBackend
from webauto.cache import ElementCache
from webauto.config import CacheSpec, SessionConfig
from webauto.element import Element, MissingElement
from webauto.exceptions import (
    WebAutoError,
    ConfigError,
    UsageError,
    InvalidArgumentError,
    UnsupportedCombinationError,
    ElementNotFoundError,
    TimeoutError,
)
from webauto.locators import Locator
from webauto.predicates import Exact, Pattern, PredicateSet, load_query, normalize_query
from webauto.resolver import (
    Resolver,
    find_element,
    find_it,
    find_table_cell,
    find_table_row,
    find_them,
    find_window,
    find_windows,
)
from webauto.session import Session
from webauto.window import WindowHandle

__all__ = [
    "IBackend",
    "SeleniumBackend",
    "ElementCache",
    "CacheSpec",
    "SessionConfig",
    "Element",
    "MissingElement",
    "WebAutoError",
    "ConfigError",
    "UsageError",
    "InvalidArgumentError",
    "UnsupportedCombinationError",
    "ElementNotFoundError",
    "TimeoutError",
    "Locator",
    "Exact",
    "Pattern",
    "PredicateSet",
    "load_query",
    "normalize_query",
    "Resolver",
    "find_element",
    "find_it",
    "find_table_cell",
    "find_table_row",
    "find_them",
    "find_window",
    "find_windows",
    "Session",
    "WindowHandle",
]

__version__ = "1.0.0"

# webauto/resolver.py
"""
@file resolver.py
@brief Resolves declarative query specs into elements.

A flat query is classified by an ordered rule table; the first rule whose
guard matches decides how the query is turned into locators and which
pattern predicates are applied after the fetch. The order is significant:
for example `xpath`/`css` win over every other key, and semantic aliases
are rewritten before the checkable and single-attribute rules see them.

    1. {} or []                     -> no elements
    2. list of mappings             -> ancestor chain (find_by_hierarchy)
    3. only `tag`                   -> tag-name locator
    4. no tag, xpath or css         -> retry with tag "*"
    5. xpath plus other keys        -> retry with xpath alone
    6. css plus other keys          -> retry with css alone
    7. index                        -> ordinal path expression
    8. radio/checkbox/textfield/password/filefield tag -> retry as input[type]
    9. input radio/checkbox + text/label -> checkable by enclosing text
   10. tag "button*"                -> semantic buttons
   11. one non-tag attribute        -> xpath, css, tag + regex, or equality lookup
   12. any pattern value            -> exact part locates, patterns filter
   13. otherwise                    -> path expression over all predicates
"""

from __future__ import annotations
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .element import Element, MissingElement
from .exceptions import InvalidArgumentError, UnsupportedCombinationError, UsageError
from .filters import filter_elements_by_regex
from .locators import (
    Locator,
    build_locator,
    build_xpath,
    build_xpath_with_ancestry,
    by_attr_eq,
    checkable_by_text_locator,
    semantic_button_locator,
    table_cell_locator,
    table_header_probe,
    table_row_locator,
)
from .predicates import WILDCARD, Chain, Pattern, PredicateSet, normalize_query

if TYPE_CHECKING:
    from .session import Session
    from .window import WindowHandle


log = logging.getLogger("webauto.resolver")

SEMANTIC_INPUTS = {
    "radio": "radio",
    "checkbox": "checkbox",
    "textfield": "text",
    "password": "password",
    "filefield": "file",
}

SEMANTIC_BUTTON_TAG = "button*"

WINDOW_FIELDS = ("handle", "title", "url")


@dataclass(frozen=True)
class Rule:
    """One row of the dispatch table."""
    name: str
    applies: Callable[[PredicateSet], bool]
    resolve: Callable[["Resolver", PredicateSet], List[Element]]


def _require_session(session: Any, operation: str) -> "Session":
    from .session import Session
    if not isinstance(session, Session) or not session.is_active:
        raise UsageError(operation, session)
    return session


# --- Guards ---

def _only_tag(p: PredicateSet) -> bool:
    return list(p) == ["tag"]


def _no_tag_or_selector(p: PredicateSet) -> bool:
    return "tag" not in p and "xpath" not in p and "css" not in p


def _xpath_with_others(p: PredicateSet) -> bool:
    return len(p) > 1 and "xpath" in p


def _css_with_others(p: PredicateSet) -> bool:
    return len(p) > 1 and "css" in p


def _has_index(p: PredicateSet) -> bool:
    return "index" in p


def _semantic_input(p: PredicateSet) -> bool:
    return p.tag in SEMANTIC_INPUTS


def _checkable_with_text(p: PredicateSet) -> bool:
    return (
        p.tag == "input"
        and p.raw("type") in ("radio", "checkbox")
        and ("text" in p or "label" in p)
    )


def _semantic_button(p: PredicateSet) -> bool:
    return p.tag == SEMANTIC_BUTTON_TAG


def _single_attribute(p: PredicateSet) -> bool:
    return len(p.non_tag_keys()) == 1


def _has_pattern(p: PredicateSet) -> bool:
    return p.has_pattern()


def _always(p: PredicateSet) -> bool:
    return True


# --- Handlers ---

def _by_tag(r: "Resolver", p: PredicateSet) -> List[Element]:
    if p.tag == SEMANTIC_BUTTON_TAG:
        return r.find_semantic_buttons(p)
    return r.locate_all(Locator.tag_name(p.tag))


def _default_tag(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.dispatch(p.with_values(tag=WILDCARD))


def _xpath_alone(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.dispatch(PredicateSet({"xpath": p["xpath"]}))


def _css_alone(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.dispatch(PredicateSet({"css": p["css"]}))


def _by_index(r: "Resolver", p: PredicateSet) -> List[Element]:
    # semantic tags are not element names; resolve them before counting
    if p.tag == SEMANTIC_BUTTON_TAG:
        return r.find_semantic_buttons(p)
    if p.tag in SEMANTIC_INPUTS:
        p = p.with_values(tag="input", type=SEMANTIC_INPUTS[p.tag])
    elements = r.locate_all(Locator.xpath(build_xpath(p.tag, p.exact().without("tag"))))
    return filter_elements_by_regex(elements, p) if p.has_pattern() else elements


def _semantic_alias(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.dispatch(p.with_values(tag="input", type=SEMANTIC_INPUTS[p.tag]))


def _checkables(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.find_checkables_by_text(p)


def _buttons(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.find_semantic_buttons(p)


def _one_attribute(r: "Resolver", p: PredicateSet) -> List[Element]:
    key = p.non_tag_keys()[0]
    value = p[key]
    if key == "xpath":
        return r.locate_all(Locator.xpath(p.raw("xpath")))
    if key == "css":
        return r.locate_all(Locator.css(p.raw("css")))
    if isinstance(value, Pattern):
        return r.find_elements_by_regex_alone(p)
    return r.locate_all(by_attr_eq(p.tag, key, value.value))


def _split_patterns(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.find_elements_by_regex(p)


def _generic(r: "Resolver", p: PredicateSet) -> List[Element]:
    return r.locate_all(build_locator(p))


RULES = (
    Rule("tag-only", _only_tag, _by_tag),
    Rule("default-tag", _no_tag_or_selector, _default_tag),
    Rule("xpath-precedence", _xpath_with_others, _xpath_alone),
    Rule("css-precedence", _css_with_others, _css_alone),
    Rule("index", _has_index, _by_index),
    Rule("semantic-input", _semantic_input, _semantic_alias),
    Rule("checkable-by-text", _checkable_with_text, _checkables),
    Rule("semantic-button", _semantic_button, _buttons),
    Rule("single-attribute", _single_attribute, _one_attribute),
    Rule("regex", _has_pattern, _split_patterns),
    Rule("generic", _always, _generic),
)


class Resolver:
    """
    Resolves query specs against a session's backend.

    Stateless apart from the session it is bound to; the session owns
    the cache.
    """

    def __init__(self, session: "Session", operation: str = "Resolver"):
        """
        @param session Live Session to resolve against
        @param operation Name reported in the UsageError if `session` is not a Session
        """
        self.session = _require_session(session, operation)

    @property
    def backend(self):
        return self.session.backend

    # --- Raw locators ---

    def locate(self, locator: Locator) -> Element:
        """First element matching a locator, or a MissingElement."""
        handle = self.backend.find_one(locator)
        if handle is None:
            return MissingElement(self.session.session_id, locator)
        return Element(handle, self.session.session_id, locator)

    def locate_all(self, locator: Locator) -> List[Element]:
        sid = self.session.session_id
        handles = self.backend.find_all(locator)
        log.debug("%s matched %d element(s)", locator, len(handles))
        return [Element(h, sid, locator) for h in handles]

    # --- Query dispatch ---

    def find_them(self, spec: Any) -> List[Element]:
        """
        Every element matching a query spec, in document order.

        @param spec Attribute mapping, or list of mappings (ancestor chain)
        @return List of Elements; empty for {} / [] or when nothing matches
        """
        query = normalize_query(spec)
        if len(query) == 0:
            return []
        if isinstance(query, tuple):
            return self.find_by_hierarchy(query)
        return self.dispatch(query)

    def dispatch(self, preds: PredicateSet) -> List[Element]:
        """Run a flat predicate set through the rule table."""
        if isinstance(preds.get("tag"), Pattern):
            raise InvalidArgumentError("The tag of a query must be a literal, not a pattern")
        for rule in RULES:
            if rule.applies(preds):
                log.debug("rule %s for %r", rule.name, preds)
                return rule.resolve(self, preds)
        raise AssertionError("generic rule always applies")

    def find_element(self, spec: Any) -> Element:
        """First match of find_them, or a MissingElement."""
        query = normalize_query(spec)
        elements = self.find_them(query)
        if elements:
            return elements[0]
        return MissingElement(self.session.session_id, query)

    def find_it(self, spec: Any) -> Element:
        """
        Cache-aware find_element.

        A cached element for an equal query is returned without touching
        the backend. Otherwise the first match is resolved and stored when
        caching is enabled, it exists, and the cache rules allow it.
        """
        query = normalize_query(spec)
        cache = self.session.cache
        cached = cache.lookup(query)
        if cached is not None:
            return cached
        element = self.find_element(query)
        if cache.enabled and element.exists() and cache.is_cacheable(query, element):
            cache.insert(query, element)
        return element

    # --- Strategies ---

    def find_elements_by_regex_alone(self, preds: PredicateSet) -> List[Element]:
        """Every element with the tag, filtered by the single pattern predicate."""
        elements = self.locate_all(Locator.tag_name(preds.tag or WILDCARD))
        return filter_elements_by_regex(elements, preds)

    def find_elements_by_regex(self, preds: PredicateSet) -> List[Element]:
        """Locate with the exact predicates, then filter by the pattern ones."""
        elements = self.dispatch(preds.exact())
        return filter_elements_by_regex(elements, preds)

    def find_semantic_buttons(self, preds: PredicateSet) -> List[Element]:
        elements = self.locate_all(semantic_button_locator(preds))
        if preds.has_pattern():
            return filter_elements_by_regex(elements, preds)
        return elements

    def find_checkables_by_text(self, preds: PredicateSet) -> List[Element]:
        if preds.has_pattern():
            raise UnsupportedCombinationError(
                "Combining regular expressions and the 'text' attribute "
                "for finding radio buttons and checkboxes is not supported."
            )
        return self.locate_all(checkable_by_text_locator(preds))

    def find_by_hierarchy(self, chain: Chain) -> List[Element]:
        """
        Descendants matching the last segment inside the earlier ones.

        Patterns are only allowed in the last segment. With patterns there,
        the path also selects every descendant of the matches, and the
        candidates are narrowed by tag and then by the patterns.
        """
        for i, segment in enumerate(chain[:-1]):
            if segment.has_pattern():
                raise InvalidArgumentError(
                    f"You may not pass in a regex until the last segment of an "
                    f"ancestor chain (segment {i} has {list(segment.patterns())})"
                )
        last = chain[-1]
        if not last.has_pattern():
            return self.locate_all(Locator.xpath(build_xpath_with_ancestry(chain)))

        base = build_xpath_with_ancestry(tuple(chain[:-1]) + (last.exact(),))
        candidates = self.locate_all(Locator.xpath(f"{base}|{base}//*"))
        tag = last.tag
        if tag and tag != WILDCARD:
            candidates = [el for el in candidates if el.tag() == tag.lower()]
        return filter_elements_by_regex(candidates, last)

    # --- Tables ---

    @staticmethod
    def _table_spec(table: Any) -> PredicateSet:
        query = normalize_query(table)
        if not isinstance(query, PredicateSet) or not query:
            raise InvalidArgumentError("The table must be identified by a non-empty attribute mapping")
        return query

    def _has_header_row(self, table: PredicateSet) -> bool:
        return self.backend.find_one(table_header_probe(table)) is not None

    def find_table_cell(self, table: Any, coordinates: Any) -> Element:
        """
        Cell at zero-based (row, col) of the table matched by `table`.

        Row 0 addresses header cells when the first row has any.
        """
        if isinstance(coordinates, (str, bytes)) or not isinstance(coordinates, Sequence) \
                or len(coordinates) != 2:
            raise InvalidArgumentError("The coordinates parameter must be a sequence with two items.")
        try:
            row, col = int(coordinates[0]), int(coordinates[1])
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"Coordinates must be integers, got {coordinates!r}")
        spec = self._table_spec(table)
        header = row == 0 and self._has_header_row(spec)
        return self.locate(table_cell_locator(spec, row, col, header))

    def find_table_row(self, table: Any, row: int) -> List[Element]:
        """All cells of the zero-based row of the table matched by `table`."""
        try:
            row = int(row)
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"Row must be an integer, got {row!r}")
        spec = self._table_spec(table)
        header = row == 0 and self._has_header_row(spec)
        return self.locate_all(table_row_locator(spec, row, header))

    # --- Windows ---

    def find_windows(self, criteria: Any) -> List["WindowHandle"]:
        """
        Open windows matching the criteria.

        Keys are `handle`, `title` and `url` (exact or pattern), or `index`
        for the window at that position.
        """
        query = normalize_query(criteria)
        if not isinstance(query, PredicateSet):
            raise InvalidArgumentError("Window criteria must be a mapping")
        unknown = set(query) - set(WINDOW_FIELDS) - {"index"}
        if unknown:
            raise InvalidArgumentError(
                f"Unknown window criteria {sorted(unknown)}. Allowed: {list(WINDOW_FIELDS) + ['index']}"
            )
        windows = self.session.window_handles()
        if "index" in query:
            try:
                index = int(query.raw("index"))
            except (TypeError, ValueError):
                raise InvalidArgumentError(f"Window index must be an integer, got {query.raw('index')!r}")
            if 0 <= index < len(windows):
                return [windows[index]]
            return []
        return [
            w for w in windows
            if all(value.matches(getattr(w, key)) for key, value in query.items())
        ]

    def find_window(self, criteria: Any) -> Optional["WindowHandle"]:
        windows = self.find_windows(criteria)
        return windows[0] if windows else None


# --- Functional API ---

def find_them(session: Any, spec: Any) -> List[Element]:
    return Resolver(session, "find_them").find_them(spec)


def find_element(session: Any, spec: Any) -> Element:
    return Resolver(session, "find_element").find_element(spec)


def find_it(session: Any, spec: Any) -> Element:
    return Resolver(session, "find_it").find_it(spec)


def find_windows(session: Any, criteria: Any) -> List["WindowHandle"]:
    return Resolver(session, "find_windows").find_windows(criteria)


def find_window(session: Any, criteria: Any) -> Optional["WindowHandle"]:
    return Resolver(session, "find_window").find_window(criteria)


def find_table_cell(session: Any, table: Any, coordinates: Any) -> Element:
    return Resolver(session, "find_table_cell").find_table_cell(table, coordinates)


def find_table_row(session: Any, table: Any, row: int) -> List[Element]:
    return Resolver(session, "find_table_row").find_table_row(table, row)

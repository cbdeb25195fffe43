# webauto/locators.py
"""
@file locators.py
@brief Locator value type and the builders that turn predicate sets into locators.

Only exact predicates reach these builders; pattern predicates are left to
the post-filter in filters.py.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .exceptions import InvalidArgumentError
from .predicates import WILDCARD, Exact, PredicateSet


# Attribute names the backend can look up by equality without a path expression
NATIVE_ATTRIBUTES = frozenset({"id", "name", "class"})

# Keys that never become attribute tests in a path expression
_NON_ATTRIBUTE_KEYS = frozenset({"tag", "xpath", "css", "index"})

BUTTON_ALTERNATIVES = (
    "//input[@type='submit']",
    "//input[@type='reset']",
    "//input[@type='image']",
    "//input[@type='button']",
    "//button",
)


@dataclass(frozen=True)
class Locator:
    """
    Backend-executable selector.

    kind is one of: "css", "xpath", "tag", "attribute". For "attribute",
    `tag` and `attribute` name the equality lookup and `value` the expected value.
    """
    kind: str
    value: str
    tag: Optional[str] = None
    attribute: Optional[str] = None

    CSS = "css"
    XPATH = "xpath"
    TAG = "tag"
    ATTRIBUTE = "attribute"

    @classmethod
    def css(cls, selector: str) -> Locator:
        return cls(cls.CSS, str(selector))

    @classmethod
    def xpath(cls, expression: str) -> Locator:
        return cls(cls.XPATH, str(expression))

    @classmethod
    def tag_name(cls, tag: str) -> Locator:
        return cls(cls.TAG, str(tag))

    @classmethod
    def exact_attribute(cls, tag: str, attribute: str, value: Any) -> Locator:
        return cls(cls.ATTRIBUTE, str(value), tag=str(tag), attribute=str(attribute))

    def __str__(self) -> str:
        if self.kind == self.ATTRIBUTE:
            return f"{self.tag}[{self.attribute}={self.value!r}]"
        return f"{self.kind}={self.value}"


def xpath_literal(value: Any) -> str:
    """Quote a value as an XPath 1.0 string literal."""
    text = str(value)
    if '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"
    pieces = text.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in pieces) + ")"


def css_literal(value: Any) -> str:
    """Quote a value as a CSS attribute-selector string."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _require_exact(preds: PredicateSet, where: str) -> None:
    if preds.has_pattern():
        raise InvalidArgumentError(
            f"{where} accepts only exact predicates; got patterns for {list(preds.patterns())}"
        )


def build_xpath_attrs(preds: PredicateSet) -> str:
    """Attribute tests for every exact, non-reserved predicate, in spec order."""
    parts = []
    for key, value in preds.items():
        if key in _NON_ATTRIBUTE_KEYS or not isinstance(value, Exact):
            continue
        if key == "text":
            parts.append(f"[text()={xpath_literal(value.value)}]")
        else:
            parts.append(f"[@{key}={xpath_literal(value.value)}]")
    return "".join(parts)


def _ordinal(preds: PredicateSet) -> Optional[int]:
    if "index" not in preds:
        return None
    try:
        index = int(preds.raw("index"))
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"index must be an integer, got {preds.raw('index')!r}")
    if index < 0:
        raise InvalidArgumentError(f"index must be >= 0, got {index}")
    return index + 1


def build_xpath(tag: Optional[str], preds: PredicateSet, extra: str = "", nested: bool = False) -> str:
    """
    Build //tag[@attr="value"]... for the exact predicates.

    An `index` (0-based) becomes a 1-based position. At the top level the
    position counts matches in document order: (//tag[...])[n]. For a
    nested step inside an ancestor chain it is a step predicate: //tag[...][n].
    """
    path = f"//{tag or WILDCARD}{build_xpath_attrs(preds)}{extra}"
    position = _ordinal(preds)
    if position is None:
        return path
    if nested:
        return f"{path}[{position}]"
    return f"({path})[{position}]"


def by_attr_eq(tag: Optional[str], attribute: str, value: Any) -> Locator:
    """
    Single attribute equality lookup.

    Natively supported attributes produce an ExactAttribute locator, the
    rest fall back to a path expression.
    """
    tag = tag or WILDCARD
    if attribute in NATIVE_ATTRIBUTES:
        if attribute != "class" or len(str(value).split()) == 1:
            return Locator.exact_attribute(tag, attribute, value)
    return Locator.xpath(build_xpath(tag, PredicateSet({attribute: value})))


def build_locator(preds: PredicateSet) -> Locator:
    """
    Generic Locator Builder over a tag plus exact predicates.

    Precedence: xpath, then css (verbatim, other keys ignored), tag only,
    ordinal addressing, single attribute, full path expression.
    """
    if "xpath" in preds:
        return Locator.xpath(preds.raw("xpath"))
    if "css" in preds:
        return Locator.css(preds.raw("css"))
    _require_exact(preds, "build_locator")
    tag = preds.tag or WILDCARD
    rest = preds.without("tag")
    if not rest:
        return Locator.tag_name(tag)
    if "index" in rest:
        return Locator.xpath(build_xpath(tag, rest))
    if len(rest) == 1:
        key = next(iter(rest))
        return by_attr_eq(tag, key, rest.raw(key))
    return Locator.xpath(build_xpath(tag, rest))


def semantic_button_locator(preds: PredicateSet) -> Locator:
    """
    Anything that behaves like a button: <button> or <input> of type
    submit, reset, image or button, each constrained by the same exact predicates.
    """
    exact = preds.exact().without("tag")
    attrs = build_xpath_attrs(exact)
    union = "|".join(alt + attrs for alt in BUTTON_ALTERNATIVES)
    position = _ordinal(exact)
    if position is not None:
        union = f"({union})[{position}]"
    return Locator.xpath(union)


def checkable_by_text_locator(preds: PredicateSet) -> Locator:
    """
    Radio button or checkbox whose enclosing element contains the given text.

    The text comes from `text` when present, else `label`.
    """
    _require_exact(preds, "checkable_by_text_locator")
    text_key = "text" if "text" in preds else "label"
    text = preds.raw(text_key)
    others = preds.without(text_key, "tag")
    contains = f"[contains(.., {xpath_literal(text)})]"
    return Locator.xpath(build_xpath("input", others, extra=contains))


def build_xpath_with_ancestry(chain: Sequence[PredicateSet]) -> str:
    """Join each segment's path with the descendant axis, outermost first."""
    parts = []
    for i, segment in enumerate(chain):
        if "xpath" in segment:
            parts.append(str(segment.raw("xpath")))
            continue
        if "css" in segment:
            raise InvalidArgumentError(
                f"Ancestor chain segment {i} uses css, which cannot be composed into a path expression"
            )
        parts.append(build_xpath(segment.tag, segment.without("tag"), nested=i > 0))
    return "".join(parts)


def table_anchor(table: PredicateSet) -> str:
    """Path expression for the table identified by a find-style spec."""
    if "xpath" in table:
        return str(table.raw("xpath"))
    if "css" in table:
        raise InvalidArgumentError("Table specs must not use css; use xpath or attributes")
    _require_exact(table, "table spec")
    return build_xpath("table", table.without("tag"))


def _table_row(table: PredicateSet, row: int) -> str:
    if row < 0:
        raise InvalidArgumentError(f"row must be >= 0, got {row}")
    return f"({table_anchor(table)}//tr)[{row + 1}]"


def table_header_probe(table: PredicateSet) -> Locator:
    """Header cells in the first row of the table."""
    return Locator.xpath(f"{_table_row(table, 0)}/th")


def table_cell_locator(table: PredicateSet, row: int, col: int, header: bool) -> Locator:
    if col < 0:
        raise InvalidArgumentError(f"col must be >= 0, got {col}")
    cell = "th" if header else "td"
    return Locator.xpath(f"{_table_row(table, row)}/{cell}[{col + 1}]")


def table_row_locator(table: PredicateSet, row: int, header: bool) -> Locator:
    cell = "th" if header else "td"
    return Locator.xpath(f"{_table_row(table, row)}/{cell}")

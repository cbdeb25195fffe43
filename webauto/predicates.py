# webauto/predicates.py
"""
@file predicates.py
@brief Predicate values and query specs accepted by the find functions.

A query spec is either a flat mapping of attribute name to value, or an
ordered sequence of such mappings describing an ancestor chain (outermost
first). Every value is wrapped at the API boundary into one of two
predicate kinds:

- ``Exact(value)``: literal equality, pushed down into the locator
- ``Pattern(source, flags)``: regular expression, applied after fetching

Reserved keys: ``tag``, ``xpath``, ``css``, ``index``, ``text``, ``type``.
"""

from __future__ import annotations
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from .exceptions import InvalidArgumentError


WILDCARD = "*"

_FLAG_LETTERS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


@dataclass(frozen=True)
class Exact:
    """Literal predicate value."""
    value: Any

    def __post_init__(self) -> None:
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))

    def matches(self, observed: Any) -> bool:
        if observed is None:
            return False
        return str(observed) == str(self.value)


@dataclass(frozen=True)
class Pattern:
    """Regular expression predicate value, compared by source and flags."""
    source: str
    flags: int = 0

    @classmethod
    def compile(cls, regex: Union[str, "re.Pattern[str]"], flags: int = 0) -> Pattern:
        if isinstance(regex, re.Pattern):
            return cls(regex.pattern, regex.flags & ~re.UNICODE)
        return cls(str(regex), flags)

    @property
    def regex(self) -> "re.Pattern[str]":
        # re keeps its own compile cache
        return re.compile(self.source, self.flags)

    def matches(self, observed: Optional[str]) -> bool:
        """Search the observed value; an absent value is treated as ''."""
        return self.regex.search(observed or "") is not None

    def __repr__(self) -> str:
        return f"Pattern({self.source!r})"


PredicateValue = Union[Exact, Pattern]


def to_predicate_value(value: Any) -> PredicateValue:
    """Wrap a raw caller value into a predicate value."""
    if isinstance(value, (Exact, Pattern)):
        return value
    if isinstance(value, re.Pattern):
        return Pattern.compile(value)
    return Exact(value)


def _unwrap(value: PredicateValue) -> Any:
    return value.value if isinstance(value, Exact) else value


class PredicateSet(Mapping):
    """
    Immutable, insertion-ordered mapping of attribute name -> predicate value.

    Equality is structural (order-insensitive), so two separately built
    specs with the same content share a cache fingerprint.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Union[Mapping, Iterable[Tuple[Any, Any]], None] = None):
        pairs = items.items() if isinstance(items, Mapping) else (items or ())
        self._items: Dict[str, PredicateValue] = {
            str(k): to_predicate_value(v) for k, v in pairs
        }

    def __getitem__(self, key: str) -> PredicateValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(self.fingerprint())

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}: {_unwrap(v)!r}" for k, v in self._items.items())
        return "{" + inner + "}"

    def raw(self, key: str, default: Any = None) -> Any:
        """Return the literal value for `key` (or the Pattern itself)."""
        if key not in self._items:
            return default
        return _unwrap(self._items[key])

    @property
    def tag(self) -> Optional[str]:
        tag = self.raw("tag")
        return None if tag is None else str(tag)

    def exact(self) -> PredicateSet:
        return PredicateSet((k, v) for k, v in self._items.items() if isinstance(v, Exact))

    def patterns(self) -> PredicateSet:
        return PredicateSet((k, v) for k, v in self._items.items() if isinstance(v, Pattern))

    def has_pattern(self) -> bool:
        return any(isinstance(v, Pattern) for v in self._items.values())

    def all_patterns(self) -> bool:
        """True when every non-tag predicate is a pattern."""
        keys = self.non_tag_keys()
        return bool(keys) and all(isinstance(self._items[k], Pattern) for k in keys)

    def non_tag_keys(self) -> List[str]:
        return [k for k in self._items if k != "tag"]

    def without(self, *keys: str) -> PredicateSet:
        return PredicateSet((k, v) for k, v in self._items.items() if k not in keys)

    def with_values(self, **values: Any) -> PredicateSet:
        merged = dict(self._items)
        merged.update(values)
        return PredicateSet(merged)

    def fingerprint(self) -> FrozenSet[Tuple[str, PredicateValue]]:
        return frozenset(self._items.items())

    def to_dict(self) -> Dict[str, Any]:
        return {k: _unwrap(v) for k, v in self._items.items()}


Chain = Tuple[PredicateSet, ...]
Query = Union[PredicateSet, Chain]


def normalize_query(spec: Any) -> Query:
    """
    Convert a caller-supplied spec into a PredicateSet or an ancestor chain.

    @param spec Mapping, or list/tuple of mappings
    @return PredicateSet or tuple of PredicateSets
    @throws InvalidArgumentError for any other shape
    """
    if isinstance(spec, PredicateSet):
        return spec
    if isinstance(spec, Mapping):
        return PredicateSet(spec)
    if isinstance(spec, (list, tuple)):
        chain = []
        for i, part in enumerate(spec):
            if not isinstance(part, Mapping):
                raise InvalidArgumentError(
                    f"Ancestor chain entry {i} must be a mapping, got {type(part).__name__}"
                )
            chain.append(part if isinstance(part, PredicateSet) else PredicateSet(part))
        return tuple(chain)
    raise InvalidArgumentError(
        f"Query must be a mapping or a sequence of mappings, got {type(spec).__name__}"
    )


def fingerprint(query: Query) -> Any:
    """Structural cache key for a normalized query."""
    if isinstance(query, PredicateSet):
        return query.fingerprint()
    return tuple(part.fingerprint() for part in query)


def _parse_flags(letters: str) -> int:
    flags = 0
    for letter in letters:
        if letter not in _FLAG_LETTERS:
            raise InvalidArgumentError(f"Unknown regex flag '{letter}'")
        flags |= _FLAG_LETTERS[letter]
    return flags


def _load_value(value: Any) -> Any:
    if isinstance(value, Mapping) and "re" in value:
        unknown = set(value) - {"re", "flags"}
        if unknown:
            raise InvalidArgumentError(f"Unknown pattern keys: {sorted(unknown)}")
        return Pattern(str(value["re"]), _parse_flags(str(value.get("flags", ""))))
    return value


def load_query(data: Any) -> Query:
    """
    Build a query from plain YAML/JSON data.

    Patterns are written as ``{"re": "^Hi", "flags": "i"}``.
    """
    if isinstance(data, Mapping):
        return PredicateSet({k: _load_value(v) for k, v in data.items()})
    if isinstance(data, (list, tuple)):
        return tuple(load_query(part) for part in data)  # type: ignore[misc]
    raise InvalidArgumentError(
        f"Query must be a mapping or a list of mappings, got {type(data).__name__}"
    )

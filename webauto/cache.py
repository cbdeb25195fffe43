# webauto/cache.py
"""
@file cache.py
@brief Per-session memo of query -> resolved element.

Entries are keyed by the structural fingerprint of the query, so two
separately built but equal queries share an entry. The cache is cleared
wholesale (seed) by navigation and window switching; there is no per-entry
expiry and no detection of DOM changes that happen without navigation.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple

from .config import CacheRule, CacheSpec
from .filters import observed_value
from .predicates import Exact, Pattern, PredicateSet, Query, fingerprint

if TYPE_CHECKING:
    from .element import Element


log = logging.getLogger("webauto.cache")


def _value_matches_query(rule_value: Any, query_value: Any) -> bool:
    if rule_value == query_value:
        return True
    if isinstance(rule_value, Pattern) and isinstance(query_value, Exact):
        return rule_value.matches(str(query_value.value))
    return False


def rule_matches_query(rule: PredicateSet, query: Query) -> bool:
    """Every key of the rule appears in the query with an equal (or matching) value."""
    target = query if isinstance(query, PredicateSet) else (query[-1] if query else None)
    if target is None:
        return False
    return all(key in target and _value_matches_query(value, target[key]) for key, value in rule.items())


def rule_matches_element(rule: PredicateSet, element: "Element") -> bool:
    """Every key of the rule equals/matches the element's tag, text or attribute."""
    for key, value in rule.items():
        observed = element.tag() if key == "tag" else observed_value(element, key)
        if not value.matches(observed):
            return False
    return True


class ElementCache:
    """
    Memo of resolved elements owned by a single Session.

    Not thread-safe: lookup followed by insert is not atomic.
    """

    def __init__(self, spec: Optional[CacheSpec] = None):
        self.spec = spec or CacheSpec()
        self._entries: Dict[Any, "Element"] = {}

    @property
    def enabled(self) -> bool:
        return self.spec.enabled

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, query: Query) -> bool:
        return fingerprint(query) in self._entries

    def lookup(self, query: Query) -> Optional["Element"]:
        """Cached element for the query, or None on a miss or when caching is off."""
        if not self.enabled:
            return None
        element = self._entries.get(fingerprint(query))
        log.debug("cache %s for %r", "hit" if element is not None else "miss", query)
        return element

    def insert(self, query: Query, element: "Element") -> None:
        """Store an element, overwriting any entry for an equal query."""
        self._entries[fingerprint(query)] = element
        log.debug("cache store %r (%d entries)", query, len(self._entries))

    def seed(self, entries: Optional[Iterable[Tuple[Query, "Element"]]] = None) -> None:
        """Replace the whole cache; with no entries this empties it."""
        self._entries = {fingerprint(q): el for q, el in (entries or ())}
        log.debug("cache seeded with %d entries", len(self._entries))

    def clear(self) -> None:
        self.seed()

    def _rule_applies(self, rule: CacheRule, query: Query, element: "Element") -> bool:
        if isinstance(rule, PredicateSet):
            return rule_matches_query(rule, query) or rule_matches_element(rule, element)
        return bool(rule(element))

    def is_cacheable(self, query: Query, element: "Element") -> bool:
        """
        Whether a resolved element may be stored for this query.

        Included when there are no include rules or the query or the element
        matches one; never cached when the query or element matches an exclude rule.
        """
        included = not self.spec.include or any(
            self._rule_applies(rule, query, element) for rule in self.spec.include
        )
        if not included:
            return False
        return not any(self._rule_applies(rule, query, element) for rule in self.spec.exclude)

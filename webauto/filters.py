# webauto/filters.py
"""
@file filters.py
@brief Post-filtering of fetched elements by pattern predicates.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, List, Sequence

from .predicates import Pattern, PredicateSet

if TYPE_CHECKING:
    from .element import Element


log = logging.getLogger("webauto.filters")


def observed_value(element: "Element", key: str) -> str:
    """
    Value a predicate on `key` is matched against.

    `text` reads the rendered text; anything else reads the attribute, with
    a missing attribute read as "".
    """
    if key == "text":
        return element.text() or ""
    return element.attribute(key) or ""


def filter_elements_by_regex(elements: Sequence["Element"], preds: PredicateSet) -> List["Element"]:
    """
    Keep the elements that match every pattern predicate in `preds`.

    Exact predicates are ignored here; they were already applied by the
    locator. Predicates are applied one after another, so each pass only
    reads values from the elements that survived the previous one.
    """
    remaining = list(elements)
    for key, value in preds.items():
        if not isinstance(value, Pattern):
            continue
        before = len(remaining)
        remaining = [el for el in remaining if value.matches(observed_value(el, key))]
        log.debug("regex filter %s=%r kept %d of %d", key, value.source, len(remaining), before)
        if not remaining:
            break
    return remaining

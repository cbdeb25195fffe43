# tests/test_filters.py
"""
Tests for regex post-filtering of fetched elements.
"""

import re

from webauto.element import Element
from webauto.filters import filter_elements_by_regex, observed_value
from webauto.predicates import PredicateSet

from tests.conftest import FakeNode


def wrap(session, *nodes):
    return [Element(n, session.session_id) for n in nodes]


class TestObservedValue:
    """What a predicate key reads from an element."""

    def test_text(self, session):
        (el,) = wrap(session, FakeNode("p", text="Hello"))
        assert observed_value(el, "text") == "Hello"

    def test_attribute(self, session):
        (el,) = wrap(session, FakeNode("a", {"href": "/docs"}))
        assert observed_value(el, "href") == "/docs"

    def test_missing_attribute_is_empty(self, session):
        (el,) = wrap(session, FakeNode("a"))
        assert observed_value(el, "href") == ""


class TestFilterElementsByRegex:
    """Sequential pattern filtering."""

    def test_keeps_matches_in_order(self, session):
        els = wrap(
            session,
            FakeNode("a", {"href": "http://example.com/1"}),
            FakeNode("a", {"href": "http://other.org"}),
            FakeNode("a", {"href": "http://example.com/2"}),
        )
        kept = filter_elements_by_regex(els, PredicateSet({"href": re.compile("example")}))
        assert kept == [els[0], els[2]]

    def test_all_patterns_must_match(self, session):
        els = wrap(
            session,
            FakeNode("a", {"href": "/a", "title": "Alpha"}, text="Go"),
            FakeNode("a", {"href": "/b", "title": "Beta"}, text="Go"),
        )
        preds = PredicateSet({"href": re.compile("^/"), "title": re.compile("^A")})
        assert filter_elements_by_regex(els, preds) == [els[0]]

    def test_exact_predicates_ignored(self, session):
        els = wrap(session, FakeNode("a", {"class": "x"}), FakeNode("a", {"class": "y"}))
        preds = PredicateSet({"tag": "a", "class": "x"})
        assert filter_elements_by_regex(els, preds) == els

    def test_absent_attribute_never_matches_non_empty_pattern(self, session):
        els = wrap(session, FakeNode("a"))
        assert filter_elements_by_regex(els, PredicateSet({"href": re.compile(".")})) == []

    def test_absent_attribute_matches_empty_pattern(self, session):
        els = wrap(session, FakeNode("a"), FakeNode("a", {"href": "/docs"}))
        assert filter_elements_by_regex(els, PredicateSet({"href": re.compile("^$")})) == [els[0]]

    def test_empty_input(self, session):
        assert filter_elements_by_regex([], PredicateSet({"text": re.compile("x")})) == []

# tests/test_cache.py
"""
Tests for the element cache: memoisation, invalidation and include/exclude rules.
"""

import re

import pytest

from webauto.cache import ElementCache, rule_matches_element, rule_matches_query
from webauto.config import CacheSpec, SessionConfig
from webauto.element import Element, MissingElement
from webauto.locators import Locator
from webauto.predicates import PredicateSet, normalize_query
from webauto.session import Session

from tests.conftest import FakeNode


LINK = Locator.exact_attribute("*", "id", "home")


@pytest.fixture
def home(backend):
    node = FakeNode("a", {"id": "home", "class": "nav"}, text="Home")
    backend.respond(LINK, node)
    return node


def make_session(backend, **cache):
    return Session(backend, config=SessionConfig(cache=CacheSpec(enabled=True, **cache)))


class TestFindIt:
    """Cache-aware single-element lookup."""

    def test_second_lookup_hits_cache(self, caching_session, backend, home):
        first = caching_session.find_it({"id": "home"})
        second = caching_session.find_it({"id": "home"})
        assert first is second
        assert first.handle is home
        assert backend.calls == [LINK]

    def test_equal_queries_share_entry(self, caching_session, backend, home):
        caching_session.find_it({"id": "home"})
        caching_session.find_it(PredicateSet({"id": "home"}))
        assert len(backend.calls) == 1

    def test_disabled_by_default(self, session, backend, home):
        session.find_it({"id": "home"})
        session.find_it({"id": "home"})
        assert len(backend.calls) == 2
        assert len(session.cache) == 0

    def test_missing_element_not_cached(self, caching_session, backend):
        el = caching_session.find_it({"id": "home"})
        assert isinstance(el, MissingElement)
        assert len(caching_session.cache) == 0

    def test_find_element_bypasses_cache(self, caching_session, backend, home):
        caching_session.find_it({"id": "home"})
        caching_session.find_element({"id": "home"})
        assert len(backend.calls) == 2

    def test_chain_queries_are_cached(self, caching_session, backend):
        span = FakeNode("span")
        backend.respond(Locator.xpath('//div[@id="a"]//span'), span)
        chain = [{"tag": "div", "id": "a"}, {"tag": "span"}]
        assert caching_session.find_it(chain).handle is span
        assert caching_session.find_it(chain).handle is span
        assert len(backend.calls) == 1


class TestInvalidation:
    """Every navigation and focus change empties the cache."""

    @pytest.mark.parametrize("action", [
        lambda s: s.back(),
        lambda s: s.forward(),
        lambda s: s.refresh(),
        lambda s: s.get_url("http://example.test/next"),
        lambda s: s.to("http://example.test/next"),
        lambda s: s.switch_to_frame(0),
        lambda s: s.switch_to_default(),
        lambda s: s.switch_to_window("w1"),
    ])
    def test_navigation_empties_cache(self, caching_session, backend, home, action):
        caching_session.find_it({"id": "home"})
        action(caching_session)
        assert len(caching_session.cache) == 0
        caching_session.find_it({"id": "home"})
        assert len(backend.calls) == 2

    def test_close_empties_cache(self, caching_session, backend, home):
        backend.windows.append(["w2", "Docs", "http://example.test/docs"])
        caching_session.find_it({"id": "home"})
        caching_session.close()
        assert len(caching_session.cache) == 0

    def test_quit_empties_cache(self, caching_session, home):
        caching_session.find_it({"id": "home"})
        caching_session.quit()
        assert len(caching_session.cache) == 0

    def test_window_enumeration_keeps_cache(self, caching_session, backend, home):
        backend.windows.append(["w2", "Docs", "http://example.test/docs"])
        caching_session.find_it({"id": "home"})
        caching_session.window_handles()
        assert len(caching_session.cache) == 1

    def test_seed_cache(self, caching_session, home):
        el = Element(home, caching_session.session_id, "seeded")
        caching_session.seed_cache([(normalize_query({"id": "home"}), el)])
        assert caching_session.find_it({"id": "home"}) is el


class TestRules:
    """include/exclude rules."""

    def test_include_rule_on_query(self, backend, home):
        div = FakeNode("div", {"id": "box"})
        backend.respond(Locator.exact_attribute("*", "id", "box"), div)
        backend.respond(Locator.exact_attribute("a", "id", "home"), home)
        s = make_session(backend, include=(PredicateSet({"tag": "a"}),))

        s.find_it({"id": "box"})
        assert len(s.cache) == 0
        s.find_it({"tag": "a", "id": "home"})
        assert len(s.cache) == 1
        s.quit()

    def test_include_rule_on_element(self, backend, home):
        s = make_session(backend, include=(PredicateSet({"class": "nav"}),))
        s.find_it({"id": "home"})
        assert len(s.cache) == 1
        s.quit()

    def test_include_pattern_rule(self, backend, home):
        s = make_session(backend, include=(PredicateSet({"id": re.compile("^ho")}),))
        s.find_it({"id": "home"})
        assert len(s.cache) == 1
        s.quit()

    def test_exclude_overrides_include(self, backend, home):
        s = make_session(
            backend,
            include=(PredicateSet({"tag": "a"}),),
            exclude=(PredicateSet({"id": "home"}),),
        )
        s.find_it({"id": "home"})
        assert len(s.cache) == 0
        s.quit()

    def test_callable_rule(self, backend, home):
        s = make_session(backend, exclude=(lambda el: el.text() == "Home",))
        s.find_it({"id": "home"})
        assert len(s.cache) == 0
        s.quit()


class TestRuleMatching:
    """Rule matching helpers."""

    def test_rule_matches_query_subset(self):
        rule = PredicateSet({"tag": "a"})
        assert rule_matches_query(rule, PredicateSet({"tag": "a", "id": "x"}))
        assert not rule_matches_query(rule, PredicateSet({"id": "x"}))

    def test_rule_matches_last_chain_segment(self):
        rule = PredicateSet({"tag": "span"})
        chain = normalize_query([{"tag": "div"}, {"tag": "span"}])
        assert rule_matches_query(rule, chain)
        assert not rule_matches_query(PredicateSet({"tag": "div"}), chain)

    def test_rule_matches_element(self, session):
        el = Element(FakeNode("a", {"class": "nav"}), session.session_id)
        assert rule_matches_element(PredicateSet({"tag": "a", "class": "nav"}), el)
        assert not rule_matches_element(PredicateSet({"class": "main"}), el)

    def test_cache_object(self, session):
        cache = ElementCache(CacheSpec(enabled=True))
        q = normalize_query({"id": "x"})
        el = Element(FakeNode("div"), session.session_id)
        assert cache.lookup(q) is None
        cache.insert(q, el)
        assert cache.contains(normalize_query({"id": "x"}))
        assert cache.lookup(q) is el
        cache.clear()
        assert len(cache) == 0

    def test_disabled_cache_never_hits(self, session):
        cache = ElementCache()
        q = normalize_query({"id": "x"})
        cache.insert(q, Element(FakeNode("div"), session.session_id))
        assert cache.lookup(q) is None

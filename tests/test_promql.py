"""Tests for selector parsing, rendering and extraction."""

from __future__ import annotations

from datetime import timedelta

import pytest
from seriesguard.promql import (
    LabelMatcher,
    MatchType,
    PromQLNode,
    SelectorParseError,
    VectorSelector,
    get_selectors,
    parse_selector,
)


class TestParseSelector:
    """Tests for parse_selector."""

    def test_metric_name_only(self):
        selector = parse_selector("up")
        assert selector.name == "up"
        assert selector.matchers == (LabelMatcher("__name__", MatchType.EQUAL, "up"),)
        assert str(selector) == "up"

    def test_all_match_types(self):
        selector = parse_selector('foo{a="1", b!="2", c=~"3.*", d!~"4"}')
        assert [m.type for m in selector.matchers[1:]] == [
            MatchType.EQUAL,
            MatchType.NOT_EQUAL,
            MatchType.REGEX,
            MatchType.NOT_REGEX,
        ]
        assert str(selector) == 'foo{a="1",b!="2",c=~"3.*",d!~"4"}'

    def test_canonical_form_sorts_matchers(self):
        assert str(parse_selector('foo{job="b", instance="a"}')) == 'foo{instance="a",job="b"}'
        assert str(parse_selector('foo{job="b",instance="a",}')) == 'foo{instance="a",job="b"}'

    def test_name_matcher_only(self):
        selector = parse_selector('{__name__="foo", job="x"}')
        assert selector.name == ""
        assert selector.metric_name == "foo"
        assert str(selector) == '{__name__="foo",job="x"}'
        assert str(selector.strip_labels()) == "foo"

    def test_escaped_values(self):
        selector = parse_selector(r'foo{path="a\"b", sep="\\"}')
        assert selector.matchers[1].value == 'a"b'
        assert selector.matchers[2].value == "\\"
        assert str(selector) == r'foo{path="a\"b",sep="\\"}'

    def test_single_quotes(self):
        assert str(parse_selector("foo{job='api'}")) == 'foo{job="api"}'

    def test_offset(self):
        selector = parse_selector('foo{job="a"} offset 1h30m')
        assert selector.offset == timedelta(hours=1, minutes=30)
        assert str(selector) == 'foo{job="a"} offset 1h30m'
        assert str(selector.without_offset()) == 'foo{job="a"}'

    @pytest.mark.parametrize("text", ["", "foo{", 'foo{job}', 'foo{job="a" x="b"}', "{}", '{job=""}', "sum(foo)"])
    def test_invalid(self, text):
        with pytest.raises(SelectorParseError):
            parse_selector(text)


class TestVectorSelector:
    """Tests for selector helpers."""

    def test_strip_labels(self):
        bare = parse_selector('foo{job="a", env=~"prod"}').strip_labels()
        assert str(bare) == "foo"
        assert bare.label_names == []

    def test_label_names(self):
        selector = parse_selector('foo{job="a", env=~"prod", job!="b"}')
        assert selector.label_names == ["job", "env"]

    def test_with_matcher(self):
        selector = parse_selector("foo").with_matcher(LabelMatcher("job", MatchType.REGEX, ".+"))
        assert str(selector) == 'foo{job=~".+"}'

    def test_name_matcher_rendered_when_different(self):
        selector = VectorSelector(name="foo", matchers=(LabelMatcher("job", MatchType.EQUAL, "a"),))
        assert str(selector) == 'foo{job="a"}'

    def test_matcher_matches(self):
        assert LabelMatcher("a", MatchType.EQUAL, "x").matches("x")
        assert LabelMatcher("a", MatchType.NOT_EQUAL, "x").matches("y")
        assert LabelMatcher("a", MatchType.REGEX, "x|y").matches("y")
        assert not LabelMatcher("a", MatchType.REGEX, "x").matches("xx")
        assert LabelMatcher("a", MatchType.NOT_REGEX, "x.*").matches("yx")


class TestGetSelectors:
    """Tests for selector extraction from expression trees."""

    def test_depth_first_order(self):
        tree = PromQLNode(
            expr="binary",
            children=[
                PromQLNode(expr="rate", children=[PromQLNode(parse_selector("a"))]),
                PromQLNode(expr="sum", children=[PromQLNode(parse_selector("b")), PromQLNode(parse_selector("c"))]),
            ],
        )
        assert [str(s) for s in get_selectors(tree)] == ["a", "b", "c"]

    def test_deduplicates_and_strips_offset(self):
        tree = PromQLNode(
            expr="binary",
            children=[
                PromQLNode(parse_selector('foo{job="a"} offset 1d')),
                PromQLNode(parse_selector('foo{job="a"}')),
                PromQLNode(parse_selector("bar")),
            ],
        )
        selectors = get_selectors(tree)
        assert [str(s) for s in selectors] == ['foo{job="a"}', "bar"]
        assert selectors[0].offset is None

    def test_no_tree(self):
        assert get_selectors(None) == []

    def test_selector_root(self):
        assert [str(s) for s in get_selectors(PromQLNode(parse_selector("up")))] == ["up"]

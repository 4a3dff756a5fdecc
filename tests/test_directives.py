"""Tests for directive stores and series directive resolution."""

from __future__ import annotations

from datetime import timedelta

import pytest
from seriesguard.checks.base import Severity
from seriesguard.checks.directives import SeriesDirectives
from seriesguard.directives import (
    CommentDirectiveStore,
    Directive,
    DirectiveError,
    YamlDirectiveStore,
)
from seriesguard.promql import parse_selector

DEFAULT = timedelta(hours=2)


class TestCommentDirectiveStore:
    """Tests for comment backed directives."""

    def test_has_comment(self):
        store = CommentDirectiveStore(["disable promql/series(foo)", "  "])
        assert store.has_comment("disable promql/series(foo)")
        assert not store.has_comment("disable promql/series(bar)")
        assert store.comments == ["disable promql/series(foo)"]

    def test_get_comment_value(self):
        store = CommentDirectiveStore(['rule/set promql/series(foo{a="b c"}) min-age 1h'])
        directive = store.get_comment("rule/set", 'promql/series(foo{a="b c"})', "min-age")
        assert directive == Directive(key=("rule/set", 'promql/series(foo{a="b c"})', "min-age"), value="1h")
        assert str(directive) == 'rule/set promql/series(foo{a="b c"}) min-age 1h'

    def test_get_comment_prefix_must_end_at_token(self):
        store = CommentDirectiveStore(["rule/set promql/series min-ages 1h"])
        assert store.get_comment("rule/set", "promql/series", "min-age") is None

    def test_get_comment_first_match_wins(self):
        store = CommentDirectiveStore(["rule/set promql/series min-age 1h", "rule/set promql/series min-age 3h"])
        assert store.get_comment("rule/set", "promql/series", "min-age").value == "1h"

    def test_from_source(self):
        source = "\n".join(
            [
                "groups:",
                "  - name: example",
                "    rules:",
                "      # seriesguard disable promql/series(foo)",
                "      - alert: Foo  # seriesguard rule/set promql/series min-age 6h",
                "        # unrelated comment",
                "        expr: foo > 0",
            ]
        )
        store = CommentDirectiveStore.from_source(source)
        assert store.comments == ["disable promql/series(foo)", "rule/set promql/series min-age 6h"]


class TestYamlDirectiveStore:
    """Tests for YAML backed directives."""

    def test_load(self):
        store = YamlDirectiveStore.from_yaml(
            """
disable:
  - promql/series(foo)
set:
  promql/series:
    min-age: 3h
    ignore/label-value: [instance, pod]
  promql/series(bar{job="x"}):
    min-age: 1d
"""
        )
        assert store.has_comment("disable promql/series(foo)")
        assert store.get_comment("rule/set", "promql/series", "min-age").value == "3h"
        assert store.has_comment("rule/set promql/series ignore/label-value pod")
        assert store.get_comment("rule/set", 'promql/series(bar{job="x"})', "min-age").value == "1d"

    def test_empty_document(self):
        store = YamlDirectiveStore.from_yaml("")
        assert store.comments == []

    @pytest.mark.parametrize("text", ["- a\n- b", "disable: foo", "set: [a]", "set:\n  promql/series: 1", "a: [b"])
    def test_invalid(self, text):
        with pytest.raises(DirectiveError):
            YamlDirectiveStore.from_yaml(text)


class TestSeriesDirectives:
    """Tests for directive precedence in the series check."""

    selector = parse_selector('foo{job="a"}')

    def _resolve(self, *comments):
        return SeriesDirectives("promql/series", CommentDirectiveStore(comments), lines=(2, 5))

    def test_disabled(self):
        assert self._resolve('disable promql/series(foo{job="a"})').is_disabled(self.selector)
        assert self._resolve("disable promql/series(foo)").is_disabled(self.selector)
        assert not self._resolve("disable promql/series(bar)").is_disabled(self.selector)
        assert not self._resolve("disable promql/series").is_disabled(self.selector)

    def test_min_age_default(self):
        assert self._resolve().min_age(self.selector, DEFAULT) == (DEFAULT, [])

    def test_min_age_precedence(self):
        resolver = self._resolve(
            'rule/set promql/series(foo{job="a"}) min-age 1h',
            "rule/set promql/series(foo) min-age 2d",
            "rule/set promql/series min-age 3w",
        )
        assert resolver.min_age(self.selector, DEFAULT) == (timedelta(hours=1), [])

    def test_min_age_bare_over_global(self):
        resolver = self._resolve(
            "rule/set promql/series min-age 3w",
            "rule/set promql/series(foo) min-age 2d",
        )
        assert resolver.min_age(self.selector, DEFAULT)[0] == timedelta(days=2)

    def test_min_age_global(self):
        resolver = self._resolve("rule/set promql/series min-age 3w")
        assert resolver.min_age(self.selector, DEFAULT)[0] == timedelta(weeks=3)

    def test_min_age_invalid_keeps_previous_value(self):
        resolver = self._resolve(
            "rule/set promql/series min-age 3w",
            'rule/set promql/series(foo{job="a"}) min-age 1x',
        )
        min_age, problems = resolver.min_age(self.selector, DEFAULT)

        assert min_age == timedelta(weeks=3)
        assert len(problems) == 1
        assert problems[0].severity == Severity.WARNING
        assert problems[0].lines == (2, 5)
        assert problems[0].fragment == 'rule/set promql/series(foo{job="a"}) min-age 1x'
        assert problems[0].text == 'failed to parse directive as duration: not a valid duration string: "1x"'

    def test_label_value_ignored(self):
        for scope in ("promql/series", "promql/series(foo)", 'promql/series(foo{job="a"})'):
            resolver = self._resolve(f"rule/set {scope} ignore/label-value job")
            assert resolver.is_label_value_ignored(self.selector, "job")
            assert not resolver.is_label_value_ignored(self.selector, "instance")

"""
Series presence check.

Verifies that every vector selector used by a rule matches series on a
Prometheus server, and when it doesn't, works out why: the metric was never
there, one of its labels was never there, it disappeared, a label value is
missing, or series only come and go. Each selector is checked on its own and
query failures only ever affect the selector being checked.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog

from seriesguard.backend import QueryBackend
from seriesguard.checks.base import Problem, Severity, prom_text, text_and_severity_from_error
from seriesguard.checks.directives import SeriesDirectives
from seriesguard.config.series import SeriesCheckConfig
from seriesguard.core.durations import humanize_duration, since_desc
from seriesguard.promql.extractor import get_selectors
from seriesguard.promql.selectors import METRIC_NAME, LabelMatcher, MatchType, VectorSelector, quote
from seriesguard.promql.tree import PromQLExpr
from seriesguard.rules import Rule, RuleEntry, find_alerting_rule, find_recording_rule
from seriesguard.timeranges import PresenceIntervalSet, build_time_ranges, is_high_churn

logger = structlog.get_logger()

SERIES_CHECK_NAME = "promql/series"

# Metrics generated by Prometheus itself for alerting rules.
ALERT_METRICS = ("ALERTS", "ALERTS_FOR_STATE")


class SeriesCheck:
    """Checks that selectors used in a rule return series."""

    def __init__(
        self,
        prom: QueryBackend,
        config: SeriesCheckConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize series check.

        Args:
            prom: Backend to query
            config: Lookback window, step and default min-age
            clock: Returns current time, used for "last seen" messages
        """
        self.prom = prom
        self.config = config or SeriesCheckConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"{SERIES_CHECK_NAME}({self.prom.name})"

    def reporter(self) -> str:
        return SERIES_CHECK_NAME

    def check(self, rule: Rule, entries: list[RuleEntry]) -> list[Problem]:
        """
        Check all selectors of a rule.

        Args:
            rule: Rule to check
            entries: All discovered rules, used to find alerting and recording
                rules that generate metrics referenced by this one

        Returns:
            List of problems, in the order they were found
        """
        expr = rule.expr
        if expr.syntax_error is not None:
            return []

        directives = SeriesDirectives(self.reporter(), rule.directives, rule.lines)
        problems: list[Problem] = []
        done: set[str] = set()

        for selector in get_selectors(expr.query):
            key = str(selector)
            if key in done:
                continue
            done.add(key)

            if directives.is_disabled(selector):
                logger.debug("series_check_disabled", check=self.reporter(), selector=key)
                continue

            if selector.metric_name in ALERT_METRICS:
                problems.extend(self._check_alerts_selector(selector, expr, entries))
                continue

            problems.extend(self._check_selector(selector, expr, entries, directives))

        return problems

    def _check_alerts_selector(
        self,
        selector: VectorSelector,
        expr: PromQLExpr,
        entries: list[RuleEntry],
    ) -> list[Problem]:
        alertname = ""
        for lm in selector.matchers:
            if lm.name == "alertname" and lm.type is MatchType.EQUAL:
                alertname = lm.value

        # ALERTS{} without alertname, nothing to validate
        if not alertname:
            return []

        entry = find_alerting_rule(entries, alertname)
        if entry is not None:
            logger.debug("metric_provided_by_alerting_rule", selector=str(selector), path=entry.path)
            return [
                self._problem(
                    str(selector),
                    expr,
                    f"{selector} metric is generated by alerts and found alerting rule named {quote(alertname)}",
                    Severity.INFORMATION,
                )
            ]
        return [
            self._problem(
                str(selector),
                expr,
                f"{selector} metric is generated by alerts but didn't find any rule named {quote(alertname)}",
                Severity.BUG,
            )
        ]

    def _check_selector(
        self,
        selector: VectorSelector,
        expr: PromQLExpr,
        entries: list[RuleEntry],
        directives: SeriesDirectives,
    ) -> list[Problem]:
        problems: list[Problem] = []
        bare = selector.strip_labels()
        metric_name = selector.metric_name
        now = self._clock()

        # 1. Selector returns something right now: good.
        logger.debug("checking_selector", check=self.reporter(), selector=str(selector))
        try:
            count = self._instant_series_count(f"count({selector})")
        except Exception as e:
            return [self._query_problem(e, str(selector), expr)]
        if count > 0:
            logger.debug("series_found", check=self.reporter(), selector=str(selector))
            return problems

        # 2. Metric was never there: bug, unless a recording rule produces it.
        logger.debug("checking_metric_history", check=self.reporter(), selector=str(bare))
        try:
            trs = self._series_time_ranges(f"count({bare})")
        except Exception as e:
            return [self._query_problem(e, str(bare), expr)]

        if not trs.ranges:
            entry = find_recording_rule(entries, str(bare))
            desc = prom_text(self.prom.name, trs.uri)
            text = (
                f"{desc} didn't have any series for {quote(str(bare))} metric "
                f"in the last {since_desc(trs.start, now)}"
            )
            if entry is not None:
                logger.debug("metric_provided_by_recording_rule", selector=str(bare), path=entry.path)
                text += " but found recording rule that generates it, skipping further checks"
                return [self._problem(str(bare), expr, text, Severity.INFORMATION)]
            logger.debug("no_metric_history", check=self.reporter(), selector=str(bare))
            return [self._problem(str(bare), expr, text, Severity.BUG)]

        # 3. Metric is there but one of the labels never was: bug.
        high_churn_labels = []
        label_problems = []
        for name in selector.label_names:
            with_label = bare.with_matcher(LabelMatcher(name, MatchType.REGEX, ".+"))
            logger.debug("checking_label_history", check=self.reporter(), selector=str(with_label), label=name)
            try:
                trs_label_count = self._series_time_ranges(f"count({with_label}) by ({name})")
            except Exception as e:
                label_problems.append(self._query_problem(e, str(selector), expr))
                continue

            if not trs_label_count.with_label_name(name):
                label_problems.append(
                    self._problem(
                        str(selector),
                        expr,
                        f"{prom_text(self.prom.name, trs_label_count.uri)} has {quote(str(bare))} metric "
                        f"but there are no series with {quote(name)} label "
                        f"in the last {since_desc(trs_label_count.start, now)}",
                        Severity.BUG,
                    )
                )
                logger.debug("no_label_history", check=self.reporter(), selector=str(with_label), label=name)

            if is_high_churn(trs_label_count, name):
                high_churn_labels.append(name)

        problems.extend(label_problems)
        if any(p.severity is Severity.BUG for p in label_problems):
            return problems

        # 4. Metric was always there but no longer is: bug, once older than min-age.
        if self._disappeared(trs):
            min_age, min_age_problems = directives.min_age(selector, self.config.min_age)
            problems.extend(min_age_problems)

            if trs.newest >= trs.end - min_age:
                logger.debug(
                    "series_disappeared_within_min_age",
                    check=self.reporter(),
                    selector=str(selector),
                    min_age=humanize_duration(min_age),
                    last_seen=since_desc(trs.newest, now),
                )
                return problems

            problems.append(
                self._problem(
                    str(bare),
                    expr,
                    f"{prom_text(self.prom.name, trs.uri)} doesn't currently have {quote(str(bare))}, "
                    f"it was last present {since_desc(trs.newest, now)} ago",
                    Severity.BUG,
                )
            )
            logger.debug("series_disappeared", check=self.reporter(), selector=str(bare))
            return problems

        matcher_problems_start = len(problems)
        for lm in selector.matchers:
            if lm.name == METRIC_NAME:
                continue
            if lm.type not in (MatchType.EQUAL, MatchType.REGEX):
                continue
            if directives.is_label_value_ignored(selector, lm.name):
                logger.debug("label_check_disabled", selector=str(selector), label=lm.name)
                continue

            label_selector = VectorSelector(name=metric_name, matchers=(lm,))
            logger.debug(
                "checking_matcher_history",
                check=self.reporter(),
                selector=str(label_selector),
                matcher=str(lm),
            )
            try:
                trs_label = self._series_time_ranges(f"count({label_selector})")
            except Exception as e:
                problems.append(self._query_problem(e, str(label_selector), expr))
                continue

            # 5. Metric is there but no series ever matched this filter: bug.
            if not trs_label.ranges:
                text = (
                    f"{prom_text(self.prom.name, trs_label.uri)} has {quote(str(bare))} metric with "
                    f"{quote(lm.name)} label but there are no series matching {{{lm}}} "
                    f"in the last {since_desc(trs.start, now)}"
                )
                severity = Severity.BUG
                if lm.name in high_churn_labels:
                    severity = Severity.WARNING
                    text += f", {quote(lm.name)} looks like a high churn label"
                problems.append(self._problem(str(selector), expr, text, severity))
                logger.debug("no_matcher_history", check=self.reporter(), selector=str(selector), matcher=str(lm))
                continue

            # 6. Series matching this filter were always there but no longer are: bug.
            if self._disappeared(trs_label):
                min_age, min_age_problems = directives.min_age(selector, self.config.min_age)
                problems.extend(min_age_problems)

                if trs_label.newest >= trs_label.end - min_age:
                    logger.debug(
                        "series_disappeared_within_min_age",
                        check=self.reporter(),
                        selector=str(selector),
                        min_age=humanize_duration(min_age),
                        last_seen=since_desc(trs_label.newest, now),
                    )
                    continue

                problems.append(
                    self._problem(
                        str(label_selector),
                        expr,
                        f"{prom_text(self.prom.name, trs.uri)} has {quote(str(bare))} metric but doesn't "
                        f"currently have series matching {{{lm}}}, such series was last present "
                        f"{since_desc(trs_label.newest, now)} ago",
                        Severity.BUG,
                    )
                )
                logger.debug("matcher_disappeared", check=self.reporter(), selector=str(selector), matcher=str(lm))
                continue

            # 7. Series matching this filter are only sometimes there: warning.
            if len(trs_label.ranges) > 1:
                problems.append(
                    self._problem(
                        str(selector),
                        expr,
                        f"metric {quote(str(bare))} with label {{{lm}}} is only sometimes present on "
                        f"{prom_text(self.prom.name, trs.uri)} with average life span of "
                        f"{humanize_duration(trs_label.avg_life)}",
                        Severity.WARNING,
                    )
                )
                logger.debug("matcher_sometimes_present", check=self.reporter(), selector=str(selector), matcher=str(lm))

        if len(problems) > matcher_problems_start:
            return problems

        # 8. Metric is only sometimes there: warning.
        if len(trs.ranges) > 1:
            problems.append(
                self._problem(
                    str(bare),
                    expr,
                    f"metric {quote(str(bare))} is only sometimes present on "
                    f"{prom_text(self.prom.name, trs.uri)} with average life span of "
                    f"{humanize_duration(trs.avg_life)} in the last {since_desc(trs.start, now)}",
                    Severity.WARNING,
                )
            )
            logger.debug("metric_sometimes_present", check=self.reporter(), selector=str(bare))

        return problems

    def _disappeared(self, trs: PresenceIntervalSet) -> bool:
        """A single interval open since the window start that ended before its end."""
        return (
            len(trs.ranges) == 1
            and trs.oldest <= trs.start + trs.step
            and trs.newest < trs.end - trs.step
        )

    def _problem(self, fragment: str, expr: PromQLExpr, text: str, severity: Severity) -> Problem:
        return Problem(
            fragment=fragment,
            lines=expr.lines,
            reporter=self.reporter(),
            text=text,
            severity=severity,
        )

    def _query_problem(self, err: Exception, selector: str, expr: PromQLExpr) -> Problem:
        logger.debug("query_failed", check=self.reporter(), selector=selector, error=str(err))
        text, severity = text_and_severity_from_error(err, self.reporter(), self.prom.name, Severity.BUG)
        return self._problem(selector, expr, text, severity)

    def _instant_series_count(self, query: str) -> int:
        result = self.prom.query(query)
        return sum(int(s.value) for s in result.series)

    def _series_time_ranges(self, query: str) -> PresenceIntervalSet:
        result = self.prom.range_query(query, self.config.lookback, self.config.step)
        return build_time_ranges(result, self.config.step)

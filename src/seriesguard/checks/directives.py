"""
Directive resolution for the series check.

Every directive can be scoped to the whole check, to a bare metric name or
to one exact selector. Lookups probe the global key first, then the bare
selector, then the full selector; the last one found wins, so the most
specific directive takes precedence.
"""

from __future__ import annotations

from datetime import timedelta

import structlog

from seriesguard.checks.base import Problem, Severity
from seriesguard.core.durations import parse_duration
from seriesguard.core.errors import InvalidDurationError
from seriesguard.directives import DirectiveStore
from seriesguard.promql.selectors import VectorSelector

logger = structlog.get_logger()


class SeriesDirectives:
    """Resolves directives for selectors of a single rule."""

    def __init__(self, reporter: str, store: DirectiveStore, lines: tuple[int, int] = (1, 1)):
        self.reporter = reporter
        self.store = store
        self.lines = lines

    def _scopes(self, selector: VectorSelector) -> list[str]:
        bare = selector.strip_labels()
        return [
            self.reporter,
            f"{self.reporter}({bare})",
            f"{self.reporter}({selector})",
        ]

    def is_disabled(self, selector: VectorSelector) -> bool:
        """Check if the check is disabled for this selector or its bare metric."""
        return self.store.has_comment(f"disable {self.reporter}({selector})") or self.store.has_comment(
            f"disable {self.reporter}({selector.strip_labels()})"
        )

    def min_age(self, selector: VectorSelector, default: timedelta) -> tuple[timedelta, list[Problem]]:
        """
        Resolve how long a metric may be missing before it's reported.

        Values that fail to parse produce a warning and leave the previously
        resolved value in place.

        Returns:
            Tuple of (min_age, problems)
        """
        min_age = default
        problems = []
        for scope in self._scopes(selector):
            directive = self.store.get_comment("rule/set", scope, "min-age")
            if directive is None:
                continue
            try:
                min_age = parse_duration(directive.value)
            except InvalidDurationError as e:
                logger.debug("min_age_parse_failed", directive=str(directive), error=e.message)
                problems.append(
                    Problem(
                        fragment=str(directive),
                        lines=self.lines,
                        reporter=self.reporter,
                        text=f"failed to parse directive as duration: {e.message}",
                        severity=Severity.WARNING,
                    )
                )
        return min_age, problems

    def is_label_value_ignored(self, selector: VectorSelector, label: str) -> bool:
        """Check if value checks for ``label`` were turned off."""
        return any(
            self.store.has_comment(f"rule/set {scope} ignore/label-value {label}")
            for scope in self._scopes(selector)
        )

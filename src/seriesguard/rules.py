"""
Rule models shared between checks.

A ``Rule`` is a single alerting or recording rule with its parsed
expression and directives. ``RuleEntry`` is how discovery hands rules to
checks, so a check can look at sibling rules (for example to find the
recording rule that produces a metric).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from seriesguard.directives import CommentDirectiveStore, DirectiveStore
from seriesguard.promql.tree import PromQLExpr


class RuleKind(Enum):
    """Type of Prometheus rule."""

    ALERTING = "alerting"
    RECORDING = "recording"


@dataclass
class Rule:
    """A Prometheus alerting or recording rule."""

    kind: RuleKind
    name: str  # alert name or recorded metric name
    expr: PromQLExpr
    lines: tuple[int, int] = (1, 1)
    directives: DirectiveStore = field(default_factory=CommentDirectiveStore)
    error: str | None = None  # set if the rule failed to parse

    @property
    def is_alerting(self) -> bool:
        return self.kind is RuleKind.ALERTING

    @property
    def is_recording(self) -> bool:
        return self.kind is RuleKind.RECORDING


@dataclass
class RuleEntry:
    """A discovered rule and the file it came from."""

    path: str
    rule: Rule


def find_alerting_rule(entries: list[RuleEntry], name: str) -> RuleEntry | None:
    """Find a valid alerting rule with the given alert name."""
    for entry in entries:
        if entry.rule.is_alerting and entry.rule.error is None and entry.rule.name == name:
            return entry
    return None


def find_recording_rule(entries: list[RuleEntry], name: str) -> RuleEntry | None:
    """Find a valid recording rule that records the given metric name."""
    for entry in entries:
        if entry.rule.is_recording and entry.rule.error is None and entry.rule.name == name:
            return entry
    return None

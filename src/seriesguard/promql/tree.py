"""
Expression tree shapes produced by the PromQL parser.

Parsing itself happens elsewhere; this module only describes the nodes the
checks walk. Each node wraps one parsed expression and its children, leaf
vector selectors are ``VectorSelector`` instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PromQLNode:
    """A node of the parsed expression tree."""

    expr: Any
    children: list["PromQLNode"] = field(default_factory=list)


@dataclass
class PromQLExpr:
    """A rule expression: source text, parsed tree and its location."""

    value: str
    query: PromQLNode | None = None
    lines: tuple[int, int] = (1, 1)
    syntax_error: str | None = None

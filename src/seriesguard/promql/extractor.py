"""
Pull leaf vector selectors out of a parsed expression tree.
"""

from __future__ import annotations

from seriesguard.promql.selectors import VectorSelector
from seriesguard.promql.tree import PromQLNode


def _walk(node: PromQLNode) -> list[VectorSelector]:
    selectors = []
    if isinstance(node.expr, VectorSelector):
        # Offsets don't change which series must exist.
        selectors.append(node.expr.without_offset())
    for child in node.children:
        selectors.extend(_walk(child))
    return selectors


def get_selectors(node: PromQLNode | None) -> list[VectorSelector]:
    """
    Return distinct vector selectors used in an expression.

    The tree is walked depth-first, selectors are de-duplicated by their
    canonical string form and returned in first-seen order.

    Args:
        node: Root of the expression tree

    Returns:
        List of selectors with offsets removed
    """
    if node is None:
        return []

    seen = set()
    unique = []
    for selector in _walk(node):
        key = str(selector)
        if key not in seen:
            seen.add(key)
            unique.append(selector)
    return unique

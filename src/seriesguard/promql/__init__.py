"""PromQL selector model and expression tree helpers."""

from seriesguard.promql.extractor import get_selectors
from seriesguard.promql.selectors import (
    METRIC_NAME,
    LabelMatcher,
    MatchType,
    SelectorParseError,
    VectorSelector,
    parse_selector,
)
from seriesguard.promql.tree import PromQLExpr, PromQLNode

__all__ = [
    "METRIC_NAME",
    "LabelMatcher",
    "MatchType",
    "SelectorParseError",
    "VectorSelector",
    "parse_selector",
    "PromQLNode",
    "PromQLExpr",
    "get_selectors",
]

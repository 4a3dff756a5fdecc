"""
Vector selector model.

A selector is a metric name plus a set of label matchers. The canonical
string form mirrors what Prometheus prints for a parsed selector, which is
also what rule authors type into directives such as
``disable promql/series(foo{job="bar"})``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum
from functools import cached_property

from seriesguard.core.durations import humanize_duration, parse_duration
from seriesguard.core.errors import InvalidDurationError, ValidationError

METRIC_NAME = "__name__"


class SelectorParseError(ValidationError):
    """Raised when a selector literal cannot be parsed."""


class MatchType(Enum):
    """Label matcher operator."""

    EQUAL = "="
    NOT_EQUAL = "!="
    REGEX = "=~"
    NOT_REGEX = "!~"


def quote(value: str) -> str:
    """Double-quote a label value, escaping like Go's %q."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


@dataclass(frozen=True)
class LabelMatcher:
    """A single label matcher, e.g. job=~"api|web"."""

    name: str
    type: MatchType
    value: str

    def __str__(self) -> str:
        return f"{self.name}{self.type.value}{quote(self.value)}"

    @cached_property
    def _pattern(self) -> re.Pattern[str]:
        return re.compile(f"^(?:{self.value})$")

    def matches(self, value: str) -> bool:
        """Check if a label value satisfies this matcher."""
        if self.type is MatchType.EQUAL:
            return value == self.value
        if self.type is MatchType.NOT_EQUAL:
            return value != self.value
        matched = self._pattern.match(value) is not None
        return matched if self.type is MatchType.REGEX else not matched


@dataclass(frozen=True)
class VectorSelector:
    """An instant vector selector.

    ``matchers`` may include a ``__name__`` matcher; when the selector was
    written as ``foo{...}`` the parser adds ``__name__="foo"`` itself, the
    same way Prometheus does.
    """

    name: str = ""
    matchers: tuple[LabelMatcher, ...] = field(default_factory=tuple)
    offset: timedelta | None = None

    def __str__(self) -> str:
        labels = sorted(
            str(m)
            for m in self.matchers
            if not (m.name == METRIC_NAME and m.type is MatchType.EQUAL and m.value == self.name)
        )
        offset = ""
        if self.offset:
            sign = "-" if self.offset < timedelta(0) else ""
            offset = f" offset {sign}{humanize_duration(abs(self.offset))}"
        if not labels:
            return f"{self.name}{offset}"
        return f"{self.name}{{{','.join(labels)}}}{offset}"

    @property
    def metric_name(self) -> str:
        """Metric name, taken from the __name__ matcher if not set directly."""
        if self.name:
            return self.name
        for m in self.matchers:
            if m.name == METRIC_NAME and m.type is MatchType.EQUAL:
                return m.value
        return ""

    @property
    def label_names(self) -> list[str]:
        """Names of all non metric-name labels, in matcher order."""
        names: list[str] = []
        for m in self.matchers:
            if m.name != METRIC_NAME and m.name not in names:
                names.append(m.name)
        return names

    def strip_labels(self) -> "VectorSelector":
        """Return the bare selector: metric name only, no label filters."""
        name = self.metric_name
        return VectorSelector(
            name=name,
            matchers=tuple(
                m for m in self.matchers if m.name == METRIC_NAME and m.type is MatchType.EQUAL
            ),
        )

    def without_offset(self) -> "VectorSelector":
        return replace(self, offset=None)

    def with_matcher(self, matcher: LabelMatcher) -> "VectorSelector":
        return replace(self, matchers=self.matchers + (matcher,))


_IDENT_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")
_LABEL_RE = re.compile(r"\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*(=~|!~|!=|=)\s*")
_OFFSET_RE = re.compile(r"\s+offset\s+(-?)([0-9a-z]+)\s*$")
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", '"': '"', "'": "'"}


def _read_string(text: str, pos: int) -> tuple[str, int]:
    quote_char = text[pos] if pos < len(text) else ""
    if quote_char not in ('"', "'", "`"):
        raise SelectorParseError(f"expected quoted label value at position {pos}", {"selector": text})

    out = []
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == quote_char:
            return "".join(out), i + 1
        if ch == "\\" and quote_char != "`" and i + 1 < len(text):
            nxt = text[i + 1]
            out.append(_ESCAPES.get(nxt, "\\" + nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    raise SelectorParseError("unterminated quoted string", {"selector": text})


def parse_selector(text: str) -> VectorSelector:
    """Parse a single vector selector literal such as ``foo{job="bar"}``.

    Only selector literals are understood, full PromQL expressions are not.

    Raises:
        SelectorParseError: if the text is not a valid selector
    """
    source = text.strip()
    offset = None
    m = _OFFSET_RE.search(source)
    if m:
        try:
            offset = parse_duration(m.group(2))
        except InvalidDurationError as e:
            raise SelectorParseError(f"invalid offset: {e.message}", {"selector": text}) from e
        if m.group(1):
            offset = -offset
        source = source[: m.start()]

    name = ""
    pos = 0
    ident = _IDENT_RE.match(source)
    if ident:
        name = ident.group(0)
        pos = ident.end()

    matchers: list[LabelMatcher] = []
    if name:
        matchers.append(LabelMatcher(METRIC_NAME, MatchType.EQUAL, name))

    rest = source[pos:].strip()
    if rest:
        if not (rest.startswith("{") and rest.endswith("}")):
            raise SelectorParseError(f"unexpected input: {rest!r}", {"selector": text})
        body = rest[1:-1]
        i = 0
        while True:
            while i < len(body) and body[i].isspace():
                i += 1
            if i >= len(body):
                break
            lm = _LABEL_RE.match(body, i)
            if not lm:
                raise SelectorParseError(f"invalid label matcher at {body[i:]!r}", {"selector": text})
            value, i = _read_string(body, lm.end())
            matchers.append(LabelMatcher(lm.group(1), MatchType(lm.group(2)), value))
            while i < len(body) and body[i].isspace():
                i += 1
            if i < len(body):
                if body[i] != ",":
                    raise SelectorParseError(f"expected ',' at {body[i:]!r}", {"selector": text})
                i += 1

    if not name and not matchers:
        raise SelectorParseError("selector must have a metric name or label matchers", {"selector": text})
    if not name and all(m.value == "" and m.type is MatchType.EQUAL for m in matchers):
        raise SelectorParseError(
            "vector selector must contain at least one non-empty matcher", {"selector": text}
        )

    return VectorSelector(name=name, matchers=tuple(matchers), offset=offset)

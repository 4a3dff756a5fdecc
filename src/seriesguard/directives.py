"""
Per-rule directive stores.

Directives are small annotations attached to a rule that change how checks
treat it, for example::

    # seriesguard disable promql/series(foo{job="bar"})
    # seriesguard rule/set promql/series min-age 6h
    # seriesguard rule/set promql/series ignore/label-value instance

Checks only ever see the ``DirectiveStore`` interface so the same rule can
be annotated with inline comments or with a structured YAML document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable

import yaml

from seriesguard.core.errors import ValidationError

DEFAULT_MARKER = "seriesguard"


class DirectiveError(ValidationError):
    """Raised when a directive document is malformed."""


@dataclass(frozen=True)
class Directive:
    """A resolved directive: the key it was looked up by and its value."""

    key: tuple[str, ...]
    value: str = ""

    def __str__(self) -> str:
        parts = list(self.key)
        if self.value:
            parts.append(self.value)
        return " ".join(parts)


class DirectiveStore(ABC):
    """Lookup interface over the directives attached to one rule."""

    @abstractmethod
    def has_comment(self, text: str) -> bool:
        """Return True if a directive with exactly this text is present."""

    @abstractmethod
    def get_comment(self, *key: str) -> Directive | None:
        """Return the first directive whose leading tokens equal ``key``."""


class CommentDirectiveStore(DirectiveStore):
    """Directives backed by a list of plain comment texts."""

    def __init__(self, comments: Iterable[str] = ()):
        self._comments = [c.strip() for c in comments if c.strip()]

    @classmethod
    def from_source(cls, text: str, marker: str = DEFAULT_MARKER) -> "CommentDirectiveStore":
        """Collect ``# <marker> ...`` comments from rule source text."""
        comments = []
        prefix = f"{marker} "
        for line in text.splitlines():
            idx = line.find("#")
            if idx < 0:
                continue
            body = line[idx + 1 :].strip()
            if body.startswith(prefix):
                comments.append(body[len(prefix) :])
        return cls(comments)

    @property
    def comments(self) -> list[str]:
        return list(self._comments)

    def has_comment(self, text: str) -> bool:
        return text.strip() in self._comments

    def get_comment(self, *key: str) -> Directive | None:
        prefix = " ".join(key)
        for comment in self._comments:
            if comment == prefix:
                return Directive(key=tuple(key))
            if comment.startswith(prefix + " "):
                return Directive(key=tuple(key), value=comment[len(prefix) + 1 :].strip())
        return None


class YamlDirectiveStore(CommentDirectiveStore):
    """Directives loaded from a structured YAML document.

    Expected layout::

        disable:
          - promql/series(foo)
        set:
          promql/series:
            min-age: 3h
            ignore/label-value: [instance, pod]
          promql/series(foo{job="bar"}):
            min-age: 1h
    """

    def __init__(self, data: dict[str, Any] | None = None):
        super().__init__(self._to_comments(data or {}))

    @classmethod
    def from_yaml(cls, text: str) -> "YamlDirectiveStore":
        """Parse a YAML directive document.

        Raises:
            DirectiveError: if the document is not valid YAML or has the wrong shape
        """
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise DirectiveError(f"Invalid directive YAML: {e}") from e
        if not isinstance(data, dict):
            raise DirectiveError("Directive document must be a mapping")
        return cls(data)

    @staticmethod
    def _to_comments(data: dict[str, Any]) -> list[str]:
        comments = []

        disabled = data.get("disable") or []
        if not isinstance(disabled, list):
            raise DirectiveError("'disable' must be a list", {"value": disabled})
        comments.extend(f"disable {target}" for target in disabled)

        scopes = data.get("set") or {}
        if not isinstance(scopes, dict):
            raise DirectiveError("'set' must be a mapping", {"value": scopes})
        for scope, settings in scopes.items():
            if not isinstance(settings, dict):
                raise DirectiveError("settings must be a mapping", {"scope": scope})
            for key, value in settings.items():
                values = value if isinstance(value, list) else [value]
                comments.extend(f"rule/set {scope} {key} {v}" for v in values)

        return comments

from __future__ import annotations

import functools
from collections.abc import Iterable, Iterator

from bpflint.core.lints import make_builtin_lints
from bpflint.core.ports.lint import LintRule
from bpflint.errors import DuplicateLintError, UnknownLintError
from bpflint.models import LintInfo


class LintRegistry:
    """An ordered set of lint rules with unique ids."""

    def __init__(self, lints: Iterable[LintRule] = ()) -> None:
        self._lints: dict[str, LintRule] = {}
        for lint in lints:
            self.register(lint)

    def register(self, lint: LintRule) -> LintRule:
        if lint.id in self._lints:
            raise DuplicateLintError(lint.id)
        self._lints[lint.id] = lint
        return lint

    def get(self, lint_id: str) -> LintRule:
        try:
            return self._lints[lint_id]
        except KeyError:
            raise UnknownLintError(lint_id) from None

    def list(self) -> list[LintInfo]:
        return [LintInfo(id=lint.id, description=lint.description) for lint in self._lints.values()]

    def ids(self) -> frozenset[str]:
        return frozenset(self._lints)

    def __contains__(self, lint_id: object) -> bool:
        return lint_id in self._lints

    def __iter__(self) -> Iterator[LintRule]:
        return iter(self._lints.values())

    def __len__(self) -> int:
        return len(self._lints)


@functools.cache
def builtin_registry() -> LintRegistry:
    """Return the process-wide registry of built-in lints."""
    return LintRegistry(make_builtin_lints())

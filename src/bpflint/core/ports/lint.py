from collections.abc import Iterable
from typing import Protocol

from bpflint.core.parser import ParsedSource
from bpflint.models import RawFinding, Severity


class LintRule(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def severity(self) -> Severity: ...

    def check(self, parsed: ParsedSource) -> Iterable[RawFinding]: ...

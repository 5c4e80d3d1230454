"""Built-in lint rules.

Most lints are tree-sitter queries stored in ``bpflint/queries/<lint-id>.scm``;
every capture named after the lint id is reported. Lints that are easier to
express over the token stream subclass ``TokenLint``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Query, QueryCursor, QueryError
from tree_sitter_language_pack import get_language

from bpflint.core.parser import LANGUAGE, ParsedSource, span_of
from bpflint.errors import LintLoadError
from bpflint.models import NodeKind, RawFinding, Severity, Span, SyntaxNode

QUERIES_DIR = Path(__file__).parent.parent / "queries"


def _load_query(lint_id: str) -> Query:
    query_path = QUERIES_DIR / f"{lint_id}.scm"
    if not query_path.exists():
        raise LintLoadError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    try:
        return Query(get_language(LANGUAGE), query_text)
    except QueryError as exc:
        raise LintLoadError(f"Invalid query for lint '{lint_id}': {exc}") from exc


@dataclass(frozen=True)
class QueryLint:
    id: str
    description: str
    message: str
    query: Query = field(repr=False, compare=False)
    suggested_fix: str | None = None
    severity: Severity = Severity.WARNING

    @classmethod
    def load(
        cls,
        lint_id: str,
        description: str,
        message: str,
        suggested_fix: str | None = None,
    ) -> QueryLint:
        return cls(
            id=lint_id,
            description=description,
            message=message,
            query=_load_query(lint_id),
            suggested_fix=suggested_fix,
        )

    def check(self, parsed: ParsedSource) -> list[RawFinding]:
        captures = QueryCursor(self.query).captures(parsed.tree.root_node)
        return [
            RawFinding(
                span=span_of(node),
                lint_id=self.id,
                message=self.message,
                suggested_fix=self.suggested_fix,
            )
            for node in captures.get(self.id, [])
        ]


def iter_tokens(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield the leaf tokens below ``root`` in source order, skipping comments and preprocessor lines."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.kind in (NodeKind.COMMENT, NodeKind.DIRECTIVE):
            continue
        if node.children:
            stack.extend(reversed(node.children))
        else:
            yield node


class TokenLint(ABC):
    id: str
    description: str
    severity: Severity = Severity.WARNING

    def check(self, parsed: ParsedSource) -> list[RawFinding]:
        return list(self.check_tokens(list(iter_tokens(parsed.root))))

    @abstractmethod
    def check_tokens(self, tokens: Sequence[SyntaxNode]) -> Iterable[RawFinding]: ...


def _closing_paren(tokens: Sequence[SyntaxNode], open_index: int) -> int | None:
    depth = 0
    for index in range(open_index, len(tokens)):
        text = tokens[index].text
        if text == "(":
            depth += 1
        elif text == ")":
            depth -= 1
            if depth == 0:
                return index
    return None


class UntypedMapMemberLint(TokenLint):
    """Flags ``__uint(key_size, ...)``/``__uint(value_size, ...)`` in map definitions."""

    id = "untyped-map-member"
    description = "map key/value declared by size only, without BTF type information"

    _MEMBERS = {"key_size": "key", "value_size": "value"}

    def check_tokens(self, tokens: Sequence[SyntaxNode]) -> Iterator[RawFinding]:
        for index, token in enumerate(tokens[:-2]):
            if token.text != "__uint" or tokens[index + 1].text != "(":
                continue
            member = tokens[index + 2].text
            if member not in self._MEMBERS:
                continue
            typed = self._MEMBERS[member]
            close = _closing_paren(tokens, index + 1)
            end = tokens[close] if close is not None else tokens[index + 2]
            yield RawFinding(
                span=Span(
                    start_byte=token.span.start_byte,
                    end_byte=end.span.end_byte,
                    start_point=token.span.start_point,
                    end_point=end.span.end_point,
                ),
                lint_id=self.id,
                message=(
                    f"__uint({member}, ...) only conveys the size of the map {typed}; "
                    f"use __type({typed}, <type>) to provide BTF type information"
                ),
                suggested_fix=f"__type({typed}, <type>)",
            )


def make_builtin_lints() -> list[QueryLint | TokenLint]:
    """Instantiate all built-in lints, ordered by id."""
    lints: list[QueryLint | TokenLint] = [
        QueryLint.load(
            "get-current-task",
            "use of bpf_get_current_task() instead of its BTF-typed variant",
            "bpf_get_current_task() returns an untyped u64 that needs probe reads to access; "
            "use bpf_get_current_task_btf() to get a BTF-typed task_struct pointer",
            suggested_fix="bpf_get_current_task_btf",
        ),
        QueryLint.load(
            "probe-read",
            "use of the deprecated bpf_probe_read() helper",
            "bpf_probe_read() is deprecated and replaced by bpf_probe_read_user() and "
            "bpf_probe_read_kernel(); refer to bpf-helpers(7)",
            suggested_fix="bpf_probe_read_kernel",
        ),
        QueryLint.load(
            "trace-printk",
            "debug output through bpf_printk()/bpf_trace_printk()",
            "bpf_printk() and bpf_trace_printk() write to the global trace pipe and are meant for debugging; "
            "use a ring buffer or perf buffer to report events",
        ),
        QueryLint.load(
            "unstable-attach-point",
            "attaching to kernel functions through kprobe/kretprobe/fentry/fexit",
            "kprobe/kretprobe/fentry/fexit are unstable and may break with kernel updates; "
            "consider using tracepoints or raw tracepoints where possible",
        ),
        UntypedMapMemberLint(),
    ]
    return sorted(lints, key=lambda lint: lint.id)

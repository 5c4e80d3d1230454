"""Attribution of ``/* bpflint: disable=<lint> */`` comments to the code they govern.

A directive applies to the syntactic unit (statement or block) that directly
follows it at the same nesting level. Comments are never attached to nodes;
instead a single pass over the tree produces an external ``SuppressionMap``.
"""

import logging
import re
from collections.abc import Collection, Iterable, Iterator, Mapping
from types import MappingProxyType

from bpflint.core.parser import ParsedSource
from bpflint.models import EngineWarning, NodeKind, SuppressionDirective, SyntaxNode, WarningKind

logger = logging.getLogger(__name__)

DIRECTIVE_PATTERN = re.compile(r"/\*\s*bpflint:\s*disable=(?P<lint>[A-Za-z0-9_-]+)\s*\*/")
_MENTION_PATTERN = re.compile(r"\bbpflint\s*:")


class SuppressionMap(Mapping[str, frozenset[str]]):
    """Read-only mapping from a unit's key to the lint ids disabled for it."""

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None) -> None:
        frozen = {key: frozenset(lints) for key, lints in (entries or {}).items()}
        self._entries = MappingProxyType(frozen)

    def __getitem__(self, key: str) -> frozenset[str]:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SuppressionMap({dict(self._entries)!r})"

    def lints_for(self, node: SyntaxNode) -> frozenset[str]:
        return self._entries.get(node.key, frozenset())

    def is_suppressed(self, lint_id: str, units: Iterable[SyntaxNode]) -> bool:
        return any(lint_id in self.lints_for(unit) for unit in units)


def parse_directive(comment: SyntaxNode) -> SuppressionDirective | EngineWarning | None:
    """Interpret a comment node.

    Returns ``None`` for ordinary comments, the parsed directive for a
    well-formed one, and a ``malformed_directive`` warning for comments that
    address bpflint but do not follow the grammar.
    """
    text = comment.text or ""
    match = DIRECTIVE_PATTERN.fullmatch(text.strip())
    if match is not None:
        return SuppressionDirective(lint_id=match.group("lint"), span=comment.span)
    if _MENTION_PATTERN.search(text):
        return EngineWarning(
            kind=WarningKind.MALFORMED_DIRECTIVE,
            span=comment.span,
            message=f"malformed bpflint directive {text.strip()!r}; expected '/* bpflint: disable=<lint-name> */'",
        )
    return None


def _following_unit(siblings: tuple[SyntaxNode, ...], index: int) -> SyntaxNode | None:
    for sibling in siblings[index + 1 :]:
        if sibling.kind == NodeKind.COMMENT or not sibling.named:
            continue
        return sibling if sibling.is_unit else None
    return None


def resolve(tree: ParsedSource | SyntaxNode, known_lints: Collection[str]) -> tuple[SuppressionMap, list[EngineWarning]]:
    """Build the suppression map for ``tree``.

    Directives naming lints outside ``known_lints`` and malformed directives
    are reported as warnings and suppress nothing. A directive with no
    following unit is inert.
    """
    root = tree.root if isinstance(tree, ParsedSource) else tree
    entries: dict[str, set[str]] = {}
    warnings: list[EngineWarning] = []

    stack = [root]
    while stack:
        node = stack.pop()
        for index, child in enumerate(node.children):
            if child.kind != NodeKind.COMMENT:
                continue
            parsed = parse_directive(child)
            if parsed is None:
                continue
            if isinstance(parsed, EngineWarning):
                warnings.append(parsed)
                continue
            if parsed.lint_id not in known_lints:
                warnings.append(
                    EngineWarning(
                        kind=WarningKind.UNKNOWN_LINT,
                        span=parsed.span,
                        message=f"unknown lint '{parsed.lint_id}' in disable directive",
                    )
                )
                continue
            target = _following_unit(node.children, index)
            if target is None:
                logger.debug("directive for %s at %s has no following unit", parsed.lint_id, parsed.span.start_point)
                continue
            entries.setdefault(target.key, set()).add(parsed.lint_id)
        stack.extend(reversed(node.children))

    warnings.sort(key=lambda w: (w.span.start_byte, w.span.end_byte))
    return SuppressionMap(entries), warnings

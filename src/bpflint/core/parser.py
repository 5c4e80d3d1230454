import logging
import re
from dataclasses import dataclass

from tree_sitter import Node, Tree
from tree_sitter_language_pack import get_parser

from bpflint.errors import ParseError
from bpflint.models import NodeKind, Point, Span, SyntaxNode

logger = logging.getLogger(__name__)

LANGUAGE = "c"

_BLOCK_TYPES = frozenset(
    {
        "compound_statement",
        "field_declaration_list",
        "declaration_list",
        "preproc_if",
        "preproc_ifdef",
        "preproc_elif",
        "preproc_elifdef",
        "preproc_else",
    }
)

_STATEMENT_TYPES = frozenset(
    {
        "declaration",
        "field_declaration",
        "function_definition",
        "type_definition",
        "linkage_specification",
    }
)

# Preprocessor lines are kept as opaque text; their bodies are never parsed.
_DIRECTIVE_TYPES = frozenset(
    {
        "preproc_include",
        "preproc_def",
        "preproc_function_def",
        "preproc_call",
    }
)

_CONTAINER_KINDS = frozenset({NodeKind.TRANSLATION_UNIT, NodeKind.BLOCK})

_LEXEME = re.compile(rb"/\*|//|[\"']|\n|^[ \t]*#", re.MULTILINE)

_QUOTED_BODY = {
    b'"': re.compile(rb'(?:[^"\\\r\n]|\\(?:\r\n|.))*"', re.DOTALL),
    b"'": re.compile(rb"(?:[^'\\\r\n]|\\(?:\r\n|.))*'", re.DOTALL),
}


@dataclass(frozen=True)
class ParsedSource:
    """A parsed translation unit: the concrete tree-sitter tree plus the structural tree built from it."""

    text: str
    source: bytes
    tree: Tree
    root: SyntaxNode

    def path_to(self, span: Span) -> list[SyntaxNode]:
        """Return the chain of nodes enclosing ``span``, root first."""
        path = [self.root]
        node = self.root
        while True:
            child = next((c for c in node.children if c.span.contains(span)), None)
            if child is None:
                return path
            path.append(child)
            node = child

    def units_containing(self, span: Span) -> list[SyntaxNode]:
        """Return the statements and blocks enclosing ``span``, outermost first."""
        return [node for node in self.path_to(span) if node.is_unit]


def span_at(source: bytes, start: int, end: int | None = None) -> Span:
    end = start if end is None else end
    return Span(
        start_byte=start,
        end_byte=end,
        start_point=_point_at(source, start),
        end_point=_point_at(source, end),
    )


def _point_at(source: bytes, offset: int) -> Point:
    line_start = source.rfind(b"\n", 0, offset) + 1
    return Point(row=source.count(b"\n", 0, offset), column=offset - line_start)


def _is_continued(source: bytes, newline: int) -> bool:
    return source[newline - 1 : newline] == b"\\" or source[newline - 2 : newline] == b"\\\r"


def _end_of_logical_line(source: bytes, start: int) -> int:
    pos = start
    while True:
        newline = source.find(b"\n", pos)
        if newline == -1:
            return len(source)
        if not _is_continued(source, newline):
            return newline
        pos = newline + 1


def scan(source: bytes) -> None:
    """Check that ``source`` can be split into C tokens.

    Only comments and quoted literals are examined: an unterminated block
    comment, string or character literal raises ``ParseError``. Quotes inside
    preprocessor lines (``#error don't``) are tolerated.
    """
    pos = 0
    in_directive = False
    while True:
        match = _LEXEME.search(source, pos)
        if match is None:
            return
        lexeme = match.group()
        if lexeme == b"\n":
            if not _is_continued(source, match.start()):
                in_directive = False
            pos = match.end()
        elif lexeme.endswith(b"#"):
            in_directive = True
            pos = match.end()
        elif lexeme == b"/*":
            end = source.find(b"*/", match.end())
            if end == -1:
                raise ParseError(span_at(source, match.start(), len(source)), "unterminated comment")
            pos = end + 2
        elif lexeme == b"//":
            pos = _end_of_logical_line(source, match.end())
        else:
            body = _QUOTED_BODY[lexeme].match(source, match.end())
            if body is not None:
                pos = body.end()
            elif in_directive:
                pos = _end_of_logical_line(source, match.end())
            else:
                what = "string literal" if lexeme == b'"' else "character literal"
                end = _end_of_logical_line(source, match.end())
                raise ParseError(span_at(source, match.start(), end), f"unterminated {what}")


def _classify(node: Node, parent_kind: NodeKind | None) -> NodeKind:
    ntype = node.type
    if parent_kind is None:
        return NodeKind.TRANSLATION_UNIT
    if ntype == "comment":
        return NodeKind.COMMENT
    if node.is_error:
        return NodeKind.OPAQUE
    if ntype in _DIRECTIVE_TYPES:
        return NodeKind.DIRECTIVE
    if ntype in _BLOCK_TYPES:
        return NodeKind.BLOCK
    if ntype in _STATEMENT_TYPES or ntype.endswith("_statement"):
        return NodeKind.STATEMENT
    if not node.is_named:
        return NodeKind.TOKEN
    if parent_kind in _CONTAINER_KINDS:
        # e.g. a bare `struct foo { ... };` at file scope
        return NodeKind.STATEMENT
    return NodeKind.EXPRESSION


def span_of(node: Node) -> Span:
    return Span.model_construct(
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        start_point=Point.model_construct(row=node.start_point[0], column=node.start_point[1]),
        end_point=Point.model_construct(row=node.end_point[0], column=node.end_point[1]),
    )


def _to_syntax_node(node: Node, source: bytes, parent_kind: NodeKind | None) -> SyntaxNode:
    kind = _classify(node, parent_kind)
    span = span_of(node)

    children: tuple[SyntaxNode, ...] = ()
    if kind != NodeKind.DIRECTIVE and node.child_count > 0:
        children = tuple(_to_syntax_node(child, source, kind) for child in node.children if not child.is_missing)

    text = None
    if not children or kind in (NodeKind.COMMENT, NodeKind.DIRECTIVE, NodeKind.OPAQUE):
        text = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    return SyntaxNode.model_construct(
        kind=kind,
        type=node.type,
        span=span,
        named=node.is_named,
        text=text,
        children=children,
    )


def parse(code: str | bytes) -> ParsedSource:
    """Parse C source into a ``ParsedSource``.

    Raises ``ParseError`` only when the input cannot be tokenized: invalid
    UTF-8, or an unterminated comment or literal. Anything the grammar does
    not understand ends up in ``opaque`` nodes instead.
    """
    if isinstance(code, str):
        text = code
        try:
            source = code.encode("utf-8")
        except UnicodeEncodeError as exc:
            prefix = code[: exc.start].encode("utf-8", errors="surrogatepass")
            raise ParseError(span_at(prefix, len(prefix)), f"invalid character ({exc.reason})") from None
    else:
        source = bytes(code)
        try:
            text = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(span_at(source, exc.start, exc.end), f"invalid UTF-8 ({exc.reason})") from None

    scan(source)

    parser = get_parser(LANGUAGE)
    tree = parser.parse(source)
    root = _to_syntax_node(tree.root_node, source, None)

    if logger.isEnabledFor(logging.DEBUG):
        opaque = sum(1 for node in root.walk() if node.kind == NodeKind.OPAQUE)
        logger.debug("parsed %d bytes (%d opaque regions)", len(source), opaque)

    return ParsedSource(text=text, source=source, tree=tree, root=root)

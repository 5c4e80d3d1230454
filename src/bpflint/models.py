from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: int
    column: int


class Span(BaseModel):
    """A byte range into the source together with its 0-based row/column endpoints."""

    model_config = ConfigDict(frozen=True)

    start_byte: int
    end_byte: int
    start_point: Point
    end_point: Point

    @classmethod
    def empty(cls) -> "Span":
        return cls(start_byte=0, end_byte=0, start_point=Point(row=0, column=0), end_point=Point(row=0, column=0))

    @property
    def is_empty(self) -> bool:
        return self.start_byte == self.end_byte

    def contains(self, other: "Span") -> bool:
        return self.start_byte <= other.start_byte and other.end_byte <= self.end_byte

    def sort_key(self) -> tuple[int, int]:
        return (self.start_byte, self.end_byte)


class NodeKind(StrEnum):
    TRANSLATION_UNIT = "translation_unit"
    BLOCK = "block"
    STATEMENT = "statement"
    EXPRESSION = "expression"
    COMMENT = "comment"
    DIRECTIVE = "directive"
    OPAQUE = "opaque"
    TOKEN = "token"


# Kinds a disable directive can be attached to.
UNIT_KINDS = frozenset({NodeKind.BLOCK, NodeKind.STATEMENT, NodeKind.DIRECTIVE, NodeKind.OPAQUE})


class SyntaxNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: NodeKind
    type: str
    span: Span
    named: bool = True
    text: str | None = None
    children: tuple["SyntaxNode", ...] = ()

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.type}:{self.span.start_byte}:{self.span.end_byte}"

    @property
    def is_unit(self) -> bool:
        return self.kind in UNIT_KINDS

    def walk(self) -> "list[SyntaxNode]":
        """Return this node and all of its descendants in pre-order."""
        nodes: list[SyntaxNode] = []
        stack: list[SyntaxNode] = [self]
        while stack:
            node = stack.pop()
            nodes.append(node)
            stack.extend(reversed(node.children))
        return nodes


SyntaxNode.model_rebuild()  # necessary for recursive types


class SuppressionDirective(BaseModel):
    model_config = ConfigDict(frozen=True)

    lint_id: str
    span: Span


class Severity(StrEnum):
    WARNING = "warning"
    ERROR = "error"


class RawFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    span: Span
    lint_id: str
    message: str
    suggested_fix: str | None = None


class DiagnosticKind(StrEnum):
    FINDING = "finding"
    RULE_FAILURE = "rule_failure"


class Diagnostic(BaseModel):
    """A reported lint finding, or the failure of a single rule."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind = DiagnosticKind.FINDING
    lint_id: str
    severity: Severity = Severity.WARNING
    span: Span
    message: str
    suggested_fix: str | None = None

    @property
    def start_line(self) -> int:
        """1-based line of the first reported character."""
        return self.span.start_point.row + 1

    @property
    def start_column(self) -> int:
        return self.span.start_point.column + 1

    @property
    def end_line(self) -> int:
        return self.span.end_point.row + 1

    @property
    def end_column(self) -> int:
        return self.span.end_point.column + 1

    def sort_key(self) -> tuple[int, int, str]:
        return (self.span.start_byte, self.span.end_byte, self.lint_id)


class WarningKind(StrEnum):
    UNKNOWN_LINT = "unknown_lint"
    MALFORMED_DIRECTIVE = "malformed_directive"


class EngineWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    span: Span
    message: str


class LintInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str


class FileReport(BaseModel):
    path: str
    code: bytes = b""
    diagnostics: list[Diagnostic] = []
    warnings: list[EngineWarning] = []
    error: str | None = None

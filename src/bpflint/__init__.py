from bpflint.core.batch import lint_file, lint_files
from bpflint.core.lints import QueryLint, TokenLint
from bpflint.core.parser import ParsedSource, parse
from bpflint.core.registry import LintRegistry, builtin_registry
from bpflint.core.report import ReportOptions, report_terminal
from bpflint.core.runner import LintResult, lint, list_lints, run_lints
from bpflint.core.suppression import SuppressionMap, resolve
from bpflint.errors import BpflintError, DuplicateLintError, LintLoadError, ParseError, UnknownLintError
from bpflint.models import (
    Diagnostic,
    DiagnosticKind,
    EngineWarning,
    FileReport,
    LintInfo,
    NodeKind,
    Point,
    RawFinding,
    Severity,
    Span,
    SuppressionDirective,
    SyntaxNode,
    WarningKind,
)


def builtin_lints() -> list[LintInfo]:
    """Return the ids and descriptions of all built-in lints."""
    return list_lints()


__all__ = [
    "BpflintError",
    "Diagnostic",
    "DiagnosticKind",
    "DuplicateLintError",
    "EngineWarning",
    "FileReport",
    "LintInfo",
    "LintLoadError",
    "LintRegistry",
    "LintResult",
    "NodeKind",
    "ParseError",
    "ParsedSource",
    "Point",
    "QueryLint",
    "RawFinding",
    "ReportOptions",
    "Severity",
    "Span",
    "SuppressionDirective",
    "SuppressionMap",
    "SyntaxNode",
    "TokenLint",
    "UnknownLintError",
    "WarningKind",
    "builtin_lints",
    "builtin_registry",
    "lint",
    "lint_file",
    "lint_files",
    "list_lints",
    "parse",
    "report_terminal",
    "resolve",
    "run_lints",
]

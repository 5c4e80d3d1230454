from bpflint.models import Span


class BpflintError(Exception):
    """Base class for all errors raised by bpflint."""


class ParseError(BpflintError):
    """Source text could not be tokenized at all."""

    def __init__(self, span: Span, reason: str) -> None:
        super().__init__(f"{span.start_point.row}:{span.start_point.column}: {reason}")
        self.span = span
        self.reason = reason


class DuplicateLintError(BpflintError, ValueError):
    def __init__(self, lint_id: str) -> None:
        super().__init__(f"Lint '{lint_id}' is already registered")
        self.lint_id = lint_id


class UnknownLintError(BpflintError, KeyError):
    def __init__(self, lint_id: str) -> None:
        super().__init__(lint_id)
        self.lint_id = lint_id

    def __str__(self) -> str:
        return f"Unknown lint '{self.lint_id}'"


class LintLoadError(BpflintError):
    """A lint definition could not be loaded."""

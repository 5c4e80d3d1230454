import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

from bpflint.core.parser import ParsedSource, parse
from bpflint.core.ports.lint import LintRule
from bpflint.core.registry import LintRegistry, builtin_registry
from bpflint.core.suppression import SuppressionMap, resolve
from bpflint.models import Diagnostic, DiagnosticKind, EngineWarning, LintInfo, RawFinding, Severity, Span

logger = logging.getLogger(__name__)


class LintResult(NamedTuple):
    diagnostics: list[Diagnostic]
    warnings: list[EngineWarning]


def _rule_failure(rule: LintRule, reason: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.RULE_FAILURE,
        lint_id=rule.id,
        severity=Severity.ERROR,
        span=Span.empty(),
        message=f"lint '{rule.id}' failed: {reason}",
    )


def _check(rule: LintRule, parsed: ParsedSource) -> list[RawFinding] | Diagnostic:
    """Run a single rule, turning any fault into a rule-failure diagnostic."""
    t0 = time.perf_counter()
    try:
        findings = list(rule.check(parsed))
    except Exception as exc:
        logger.warning("lint %s failed", rule.id, exc_info=True)
        return _rule_failure(rule, str(exc) or type(exc).__name__)

    foreign = sorted({f.lint_id for f in findings if f.lint_id != rule.id})
    if foreign:
        logger.warning("lint %s reported findings for %s", rule.id, ", ".join(foreign))
        return _rule_failure(rule, f"reported findings for other lints: {', '.join(foreign)}")

    logger.debug("lint %s: %d finding(s) in %.3fs", rule.id, len(findings), time.perf_counter() - t0)
    return findings


def run_lints(
    parsed: ParsedSource,
    suppressions: SuppressionMap,
    registry: LintRegistry,
    *,
    jobs: int | None = None,
) -> list[Diagnostic]:
    """Run every rule of ``registry`` over ``parsed`` and return the unsuppressed diagnostics.

    A finding is dropped when the statement or block enclosing it, or any
    enclosing unit further out, is marked for the rule in ``suppressions``.
    The result is ordered by position, then lint id, regardless of ``jobs``.
    """
    rules = list(registry)
    if jobs is not None and jobs > 1 and len(rules) > 1:
        with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="bpflint-rule") as pool:
            results = list(pool.map(lambda rule: _check(rule, parsed), rules))
    else:
        results = [_check(rule, parsed) for rule in rules]

    diagnostics: list[Diagnostic] = []
    for rule, result in zip(rules, results, strict=True):
        if isinstance(result, Diagnostic):
            diagnostics.append(result)
            continue
        for finding in result:
            if suppressions.is_suppressed(rule.id, parsed.units_containing(finding.span)):
                logger.debug("suppressed %s at %s", rule.id, finding.span.start_point)
                continue
            diagnostics.append(
                Diagnostic(
                    lint_id=rule.id,
                    severity=rule.severity,
                    span=finding.span,
                    message=finding.message,
                    suggested_fix=finding.suggested_fix,
                )
            )

    diagnostics.sort(key=Diagnostic.sort_key)
    return diagnostics


def lint(code: str | bytes, registry: LintRegistry | None = None, *, jobs: int | None = None) -> LintResult:
    """Lint BPF C source.

    Raises ``ParseError`` if the source cannot be tokenized. Everything else
    (rule faults, bad directives) is reported in the result.
    """
    if registry is None:
        registry = builtin_registry()
    parsed = parse(code)
    suppressions, warnings = resolve(parsed, registry.ids())
    diagnostics = run_lints(parsed, suppressions, registry, jobs=jobs)
    return LintResult(diagnostics, warnings)


def list_lints(registry: LintRegistry | None = None) -> list[LintInfo]:
    if registry is None:
        registry = builtin_registry()
    return registry.list()

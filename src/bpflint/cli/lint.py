import io
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from bpflint.core.batch import lint_files
from bpflint.core.report import ReportOptions, report_terminal
from bpflint.core.runner import list_lints
from bpflint.core.sources import BOGUS_FILE_EXTENSION, expand_sources, has_bpf_c_ext
from bpflint.models import FileReport

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    level = _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)
    env_level = os.getenv("BPFLINT_LOG")
    if env_level:
        resolved = logging.getLevelName(env_level.strip().upper())
        if isinstance(resolved, int):
            level = resolved
        else:
            err_console.print(f"[yellow]warning[/yellow]: ignoring invalid BPFLINT_LOG value {escape(env_level)!r}")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _report_options(before: int | None, after: int | None, context: int | None) -> ReportOptions:
    if context is not None:
        lines = (context, context)
    else:
        lines = (before or 0, after or 0)
    if lines == (0, 0):
        return ReportOptions()
    return ReportOptions(extra_lines=lines)


def _print_lints(verbosity: int) -> None:
    lints = list_lints()
    if verbosity == 0:
        for info in lints:
            console.out(info.id)
        return
    table = Table(show_lines=False)
    table.add_column("lint")
    table.add_column("description")
    for info in lints:
        table.add_row(info.id, info.description)
    console.print(table)


def _render(report: FileReport, opts: ReportOptions) -> int:
    """Print everything found in ``report``; return the number of reported problems."""
    if report.error is not None:
        err_console.print(f"[red]error[/red]: {escape(report.error)}")
        return 1

    for warning in report.warnings:
        point = warning.span.start_point
        err_console.print(
            f"[yellow]warning[/yellow]: {escape(report.path)}:{point.row}:{point.column}: {escape(warning.message)}"
        )

    diagnostics = list(report.diagnostics)
    if not has_bpf_c_ext(Path(report.path)):
        diagnostics.insert(0, BOGUS_FILE_EXTENSION)

    buffer = io.StringIO()
    for diagnostic in diagnostics:
        report_terminal(diagnostic, report.code, report.path, buffer, opts)
    if diagnostics:
        console.out(buffer.getvalue(), end="")
    return len(diagnostics)


def lint(
    srcs: Annotated[
        list[str] | None,
        typer.Argument(
            metavar="[@]SRCS...",
            help="The BPF C source files to lint. Use '@file' to read a newline separated list of files from 'file'.",
            show_default=False,
        ),
    ] = None,
    print_lints: Annotated[bool, typer.Option("--print-lints", help="Print a list of available lints.")] = False,
    verbose: Annotated[
        int, typer.Option("-v", "--verbose", count=True, help="Increase verbosity (can be supplied multiple times).")
    ] = 0,
    before: Annotated[
        int | None, typer.Option("-B", "--before", min=0, max=255, help="Number of lines to show before the error line.")
    ] = None,
    after: Annotated[
        int | None, typer.Option("-A", "--after", min=0, max=255, help="Number of lines to show after the error line.")
    ] = None,
    context: Annotated[
        int | None,
        typer.Option(
            "-C", "--context", min=0, max=255, help="Number of lines to show before and after the error line."
        ),
    ] = None,
    jobs: Annotated[int, typer.Option("-j", "--jobs", min=1, help="Number of files to lint in parallel.")] = 1,
    timeout: Annotated[
        float | None, typer.Option(min=0.0, help="Give up on a file after this many seconds.", show_default=False)
    ] = None,
) -> None:
    """Lint BPF C source files."""
    _configure_logging(verbose)

    if print_lints:
        if srcs:
            raise typer.BadParameter("cannot be combined with source files", param_hint="'--print-lints'")
        _print_lints(verbose)
        return

    if not srcs:
        raise typer.BadParameter("at least one source file is required", param_hint="'[@]SRCS...'")
    if context is not None and (before is not None or after is not None):
        raise typer.BadParameter("cannot be combined with '--before' or '--after'", param_hint="'--context'")

    try:
        paths = expand_sources(srcs)
    except OSError as exc:
        raise typer.BadParameter(str(exc), param_hint="'[@]SRCS...'") from exc

    opts = _report_options(before, after, context)
    problems = 0
    for report in lint_files(paths, jobs=jobs, timeout=timeout):
        problems += _render(report, opts)

    if problems:
        raise typer.Exit(1)

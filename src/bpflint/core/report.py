"""Terminal rendering of diagnostics.

Example (with one line of context before and after)::

    warning: [probe-read] bpf_probe_read() is deprecated
      --> example.bpf.c:5:4
      |
    4 |     struct event event = {0};
    5 |     bpf_probe_read(event.comm, TASK_COMM_LEN, prev->comm);
      |     ^^^^^^^^^^^^^^
    6 |     return 0;
      |

Rows and columns are 0-based.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from bpflint.models import Diagnostic


@dataclass(frozen=True)
class ReportOptions:
    # (lines_before, lines_after)
    extra_lines: tuple[int, int] | None = None

    @property
    def lines_before(self) -> int:
        return 0 if self.extra_lines is None else self.extra_lines[0]

    @property
    def lines_after(self) -> int:
        return 0 if self.extra_lines is None else self.extra_lines[1]


def _line_start_by_row(code: bytes, target_row: int) -> int:
    if target_row == 0:
        return 0
    current_row = 0
    for idx, byte in enumerate(code):
        if byte == 0x0A:
            current_row += 1
            if current_row == target_row:
                return idx + 1
    return 0


def _count_lines(code: bytes) -> int:
    if not code:
        return 0
    return code.count(b"\n") + 1


def _context_before(code: bytes, start_row: int, count: int) -> list[tuple[int, int]]:
    if start_row == 0 or count == 0:
        return []
    return [(row, _line_start_by_row(code, row)) for row in range(max(start_row - count, 0), start_row)]


def _context_after(code: bytes, end_row: int, count: int) -> list[tuple[int, int]]:
    total_lines = _count_lines(code)
    if end_row + 1 >= total_lines or count == 0:
        return []
    end_search = min(end_row + 1 + count, total_lines)
    return [(row, _line_start_by_row(code, row)) for row in range(end_row + 1, end_search)]


def _lines(code: bytes, byte: int) -> Iterator[str]:
    """Yield the line containing ``byte`` and every line after it, without line terminators."""
    start = code.rfind(b"\n", 0, byte) + 1
    while start <= len(code):
        end = code.find(b"\n", start)
        if end == -1:
            end = len(code)
        yield code[start:end].decode("utf-8", errors="replace")
        start = end + 1


def _first_line(code: bytes, byte: int) -> str:
    return next(_lines(code, byte))


def report_terminal(
    diagnostic: Diagnostic,
    code: bytes,
    path: str | Path,
    writer: TextIO,
    opts: ReportOptions | None = None,
) -> None:
    """Write a report for ``diagnostic`` found in ``code`` (the contents of ``path``) to ``writer``."""
    opts = opts or ReportOptions()
    span = diagnostic.span
    start_row, start_col = span.start_point.row, span.start_point.column
    end_row, end_col = span.end_point.row, span.end_point.column

    writer.write(f"{diagnostic.severity}: [{diagnostic.lint_id}] {diagnostic.message}\n")
    writer.write(f"  --> {path}:{start_row}:{start_col}\n")

    if span.is_empty:
        return

    before = _context_before(code, start_row, opts.lines_before)
    after = _context_after(code, end_row, opts.lines_after)

    max_row = after[-1][0] if after else end_row
    width = len(str(max_row))
    prefix = f"{' ' * width} | "
    writer.write(f"{prefix}\n")

    for row, line_start in before:
        writer.write(f"{row} | {_first_line(code, line_start)}\n")

    if start_row == end_row:
        writer.write(f"{start_row} | {_first_line(code, span.start_byte)}\n")
        writer.write(f"{prefix}{' ' * start_col}{'^' * max(end_col - start_col, 0)}\n")
    else:
        lines = _lines(code, span.start_byte)
        for idx, row in enumerate(range(start_row, end_row + 1)):
            marker = "/" if idx == 0 else "|"
            line = next(lines, None)
            if line is not None:
                writer.write(f"{row} |  {marker} {line}\n")
        writer.write(f"{prefix} |{'_' * end_col}^\n")

    for row, line_start in after:
        writer.write(f"{row} | {_first_line(code, line_start)}\n")

    if diagnostic.suggested_fix:
        writer.write(f"{' ' * width} = help: consider `{diagnostic.suggested_fix}`\n")

    writer.write(f"{prefix}\n")

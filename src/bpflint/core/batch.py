import logging
import threading
import time
from collections import deque
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

from bpflint.core.registry import LintRegistry, builtin_registry
from bpflint.core.runner import lint
from bpflint.errors import ParseError
from bpflint.models import FileReport

logger = logging.getLogger(__name__)


def lint_file(path: Path, registry: LintRegistry | None = None) -> FileReport:
    """Read and lint a single file; failures end up in the report's ``error``."""
    try:
        code = path.read_bytes()
    except OSError as exc:
        return FileReport(path=str(path), error=f"failed to read `{path}`: {exc.strerror or exc}")

    try:
        diagnostics, warnings = lint(code, registry)
    except ParseError as exc:
        return FileReport(path=str(path), code=code, error=f"failed to lint `{path}`: {exc}")
    except Exception as exc:
        logger.exception("Error linting %s", path)
        return FileReport(path=str(path), code=code, error=f"failed to lint `{path}`: {exc}")

    logger.info("linted %s: %d diagnostic(s), %d warning(s)", path, len(diagnostics), len(warnings))
    return FileReport(path=str(path), code=code, diagnostics=diagnostics, warnings=warnings)

def _start(path: Path, registry: LintRegistry) -> Future[FileReport]:
    """Lint ``path`` on a daemon thread so that an abandoned file never blocks interpreter exit."""
    future: Future[FileReport] = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(lint_file(path, registry))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=run, name=f"bpflint-file-{path.name}", daemon=True).start()
    return future


def _lint_with_deadline(paths: list[Path], registry: LintRegistry, jobs: int, timeout: float) -> list[FileReport]:
    reports: list[FileReport | None] = [None] * len(paths)
    pending = deque(enumerate(paths))
    # future -> (index, path, deadline)
    running: dict[Future[FileReport], tuple[int, Path, float]] = {}

    while pending or running:
        while pending and len(running) < jobs:
            index, path = pending.popleft()
            running[_start(path, registry)] = (index, path, time.monotonic() + timeout)

        next_deadline = min(deadline for _, _, deadline in running.values())
        wait(running, timeout=max(next_deadline - time.monotonic(), 0), return_when=FIRST_COMPLETED)

        now = time.monotonic()
        for future, (index, path, deadline) in list(running.items()):
            if future.done():
                del running[future]
                reports[index] = future.result()
            elif deadline <= now:
                # The thread cannot be stopped; it keeps running but no longer holds a slot.
                del running[future]
                logger.warning("Timed out linting %s", path)
                reports[index] = FileReport(path=str(path), error=f"timed out linting `{path}` after {timeout}s")

    return [report for report in reports if report is not None]


def lint_files(
    paths: Iterable[Path],
    *,
    registry: LintRegistry | None = None,
    jobs: int | None = None,
    timeout: float | None = None,
) -> list[FileReport]:
    """Lint ``paths`` with up to ``jobs`` files in flight.

    Reports come back in input order. When ``timeout`` is set, a file that
    has not finished ``timeout`` seconds after it was started is reported as
    an error and its worker slot is handed to the next file, so a stuck file
    delays neither the remaining files nor process exit.
    """
    paths = list(paths)
    if registry is None:
        registry = builtin_registry()
    workers = max(jobs or 1, 1)
    if timeout is not None:
        return _lint_with_deadline(paths, registry, workers, timeout)
    if workers == 1:
        return [lint_file(path, registry) for path in paths]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bpflint-file") as pool:
        return list(pool.map(lambda path: lint_file(path, registry), paths))

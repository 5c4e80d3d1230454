from collections.abc import Iterable
from pathlib import Path

from bpflint.models import Diagnostic, Span

BPF_C_SUFFIX = ".bpf.c"

BOGUS_FILE_EXTENSION = Diagnostic(
    lint_id="bogus-file-extension",
    span=Span.empty(),
    message=f"by convention BPF C code should use the file extension '{BPF_C_SUFFIX}'",
)


def has_bpf_c_ext(path: Path) -> bool:
    # Windows-style separators are honored on every platform.
    name = str(path).replace("\\", "/").rsplit("/", 1)[-1]
    return name.endswith(BPF_C_SUFFIX)


def read_file_list(path: Path) -> list[Path]:
    """Read a newline separated list of paths, ignoring blank lines."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"failed to open file list `{path}`: {exc.strerror or exc}") from exc
    return [Path(line.strip()) for line in content.splitlines() if line.strip()]


def expand_sources(args: Iterable[str]) -> list[Path]:
    """Expand command line sources; ``@file`` stands for the paths listed in ``file``."""
    paths: list[Path] = []
    for arg in args:
        if arg.startswith("@"):
            paths.extend(read_file_list(Path(arg[1:])))
        else:
            paths.append(Path(arg))
    return paths

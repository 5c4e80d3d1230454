"""Tests for the bpflint command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from bpflint.cli.app import app

runner = CliRunner()

PROBE_READ = "int f(void)\n{\n    bpf_probe_read(dst, 4, src);\n    return 0;\n}\n"
CLEAN = "int f(void)\n{\n    return 0;\n}\n"


@pytest.fixture(autouse=True)
def _no_log_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BPFLINT_LOG", raising=False)


def _write(directory: Path, name: str, code: str) -> Path:
    path = directory / name
    path.write_text(code, encoding="utf-8")
    return path


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_help_flag(flag: str) -> None:
    result = runner.invoke(app, [flag])
    assert result.exit_code == 0
    assert "Usage" in result.output
    assert "--print-lints" in result.output


def test_print_lints() -> None:
    result = runner.invoke(app, ["--print-lints"])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "get-current-task",
        "probe-read",
        "trace-printk",
        "unstable-attach-point",
        "untyped-map-member",
    ]


def test_print_lints_verbose_shows_descriptions() -> None:
    result = runner.invoke(app, ["--print-lints", "-v"])
    assert result.exit_code == 0
    assert "probe-read" in result.stdout
    assert "deprecated" in result.stdout


def test_print_lints_with_sources_is_usage_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", CLEAN)
    result = runner.invoke(app, ["--print-lints", str(path)])
    assert result.exit_code == 2


def test_missing_sources_is_usage_error() -> None:
    result = runner.invoke(app, [])
    assert result.exit_code == 2


def test_clean_file_exits_zero(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", CLEAN)
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 0, result.output
    assert result.stdout == ""


def test_finding_exits_one(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", PROBE_READ)
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 1
    assert "warning: [probe-read] bpf_probe_read() is deprecated" in result.stdout
    assert f"  --> {path}:2:4\n" in result.stdout
    assert "2 |     bpf_probe_read(dst, 4, src);\n" in result.stdout
    assert "= help: consider `bpf_probe_read_kernel`" in result.stdout


def test_context_lines(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", PROBE_READ)
    result = runner.invoke(app, ["-C", "1", str(path)])
    assert result.exit_code == 1
    assert "1 | {\n" in result.stdout
    assert "3 |     return 0;\n" in result.stdout


def test_before_only(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", PROBE_READ)
    result = runner.invoke(app, ["-B", "2", str(path)])
    assert result.exit_code == 1
    assert "0 | int f(void)\n" in result.stdout
    assert "3 |     return 0;\n" not in result.stdout


@pytest.mark.parametrize("other", ["-A", "-B"])
def test_context_conflicts_with_before_and_after(tmp_path: Path, other: str) -> None:
    path = _write(tmp_path, "prog.bpf.c", CLEAN)
    result = runner.invoke(app, ["-C", "1", other, "1", str(path)])
    assert result.exit_code == 2


def test_context_out_of_range(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.bpf.c", CLEAN)
    result = runner.invoke(app, ["-C", "256", str(path)])
    assert result.exit_code == 2


def test_bogus_file_extension(tmp_path: Path) -> None:
    path = _write(tmp_path, "prog.c", CLEAN)
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 1
    assert result.stdout == (
        "warning: [bogus-file-extension] by convention BPF C code should use the file extension '.bpf.c'\n"
        f"  --> {path}:0:0\n"
    )


def test_file_list_argument(tmp_path: Path) -> None:
    clean = _write(tmp_path, "clean.bpf.c", CLEAN)
    dirty = _write(tmp_path, "dirty.bpf.c", PROBE_READ)
    file_list = _write(tmp_path, "files.txt", f"{clean}\n\n{dirty}\n")
    result = runner.invoke(app, [f"@{file_list}"])
    assert result.exit_code == 1
    assert str(dirty) in result.stdout
    assert str(clean) not in result.stdout


def test_missing_file_list_is_usage_error(tmp_path: Path) -> None:
    result = runner.invoke(app, [f"@{tmp_path / 'missing.txt'}"])
    assert result.exit_code == 2
    assert "failed to open file list" in result.output


def test_unreadable_file_exits_one(tmp_path: Path) -> None:
    missing = tmp_path / "missing.bpf.c"
    result = runner.invoke(app, [str(missing)])
    assert result.exit_code == 1
    assert "failed to read" in result.output


def test_parse_error_does_not_stop_other_files(tmp_path: Path) -> None:
    broken = _write(tmp_path, "broken.bpf.c", "int x;\n/* never closed\n")
    dirty = _write(tmp_path, "dirty.bpf.c", PROBE_READ)
    result = runner.invoke(app, [str(broken), str(dirty)])
    assert result.exit_code == 1
    assert "unterminated comment" in result.output
    assert "warning: [probe-read]" in result.stdout


def test_parallel_output_keeps_argument_order(tmp_path: Path) -> None:
    paths = [_write(tmp_path, f"p{index}.bpf.c", PROBE_READ) for index in range(4)]
    result = runner.invoke(app, ["-j", "3", *map(str, paths)])
    assert result.exit_code == 1
    positions = [result.stdout.index(f"--> {path}:") for path in paths]
    assert positions == sorted(positions)


def test_directive_warnings_go_to_stderr(tmp_path: Path) -> None:
    code = "int f(void)\n{\n    /* bpflint: disable=nope */\n    return 0;\n}\n"
    path = _write(tmp_path, "prog.bpf.c", code)
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 0
    assert "unknown lint 'nope' in disable directive" in result.output


def test_invalid_log_env_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BPFLINT_LOG", "chatty")
    path = _write(tmp_path, "prog.bpf.c", CLEAN)
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 0
    assert "BPFLINT_LOG" in result.output

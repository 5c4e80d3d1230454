import typer

from bpflint.cli.lint import lint

app = typer.Typer(
    name="bpflint",
    help="A linter for BPF C code.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("lint")(lint)


def main() -> None:
    app()

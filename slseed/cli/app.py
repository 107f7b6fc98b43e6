from __future__ import annotations

import os
from pathlib import Path

import typer

from slseed import __version__
from slseed.cli.commands.deploy import deploy
from slseed.cli.commands.env import env
from slseed.cli.commands.prune import prune
from slseed.cli.commands.stack import stack
from slseed.core.errors import ErrorCode
from slseed.core.project import CONFIG_FILENAME, PROJECT_ENV_VAR, is_project_root

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(deploy)
app.command()(prune)
app.command()(stack)
app.command()(env)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    project: Path | None = typer.Option(
        None,
        "--project",
        help="Project root (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if project is not None:
        try:
            root = project.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --project: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_project_root(root):
            typer.echo(
                f"error: --project '{root}' is not a valid project (missing {CONFIG_FILENAME})",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[PROJECT_ENV_VAR] = str(root)


def main() -> None:
    app()

# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Diagnostic command line for the node's configuration.

Node options are passed after ``--`` so they reach the argument store
untouched:

```console
$ dynconfig show -- -datadir=/srv/dynamic -debug=net
$ dynconfig show --toml -- -conf=/etc/dynamic/dynamic.conf
$ dynconfig categories -- -debug=1 -debugexclude=libevent
$ dynconfig options
```
"""

import logging
from typing import Annotated, Optional

import tomli_w
import typer
from rich.console import Console
from rich.table import Table

from dynconfig.context import RuntimeContext
from dynconfig.exceptions import DynConfigError
from dynconfig.help import help_message
from dynconfig.logging_bootstrap import bootstrap_logging

app = typer.Typer(
    name="dynconfig",
    help="Inspect how a Dynamic node resolves its options and debug categories.",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
error_console = Console(stderr=True)

TokensArgument = Annotated[
    Optional[list[str]],  # noqa: UP007
    typer.Argument(help="Node options such as -debug=net, given after `--`.", show_default=False),
]
StrictOption = Annotated[
    bool,
    typer.Option("--strict", help="Fail on a missing config file or an unknown debug category."),
]


def _startup(tokens: Optional[list[str]], *, strict: bool) -> RuntimeContext:  # noqa: UP007
    bootstrap_logging(logging.WARNING)
    try:
        return RuntimeContext.startup(tokens or [], strict=strict)
    except DynConfigError as e:
        error_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def show(
    tokens: TokensArgument = None,
    strict: StrictOption = False,  # noqa: FBT002
    as_toml: Annotated[bool, typer.Option("--toml", help="Print the resolved values as TOML.")] = False,  # noqa: FBT002
) -> None:
    """Show every resolved argument after reading the config file."""
    context = _startup(tokens, strict=strict)
    values = context.args.snapshot()

    if as_toml:
        document = {
            "config_file": str(context.config_file()),
            "args": values,
            "positional": context.positional,
        }
        typer.echo(tomli_w.dumps(document))
        return

    table = Table(title=f"Resolved arguments ({context.config_file()})")
    table.add_column("Name", style="cyan")
    table.add_column("Value")
    table.add_column("Occurrences", justify="right")
    for name, value in values.items():
        shown = "[red]negated[/red]" if context.args.is_negated(name) else value
        table.add_row(f"-{name}", shown, str(len(context.args.get_args(name))))
    console.print(table)

    if context.positional:
        console.print("Positional: " + " ".join(context.positional))


@app.command()
def categories(
    tokens: TokensArgument = None,
    strict: StrictOption = False,  # noqa: FBT002
) -> None:
    """Show which debug categories are active."""
    context = _startup(tokens, strict=strict)

    table = Table(title=f"Debug categories (mask {context.categories.mask:#010x})")
    table.add_column("Category", style="cyan")
    table.add_column("Active")
    for entry in context.categories.list_active_categories():
        table.add_row(entry.category, "[green]yes[/green]" if entry.active else "no")
    console.print(table)

    for name in context.unknown_categories:
        error_console.print(f"[yellow]Warning:[/yellow] unsupported logging category {name!r} ignored")


@app.command()
def options() -> None:
    """Print help for the configuration and debugging options."""
    typer.echo(help_message(), nl=False)

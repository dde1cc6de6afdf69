"""CLI entrypoint: Typer app definition and command registration"""

import typer

from chandiff.cli.commands import (
    compare_cmd, decompose_cmd, diff_cmd, init_cmd, revisions_cmd, save_cmd,
)


app = typer.Typer(name="chandiff", no_args_is_help=True, help="Structural change reports for channel documents")

app.command(name="decompose")(decompose_cmd)
app.command(name="diff")(diff_cmd)
app.command(name="init")(init_cmd)
app.command(name="save")(save_cmd)
app.command(name="revisions")(revisions_cmd)
app.command(name="compare")(compare_cmd)

"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdcbridge.cli.commands import check_cmd, diff_cmd, load_cmd, roundtrip_cmd, save_cmd


app = typer.Typer(name="mdcbridge", no_args_is_help=True, help="Convert MDC markdown to and from the editor document model")

app.command(name="load")(load_cmd)
app.command(name="save")(save_cmd)
app.command(name="roundtrip")(roundtrip_cmd)
app.command(name="check")(check_cmd)
app.command(name="diff")(diff_cmd)

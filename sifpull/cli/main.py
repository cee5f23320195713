import typer

from sifpull.cli.commands import (
    pull,
    version,
)
from sifpull.internal import paths
from sifpull.internal.logging import setup_logging

app = typer.Typer(
    name="sifpull",
    help="Pull container images from library, hub, OCI and web sources into SIF files.",
    no_args_is_help=True
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="print log messages to stderr"),
    debug: bool = typer.Option(False, "--debug", "-d", help="print debugging information"),
):
    setup_logging(
        log_level_name="DEBUG" if debug else "INFO",
        log_file_path=paths.get_log_file(),
        console_output=verbose or debug,
    )


app.command("pull")(pull.pull)
app.command("version")(version.version)

if __name__ == "__main__":
    app()

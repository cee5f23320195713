import importlib.metadata

import typer

from sifpull.internal.logging import get_logger

logger = get_logger(__name__)


def version():
    """
    Show the sifpull version.
    """
    try:
        # Read version from installed package metadata
        package_version = importlib.metadata.version("sifpull")
    except importlib.metadata.PackageNotFoundError:
        typer.echo("sifpull is not installed or version metadata not found.")
        typer.echo("Please install the package first (e.g., pip install . or pip install -e .)")
        logger.warning("sifpull package version not found.")
        raise typer.Exit(1)
    typer.echo(f"sifpull version: {package_version}")


if __name__ == "__main__":
    typer.run(version)

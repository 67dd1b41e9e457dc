from __future__ import annotations

import typer

from .base import configure_logging
from .commands.detect import app as detect_app

configure_logging()
app = typer.Typer(
    help="Per-band impulse detection CLI",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(detect_app, name="detect")


def main() -> None:
    """Main entry point for package CLI.

    Invokes the Typer application, which handles command parsing and
    execution.
    """
    app()


if __name__ == "__main__":
    main()

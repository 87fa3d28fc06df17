import logging
import sys

import typer

from ranchertest.commands import cluster, rancher
from ranchertest.logging import setup_logging

app = typer.Typer(help="Helpers for Rancher Manager end-to-end tests.")

# Global debug flag
debug_mode = False

# Add all command groups
app.add_typer(rancher.app, name="rancher")
app.add_typer(cluster.app, name="cluster")


# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """ranchertest - Rancher Manager test helpers."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")


def run():
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()

"""Main CLI entry point for chunkctl."""

from __future__ import annotations

import click

from chunkctl import __version__
from chunkctl.cli.config_cmd import config
from chunkctl.cli.progress_cmd import progress
from chunkctl.cli.upload import upload, verify

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="chunkctl")
def cli() -> None:
    """chunkctl - Resumable chunked uploads with round-trip verification.

    Uploads a file to a chunk store in fixed-size pieces, asks the store to
    reassemble it, then downloads the result and checks its SHA-256.

    Get started:

      chunkctl config init           # Create config file

      chunkctl upload ./video.mp4    # Upload and verify

      chunkctl progress list         # Show resumable sessions

    Use --help on any command for more information.
    """
    pass


# =============================================================================
# Register Commands
# =============================================================================

cli.add_command(config)
cli.add_command(progress)
cli.add_command(upload)
cli.add_command(verify)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

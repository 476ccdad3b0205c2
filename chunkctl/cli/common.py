"""Common CLI utilities, decorators, and helpers."""

from __future__ import annotations

import sys
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click

from chunkctl.core.config import DEFAULT_URL, ENV_PROFILE, Config, Profile
from chunkctl.core.exceptions import (
    ChunkctlError,
    ProfileNotFoundError,
    TransferError,
    VerificationError,
)
from chunkctl.core.logging import setup_logging
from chunkctl.core.output import OutputFormat, print_error
from chunkctl.core.progress_store import JsonFileProgressStore

F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# Exit Codes
# =============================================================================


class ExitCode:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    UPLOAD_FAILED = 3
    USER_CANCELLED = 5
    VERIFICATION_FAILED = 6


# =============================================================================
# Context Object
# =============================================================================


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.config: Optional[Config] = None
        self.profile_name: Optional[str] = None
        self.output_format: OutputFormat = OutputFormat.TABLE
        self.quiet: bool = False
        self.verbose: bool = False

    def get_profile(self) -> Profile:
        """Resolve the active profile.

        Falls back to a local store on the default port when no profile has
        been configured at all.

        Raises:
            ProfileNotFoundError: If a named profile does not exist.
        """
        if self.config is None:
            self.config = Config.load()

        try:
            return self.config.get_profile(self.profile_name)
        except ProfileNotFoundError:
            if self.profile_name is None and not self.config.profiles:
                return Profile(url=DEFAULT_URL)
            raise

    def get_store(self) -> JsonFileProgressStore:
        """Progress store in the configured directory."""
        if self.config is None:
            self.config = Config.load()
        return JsonFileProgressStore(self.config.progress_dir)


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Global Options
# =============================================================================


def global_options(f: F) -> F:
    """Add global options to a command."""

    @click.option(
        "--profile",
        "-p",
        envvar=ENV_PROFILE,
        help="Config profile to use",
    )
    @click.option(
        "--output-format",
        "-o",
        "output_format",
        type=click.Choice(["json", "table"]),
        default="table",
        help="Output format",
    )
    @click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimal output",
    )
    @click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose output",
    )
    @pass_context
    @wraps(f)
    def wrapper(
        ctx: Context,
        profile: Optional[str],
        output_format: str,
        quiet: bool,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Populate context from global options and invoke the command."""
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose

        setup_logging(quiet=quiet, verbose=verbose)
        ctx.config = Config.load()

        return f(ctx, *args, **kwargs)

    return wrapper  # type: ignore


# =============================================================================
# Error Handling
# =============================================================================


def handle_errors(f: F) -> F:
    """Handle common errors and convert to CLI exit codes.

    Upload failures and verification failures get distinct messages and
    exit codes.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Capture errors and exit with consistent messaging."""
        try:
            return f(*args, **kwargs)
        except TransferError as e:
            print_error(f"Upload failed: {e}")
            sys.exit(ExitCode.UPLOAD_FAILED)
        except VerificationError as e:
            print_error(f"Upload succeeded but verification failed: {e}")
            sys.exit(ExitCode.VERIFICATION_FAILED)
        except ChunkctlError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)
        except KeyboardInterrupt:
            print_error("Cancelled")
            sys.exit(ExitCode.USER_CANCELLED)
        except (click.ClickException, click.exceptions.Exit):
            raise
        except OSError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore

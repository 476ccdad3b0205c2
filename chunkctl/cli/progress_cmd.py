"""Progress record commands for chunkctl."""

from __future__ import annotations

import click

from chunkctl.cli.common import Context, global_options, handle_errors
from chunkctl.core.exceptions import ChunkctlError
from chunkctl.core.output import (
    OutputFormat,
    print_key_value,
    print_output,
    print_success,
    print_warning,
)
from chunkctl.models.record import ProgressRecord

COLUMNS = ["session_id", "file_name", "uploaded", "total_chunks", "percent"]


def _row(record: ProgressRecord) -> dict[str, object]:
    return {
        "session_id": record.session_id,
        "file_name": record.file_name,
        "uploaded": record.uploaded_count,
        "total_chunks": record.total_chunks,
        "percent": f"{record.percent:.1f}",
    }


@click.group()
def progress() -> None:
    """Inspect and clear locally saved upload progress."""
    pass


@progress.command("list")
@global_options
@handle_errors
def progress_list(ctx: Context) -> None:
    """List sessions with saved progress.

    Example:
        chunkctl progress list
    """
    from chunkctl.services.uploads import UploadSessionManager

    store = ctx.get_store()
    records = [
        record
        for key in store.keys()
        if (record := UploadSessionManager.read_record(store, key)) is not None
    ]

    print_output(
        [_row(r) for r in records],
        format=ctx.output_format,
        columns=COLUMNS,
        title="Saved progress",
    )


@progress.command("show")
@click.argument("session_id")
@global_options
@handle_errors
def progress_show(ctx: Context, session_id: str) -> None:
    """Show the saved record for SESSION_ID."""
    from chunkctl.services.uploads import UploadSessionManager

    record = UploadSessionManager.read_record(ctx.get_store(), session_id)
    if record is None:
        raise ChunkctlError(f"No saved progress for {session_id}")

    data = _row(record)
    data["file_size"] = record.file_size
    data["file_hash"] = record.file_hash
    data["pending"] = ",".join(str(i) for i in record.pending()) or "-"
    if ctx.output_format == OutputFormat.JSON:
        print_output(data, format=ctx.output_format)
    else:
        print_key_value(data, title=record.file_name)


@progress.command("clear")
@click.argument("session_id", required=False)
@click.option("--all", "clear_all", is_flag=True, help="Clear every saved record")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@global_options
@handle_errors
def progress_clear(ctx: Context, session_id: str | None, clear_all: bool, yes: bool) -> None:
    """Delete saved progress so the next upload starts from scratch.

    Example:
        chunkctl progress clear dmlkZW8ubXA0
        chunkctl progress clear --all -y
    """
    store = ctx.get_store()
    if clear_all:
        keys = store.keys()
    elif session_id:
        keys = [session_id]
    else:
        raise click.UsageError("Give a SESSION_ID or --all")

    if not keys:
        if not ctx.quiet:
            print_warning("No saved progress")
        return

    if clear_all and not yes:
        click.confirm(f"Delete {len(keys)} progress record(s)?", abort=True)

    for key in keys:
        store.delete(key)

    if not ctx.quiet:
        print_success(f"Cleared {len(keys)} progress record(s)")

"""Upload and verify commands for chunkctl."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from chunkctl.cli.common import Context, global_options, handle_errors
from chunkctl.core.output import (
    ChunkProgressBar,
    OutputFormat,
    format_bytes,
    print_output,
    print_success,
)
from chunkctl.core.validation import validate_chunk_size, validate_retries, validate_workers


def _summary_row(result) -> dict[str, object]:
    return {
        "session_id": result.session_id,
        "file": result.file_name,
        "size": format_bytes(result.file_size),
        "chunks": f"{result.chunks_uploaded} sent, {result.chunks_skipped} resumed",
        "duration": f"{result.duration:.2f}s",
        "throughput": f"{result.throughput_mbps:.1f} MiB/s",
        "sha256": result.file_hash,
        "verified": result.verified,
    }


@click.command("upload")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--chunk-size", type=int, default=None, help="Bytes per chunk [profile, 5 MiB]")
@click.option("--workers", type=int, default=None, help="Concurrent chunk uploads [profile, 4]")
@click.option("--retries", type=int, default=None, help="Retries per chunk [profile, 0]")
@click.option(
    "--dest",
    "-d",
    type=click.Path(path_type=Path),
    default=None,
    help="Save the retrieved copy to this file or directory",
)
@click.option(
    "--session-id-mode",
    type=click.Choice(["name", "content"]),
    default="name",
    show_default=True,
    help="Derive the session id from the name only, or from name, size and mtime",
)
@click.option(
    "--keep-progress-on-failure",
    is_flag=True,
    help="Keep the progress record after a failed upload so the next run resumes",
)
@click.option(
    "--provisional",
    is_flag=True,
    help="Save the copy as soon as its size matches, before the hash check",
)
@global_options
@handle_errors
def upload(
    ctx: Context,
    file: Path,
    chunk_size: Optional[int],
    workers: Optional[int],
    retries: Optional[int],
    dest: Optional[Path],
    session_id_mode: str,
    keep_progress_on_failure: bool,
    provisional: bool,
) -> None:
    """Upload FILE in chunks, then download and verify the stored copy.

    Example:
        chunkctl upload ./video.mp4
        chunkctl upload ./video.mp4 --workers 8 --dest ./roundtrip/
    """
    from chunkctl.services import uploads
    from chunkctl.services.verification import DeliveryMode
    from chunkctl.transfer.retry import RetryPolicy
    from chunkctl.transfer.session_id import SessionIdMode

    profile = ctx.get_profile()
    chunk_size = validate_chunk_size(profile.chunk_size if chunk_size is None else chunk_size)
    workers = validate_workers(profile.max_concurrency if workers is None else workers)
    retries = validate_retries(profile.max_retries if retries is None else retries)

    delivered: list[Path] = []

    def save_artifact(artifact) -> None:
        if dest is not None:
            delivered.append(artifact.save(dest))

    kwargs = dict(
        base_url=profile.url,
        path=file,
        store=ctx.get_store(),
        chunk_size=chunk_size,
        max_concurrency=workers,
        retry=RetryPolicy(max_retries=retries),
        session_id_mode=SessionIdMode(session_id_mode),
        retention=(
            uploads.RecordRetention.KEEP_ON_FAILURE
            if keep_progress_on_failure
            else uploads.RecordRetention.ALWAYS_DELETE
        ),
        delivery=DeliveryMode.PROVISIONAL if provisional else DeliveryMode.VERIFIED,
        timeout=profile.timeout,
        verify_ssl=profile.verify_ssl,
        on_artifact=save_artifact,
    )

    show_progress = ctx.output_format == OutputFormat.TABLE and not ctx.quiet
    if show_progress:
        with ChunkProgressBar(f"Uploading {file.name}", file.stat().st_size, chunk_size) as bar:
            result = uploads.upload_file(progress_callback=bar.update, **kwargs)
    else:
        result = uploads.upload_file(**kwargs)

    print_output(_summary_row(result), format=ctx.output_format, title="Upload")

    if result.verification_error is not None:
        result.raise_for_verification()

    if not ctx.quiet:
        print_success(f"Uploaded and verified {result.file_name}")
        for path in delivered:
            print_success(f"Saved verified copy to {path}")


@click.command("verify")
@click.argument("session_id")
@click.option("--name", "original_name", required=True, help="Original file name")
@click.option("--size", "original_size", type=int, required=True, help="Original size in bytes")
@click.option("--sha256", "expected_hash", default=None, help="SHA-256 of the source file")
@click.option(
    "--dest",
    "-d",
    type=click.Path(path_type=Path),
    default=None,
    help="Save the verified copy to this file or directory",
)
@global_options
@handle_errors
def verify(
    ctx: Context,
    session_id: str,
    original_name: str,
    original_size: int,
    expected_hash: Optional[str],
    dest: Optional[Path],
) -> None:
    """Download a completed upload and verify name, size and hash.

    Example:
        chunkctl verify dmlkZW8ubXA0 --name video.mp4 --size 12582912
    """
    from chunkctl.services import uploads

    profile = ctx.get_profile()
    artifact = uploads.verify_file(
        base_url=profile.url,
        session_id=session_id,
        original_name=original_name,
        original_size=original_size,
        expected_hash=expected_hash,
        timeout=profile.timeout,
        verify_ssl=profile.verify_ssl,
    )

    saved = artifact.save(dest) if dest is not None else None
    print_output(
        {
            "session_id": artifact.session_id,
            "name": artifact.name,
            "size": artifact.size,
            "sha256": artifact.verification.actual_hash,
            "verified": artifact.verified,
            "saved_to": str(saved) if saved else None,
        },
        format=ctx.output_format,
        title="Verification",
    )

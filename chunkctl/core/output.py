"""Console output for chunkctl.

Results go to stdout as JSON or Rich tables; status messages and the upload
progress bar go to stderr so JSON output stays machine-readable.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from chunkctl.models.progress import TransferProgress

console = Console()
err_console = Console(stderr=True)


class OutputFormat(Enum):
    """Output format options."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        return cls(value.lower())


def format_bytes(size: int) -> str:
    """Human-readable byte count, e.g. ``12.0 MiB``."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def _plain(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def _label(key: str) -> str:
    return key.replace("_", " ").title()


# =============================================================================
# Structured Output
# =============================================================================


def print_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
) -> None:
    """Print rows as a Rich table with one column per key in ``columns``."""
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(_label(col))
    for row in rows:
        table.add_row(*(_plain(row.get(col)) for col in columns))
    console.print(table)


def print_key_value(data: dict[str, Any], *, title: str | None = None) -> None:
    """Print one record as aligned ``Label  value`` lines."""
    if title:
        console.print(f"[bold]{title}[/bold]")

    width = max((len(_label(k)) for k in data), default=0)
    for key, value in data.items():
        if isinstance(value, bool):
            shown = "[green]Yes[/green]" if value else "[red]No[/red]"
        elif value is None:
            shown = "[dim]-[/dim]"
        else:
            shown = _plain(value)
        console.print(f"  {_label(key):<{width}}  {shown}", highlight=False)


def print_json(data: Any, *, indent: int = 2) -> None:
    """Print data as JSON on plain stdout."""
    print(json.dumps(data, indent=indent, default=str))


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    title: str | None = None,
) -> None:
    """Print a record (dict) or a listing (list of dicts) in ``format``.

    Args:
        data: Dict for a single record, list of dicts for a listing.
        format: Output format.
        columns: Columns for listings in table format.
        title: Optional table title.
    """
    if format == OutputFormat.JSON:
        print_json(data)
    elif isinstance(data, list) and columns:
        print_table(data, columns, title=title)
    elif isinstance(data, dict):
        print_key_value(data, title=title)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}", highlight=False)


def print_warning(message: str) -> None:
    """Print warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[green]✓[/green] {message}", highlight=False)


# =============================================================================
# Upload Progress
# =============================================================================


class ChunkProgressBar:
    """Rich progress bar fed by upload progress callbacks.

    Chunk counts are turned into bytes so the bar shows transfer speed.

    Example:
        with ChunkProgressBar(path.name, size, chunk_size) as bar:
            upload_file(..., progress_callback=bar.update)
    """

    def __init__(self, label: str, file_size: int, chunk_size: int) -> None:
        self.label = label
        self.file_size = file_size
        self.chunk_size = chunk_size
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(binary_units=True),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=err_console,
            transient=True,
        )
        self._task: TaskID | None = None

    def __enter__(self) -> ChunkProgressBar:
        self._progress.start()
        self._task = self._progress.add_task(self.label, total=self.file_size)
        return self

    def __exit__(self, *exc: Any) -> None:
        self._progress.stop()

    def update(self, progress: TransferProgress) -> None:
        """Progress callback: advance to the acknowledged byte count."""
        if self._task is None:
            return
        done = min(progress.current * self.chunk_size, self.file_size)
        if progress.total and progress.current >= progress.total:
            done = self.file_size
        self._progress.update(self._task, completed=done, description=self.label)

"""Config commands for chunkctl."""

from __future__ import annotations

import click

from chunkctl.core.config import Config, config_file_path
from chunkctl.core.exceptions import ChunkctlError
from chunkctl.core.output import OutputFormat, print_error, print_key_value, print_output, print_success
from chunkctl.transfer.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
)
from chunkctl.core.validation import (
    validate_chunk_size,
    validate_retries,
    validate_server_url,
    validate_timeout,
    validate_workers,
)


@click.group()
def config() -> None:
    """Manage chunkctl configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Chunk store URL", help="Chunk store URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--timeout", type=int, default=30, help="Request timeout in seconds")
@click.option("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE, help="Bytes per chunk")
@click.option("--workers", type=int, default=DEFAULT_MAX_CONCURRENCY, help="Concurrent chunk uploads")
@click.option("--retries", type=int, default=DEFAULT_MAX_RETRIES, help="Retries per chunk")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@click.option("--force", is_flag=True, help="Overwrite an existing profile")
def config_init(
    url: str,
    profile: str,
    timeout: int,
    chunk_size: int,
    workers: int,
    retries: int,
    no_verify_ssl: bool,
    force: bool,
) -> None:
    """Create configuration file with a new profile.

    Example:
        chunkctl config init --url https://store.example.org
    """
    path = config_file_path()
    try:
        url = validate_server_url(url)
        options = {
            "timeout": validate_timeout(timeout),
            "chunk_size": validate_chunk_size(chunk_size),
            "max_concurrency": validate_workers(workers),
            "max_retries": validate_retries(retries),
            "verify_ssl": not no_verify_ssl,
        }
        cfg = Config.load(path) if path.exists() else Config()
    except ChunkctlError as e:
        print_error(str(e))
        raise SystemExit(1)

    if cfg.has_profile(profile) and not force:
        print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
        raise SystemExit(1)

    cfg.add_profile(name=profile, url=url, **options)

    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save(path)

    print_success(f"Configuration saved to {path}")
    print_key_value({"profile": profile, "url": url, **options})


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show current configuration."""
    path = config_file_path()
    try:
        cfg = Config.load(path)
    except ChunkctlError as e:
        print_error(str(e))
        raise SystemExit(1)

    if not cfg.profiles:
        print_error("No configuration found. Run 'chunkctl config init' first.")
        raise SystemExit(1)

    data = {
        "config_file": str(path),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "progress_dir": str(cfg.progress_dir),
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {name: p.to_dict() for name, p in cfg.profiles.items()}
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "verify_ssl": profile.verify_ssl,
                "timeout": f"{profile.timeout}s",
                "chunk_size": profile.chunk_size,
                "max_concurrency": profile.max_concurrency,
                "max_retries": profile.max_retries,
            },
        )
        click.echo()


@config.command("use-context")
@click.argument("profile")
def config_use_context(profile: str) -> None:
    """Switch the active profile.

    Example:
        chunkctl config use-context staging
    """
    path = config_file_path()
    cfg = Config.load(path)

    if not cfg.has_profile(profile):
        print_error(f"Profile '{profile}' not found.")
        click.echo(f"Available profiles: {', '.join(cfg.profiles.keys())}")
        raise SystemExit(1)

    cfg.default_profile = profile
    cfg.save(path)

    print_success(f"Switched to profile '{profile}'")

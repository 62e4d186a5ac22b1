"""
fixity CLI.

Command-line interface for checking folders against their manifests.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from fixity import __version__
from fixity.core.config import HasherType, RunConfig, load_config
from fixity.core.errors import FixityError


def configure_logging(debug: bool = False) -> None:
    """Route fixity's loggers to stderr through rich."""
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        log_time_format="[%Y-%m-%dT%H:%M:%S]",
    )
    root = logging.getLogger("fixity")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.propagate = False


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """fixity: per-directory file integrity manifests."""
    pass


@main.command()
@click.argument(
    "folders",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="YAML file with default policy and hasher settings")
@click.option("--append", "-a", "allow_new", is_flag=True,
              help="Append new files: calculate file hash and add to the record")
@click.option("--update", "-u", "allow_modified", is_flag=True,
              help="Update modified files: replace record with newly calculated hash")
@click.option("--remove", "-r", "allow_deleted", is_flag=True,
              help="Remove deleted files: delete file record")
@click.option("--verify", "-v", "verify_unchanged", is_flag=True,
              help="Verify unmodified files (same size and modification time): "
                   "calculate file hash and compare with record")
@click.option("--parallelism", "-p", type=click.IntRange(min=1),
              help="Number of hashing threads (default: half the CPUs)")
@click.option("--hasher", type=click.Choice([h.value for h in HasherType]),
              help="Hash oracle to use")
@click.option("--b3sum-path", envvar="FIXITY_B3SUM", help="Path to the b3sum executable")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def check(
    folders: tuple[Path, ...],
    config_path: str | None,
    allow_new: bool,
    allow_modified: bool,
    allow_deleted: bool,
    verify_unchanged: bool,
    parallelism: int | None,
    hasher: str | None,
    b3sum_path: str | None,
    debug: bool,
) -> None:
    """Check FOLDERS against their manifests and record accepted changes."""
    from fixity.reconcile.orchestrator import Orchestrator

    configure_logging(debug)

    try:
        base = load_config(config_path) if config_path else RunConfig()
        config = base.with_overrides(
            # Flags only switch permissions on; unset flags keep the config file value.
            allow_new=allow_new or None,
            allow_modified=allow_modified or None,
            allow_deleted=allow_deleted or None,
            verify_unchanged=verify_unchanged or None,
            parallelism=parallelism,
            hasher={"type": hasher, "b3sum_path": b3sum_path},
        )
    except (yaml.YAMLError, ValidationError) as e:
        click.echo(f"Error parsing config: {e}", err=True)
        raise SystemExit(1)

    try:
        report = Orchestrator(config).run(folders)
        report.raise_for_fault()
    except (FixityError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"OK: {len(report.outcomes)} folders, {report.hash_stats.total} files hashed")


@main.command()
@click.argument(
    "folder",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
def show(folder: Path) -> None:
    """Show the manifest recorded for FOLDER."""
    from rich.console import Console
    from rich.table import Table

    from fixity.manifest.store import ManifestStore

    store = ManifestStore()
    try:
        manifest = store.load(folder)
    except (FixityError, OSError) as e:
        click.echo(f"Error loading manifest: {e}", err=True)
        raise SystemExit(1)

    if not manifest:
        click.echo(f"No entries recorded in {store.path_for(folder)}")
        return

    table = Table(title=str(store.path_for(folder)))
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Modified (ms)", justify="right")
    table.add_column("Digest", style="cyan")

    for name in sorted(manifest):
        entry = manifest[name]
        table.add_row(entry.filename, str(entry.size), str(entry.last_modified), entry.digest)

    Console().print(table)


@main.command()
@click.option("--hasher", type=click.Choice([h.value for h in HasherType]),
              default=HasherType.XXH3.value, help="Hash oracle to probe")
@click.option("--b3sum-path", envvar="FIXITY_B3SUM", help="Path to the b3sum executable")
def probe(hasher: str, b3sum_path: str | None) -> None:
    """Check that the hash oracle is available and print its version."""
    from fixity.hashing.oracle import create_oracle

    config = RunConfig().with_overrides(hasher={"type": hasher, "b3sum_path": b3sum_path})
    try:
        version = create_oracle(config.hasher).probe()
    except FixityError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(version)


if __name__ == "__main__":
    main()

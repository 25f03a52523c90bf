"""CLI interface for Ferry."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from ferry.core.engine import TransferBusyError, TransferEngine
from ferry.core.scanner import scan_delete_totals, scan_totals
from ferry.models.progress import Operation, ProgressSnapshot
from ferry.settings import Settings
from ferry.stores.local import LocalNode
from ferry.utils import bytes_to_human, plural

_VERBS = {
    Operation.COPY: "Copying",
    Operation.MOVE: "Moving",
    Operation.DELETE: "Deleting",
}


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_engine(chunk_size: int | None, interval_ms: int | None) -> TransferEngine:
    settings = Settings.instance()
    return TransferEngine(
        chunk_size=chunk_size or settings.chunk_size,
        interval=interval_ms / 1000 if interval_ms else settings.progress_interval,
    )


def _nodes(paths: tuple[str, ...]) -> list[LocalNode]:
    return [LocalNode(Path(p)) for p in paths]


class _ProgressLine:
    """Renders throttled snapshots on a single terminal line (stderr)."""

    def __init__(self) -> None:
        self._width = 0

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        verb = _VERBS[snapshot.operation]
        if snapshot.indeterminate:
            text = f"{verb}… calculating"
        else:
            parts = [f"{verb} {snapshot.copied_items}/{snapshot.total_items}"]
            if snapshot.total_bytes > 0:
                parts.append(f"{bytes_to_human(snapshot.copied_bytes)} / {bytes_to_human(snapshot.total_bytes)}")
            if snapshot.percent is not None:
                parts.append(f"{snapshot.percent}%")
            if snapshot.current_name:
                parts.append(snapshot.current_name)
            text = "  ".join(parts)
        padding = " " * max(0, self._width - len(text))
        self._width = len(text)
        click.echo(f"\r{text}{padding}", nl=False, err=True)

    def close(self) -> None:
        if self._width:
            click.echo(err=True)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """Ferry: bulk copy, move and delete with live progress."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--delete", "for_delete", is_flag=True, help="Count as a delete would (directories are items)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(paths: tuple[str, ...], for_delete: bool, as_json: bool) -> None:
    """Count items and bytes without changing anything."""
    nodes = _nodes(paths)
    totals = scan_delete_totals(nodes) if for_delete else scan_totals(nodes)

    if as_json:
        click.echo(json.dumps({"item_count": totals.item_count, "byte_count": totals.byte_count}, indent=2))
        return

    noun = "item" if for_delete else "file"
    click.echo(
        f"{plural(totals.item_count, noun)}, "
        f"{click.style(bytes_to_human(totals.byte_count), fg='green', bold=True)}"
    )


# ── copy / move ──────────────────────────────────────────────────────────

_transfer_options = [
    click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True)),
    click.argument("destination", type=click.Path(exists=True, file_okay=False)),
    click.option("--chunk-size", type=click.IntRange(min=1), default=None, help="Bytes per read"),
    click.option("--interval", type=click.IntRange(min=1), default=None, help="Milliseconds between updates"),
    click.option("--json", "as_json", is_flag=True, help="Output as JSON"),
]


def _with_transfer_options(func):
    for option in reversed(_transfer_options):
        func = option(func)
    return func


@main.command()
@_with_transfer_options
def copy(sources: tuple[str, ...], destination: str, chunk_size: int | None, interval: int | None, as_json: bool) -> None:
    """Copy SOURCES into the DESTINATION directory."""
    _run_transfer(sources, destination, False, chunk_size, interval, as_json)


@main.command()
@_with_transfer_options
def move(sources: tuple[str, ...], destination: str, chunk_size: int | None, interval: int | None, as_json: bool) -> None:
    """Move SOURCES into the DESTINATION directory.

    Sources are only removed once every file was copied.
    """
    _run_transfer(sources, destination, True, chunk_size, interval, as_json)


def _run_transfer(
    sources: tuple[str, ...],
    destination: str,
    is_move: bool,
    chunk_size: int | None,
    interval: int | None,
    as_json: bool,
) -> None:
    nodes = _nodes(sources)
    target = LocalNode(Path(destination))
    for node in nodes:
        if node.contains(target):
            raise click.BadParameter(f"'{node.path}' cannot be copied into itself", param_hint="DESTINATION")

    engine = _build_engine(chunk_size, interval)
    line = None if as_json else _ProgressLine()
    try:
        result = engine.run_transfer(nodes, target, is_move, on_progress=line)
    except TransferBusyError as exc:
        raise click.ClickException(str(exc))
    finally:
        if line is not None:
            line.close()

    if as_json:
        click.echo(json.dumps({
            "operation": "move" if is_move else "copy",
            "failed_items": result.failed_items,
            "delete_failures_after_cut": result.delete_failures_after_cut,
        }, indent=2))
    else:
        verb = "Move" if is_move else "Copy"
        if result.failed_items == 0:
            click.echo(f"{click.style('✓', fg='green')} {verb} complete")
        else:
            click.echo(
                f"{click.style('✗', fg='red')} {verb} finished with "
                f"{plural(result.failed_items, 'failed item')}"
                + ("; sources were kept" if is_move else "")
            )
        if result.delete_failures_after_cut:
            click.echo(
                f"{click.style('!', fg='yellow')} Could not remove "
                f"{plural(result.delete_failures_after_cut, 'source')} after copying"
            )

    if not result.ok:
        sys.exit(1)


# ── delete ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("targets", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--interval", type=click.IntRange(min=1), default=None, help="Milliseconds between updates")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete(targets: tuple[str, ...], yes: bool, interval: int | None, as_json: bool) -> None:
    """Permanently delete TARGETS (directories recursively)."""
    nodes = _nodes(targets)

    if not yes and not as_json:
        totals = scan_delete_totals(nodes)
        click.echo(
            f"About to delete {plural(totals.item_count, 'item')} "
            f"({bytes_to_human(totals.byte_count)}). This cannot be undone."
        )
        if not click.confirm("Continue?", default=False):
            click.echo("Aborted.")
            return

    engine = _build_engine(None, interval)
    line = None if as_json else _ProgressLine()
    try:
        result = engine.run_delete(nodes, on_progress=line)
    except TransferBusyError as exc:
        raise click.ClickException(str(exc))
    finally:
        if line is not None:
            line.close()

    if as_json:
        click.echo(json.dumps({"operation": "delete", "failed_items": result.failed_items}, indent=2))
    elif result.ok:
        click.echo(f"{click.style('✓', fg='green')} Delete complete")
    else:
        click.echo(
            f"{click.style('✗', fg='red')} Delete finished with "
            f"{plural(result.failed_items, 'failed item')}"
        )

    if not result.ok:
        sys.exit(1)


# ── mkdir / rename ───────────────────────────────────────────────────────

@main.command()
@click.argument("parent", type=click.Path(exists=True, file_okay=False))
@click.argument("name")
def mkdir(parent: str, name: str) -> None:
    """Create folder NAME inside PARENT."""
    try:
        created = TransferEngine.create_folder(LocalNode(Path(parent)), name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="NAME")
    if created is None:
        raise click.ClickException(f"Could not create folder '{name.strip()}'")
    click.echo(f"{click.style('✓', fg='green')} Created {created.name}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.argument("name")
def rename(path: str, name: str) -> None:
    """Rename PATH to NAME (in place)."""
    node = LocalNode(Path(path))
    try:
        renamed = TransferEngine.rename(node, name)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="NAME")
    if not renamed:
        raise click.ClickException(f"Could not rename '{Path(path).name}'")
    click.echo(f"{click.style('✓', fg='green')} Renamed to {node.name}")


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from ferry.dbus_service import start_service

    click.echo("Starting Ferry D-Bus service...")
    start_service()

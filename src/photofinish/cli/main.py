"""
Command Line Interface for photofinish.

Inspect and reconcile photo and video capture dates from the terminal.
Candidate metadata for ``reconcile`` is read from a JSON or YAML file whose
keys mirror :class:`photofinish.reconcile.MediaCandidates`::

    container:
      creation_time: 2021-06-01T06:00:00
      duration: 30
    original_filename: 20210601_140000.mp4
    comment: "Beach day"
"""

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from photofinish import __version__
from photofinish.config import AppConfig, get_config, load_config
from photofinish.core import (
    DateValue,
    FormatError,
    InstantKind,
    PhotoFinishError,
    TagSet,
    TimeZoneValue,
    embed_and_update,
    extract_tags,
)
from photofinish.reconcile import (
    MediaCandidates,
    TemporalReconciler,
    build_commit_plan,
    change_timezone,
    resolve_zone,
    set_date,
    set_timezone,
    shift_date,
    try_offset_with_duration,
)
from photofinish.utils.logging import LogContext, setup_logging

logger = logging.getLogger(__name__)

console = Console()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(escape(text), style="bold blue", expand=False))


def print_success(text: str) -> None:
    console.print(f"[bold green]✓[/bold green] {escape(text)}")


def print_warning(text: str) -> None:
    console.print(f"[bold yellow]⚠[/bold yellow] {escape(text)}")


def print_error(text: str) -> None:
    console.print(f"[bold red]✗[/bold red] {escape(text)}")


def fail(text: str) -> None:
    """Print an error and exit with status 1."""
    print_error(text)
    sys.exit(1)


def load_candidates(path: Path) -> MediaCandidates:
    """Read a candidate bag from a JSON or YAML file."""
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(content)
    else:
        data = yaml.safe_load(content)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a mapping")
    return MediaCandidates.model_validate(data)


def parse_assignment(text: str) -> tuple[str, str]:
    """Split ``key=value``."""
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"expected key=value, got {text!r}")
    return key, value


def print_date_table(date: DateValue) -> None:
    table = Table(title="Date", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Formatted", date.format())
    table.add_row("Precision", str(date.precision))
    table.add_row("Timezone", date.timezone.describe())
    table.add_row("Instant", str(date.instant))
    if date.timezone.is_normal:
        table.add_row("UTC", str(date.to_utc()))
    console.print(table)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="photofinish")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--config", type=click.Path(path_type=Path), help="Custom config file")
@click.pass_context
def cli(ctx, verbose, debug, config):
    """
    photofinish - reconcile capture dates and timezones of photos and videos.
    """
    app_config = load_config(config) if config else get_config()
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = app_config.effective_log_level
    setup_logging(level=level, log_file=app_config.logging.log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = app_config
    ctx.obj["debug"] = debug or app_config.debug


# =============================================================================
# VALUE COMMANDS
# =============================================================================


@cli.command("parse-date")
@click.argument("text")
def parse_date(text):
    """Parse a W3CDTF date and show its components.

    Example:
        photofinish parse-date 2018-11-28T13:25:04-05:00
    """
    date = DateValue.try_parse(text)
    if date is None:
        fail(f"Not a valid date: {text!r}")
    print_date_table(date)


@cli.command()
@click.argument("text")
def tags(text):
    """List the inline tags embedded in TEXT."""
    found = list(extract_tags(text))
    if not found:
        print_warning("No tags found.")
        return

    table = Table(title="Inline Tags")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in found:
        table.add_row(escape(key), escape(value))
    console.print(table)


@cli.command()
@click.argument("text")
@click.option("--set", "assignments", multiple=True, help="Tag to add or update (key=value)")
@click.option("--remove", "removals", multiple=True, help="Tag key to remove")
def embed(text, assignments, removals):
    """Embed, update or remove inline tags in TEXT and print the result.

    Example:
        photofinish embed "Beach &a=1" --set timezone=-05:00 --remove a
    """
    desired = TagSet()
    for assignment in assignments:
        key, value = parse_assignment(assignment)
        desired[key] = value
    for key in removals:
        desired[key] = None
    try:
        click.echo(embed_and_update(text, desired))
    except FormatError as e:
        fail(str(e))


@cli.command()
@click.argument("local")
@click.argument("utc")
@click.option("--duration", type=float, help="Media duration in seconds")
def match(local, utc, duration):
    """Detect the timezone offset between LOCAL and UTC readings.

    Example:
        photofinish match 2021-06-01T14:00:30 2021-06-01T06:00:00Z
    """
    local_date = DateValue.try_parse(local)
    utc_date = DateValue.try_parse(utc)
    if local_date is None or utc_date is None:
        fail("Both arguments must be valid dates.")

    utc_instant = utc_date.to_utc().with_kind(InstantKind.UTC)
    length = timedelta(seconds=duration) if duration else None

    offset = try_offset_with_duration(local_date.instant, utc_instant, length)
    if offset is None:
        fail("Readings do not match any timezone offset.")
    print_success(f"Offset: {TimeZoneValue.from_offset(offset).format()} ({offset} minutes)")


# =============================================================================
# RECONCILE COMMAND
# =============================================================================


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--set-date", "new_date", help="Replace the creation date (W3CDTF)")
@click.option("--shift", type=float, help="Shift the creation date by SECONDS")
@click.option("--set-timezone", "set_zone", help="Assign a timezone keeping local time")
@click.option("--change-timezone", "change_zone", help="Move to a timezone keeping UTC time")
@click.option("--set-uuid", is_flag=True, help="Add a uuid tag if absent")
@click.option(
    "--save-original-filename",
    is_flag=True,
    help="Add an originalFilename tag if absent",
)
@click.pass_context
def reconcile(
    ctx,
    file,
    as_json,
    new_date,
    shift,
    set_zone,
    change_zone,
    set_uuid,
    save_original_filename,
):
    """
    Reconcile the creation date and timezone of one media file.

    FILE is a JSON or YAML candidate file describing the metadata read
    from the media file.

    Example:
        photofinish reconcile clip.yaml --set-uuid
    """
    config: AppConfig = ctx.obj["config"]

    try:
        candidates = load_candidates(file)
    except ValidationError as e:
        fail(f"Invalid candidate file {file}: {e.error_count()} error(s)\n{e}")
    except (OSError, ValueError, yaml.YAMLError) as e:
        fail(f"Could not read {file}: {e}")

    reconciler = TemporalReconciler.from_config(config)
    try:
        with LogContext(f"Reconciling {candidates.original_filename or file.name}"):
            result = reconciler.reconcile(candidates)
            if new_date:
                result = set_date(result, DateValue.parse(new_date))
            if shift:
                result = shift_date(result, timedelta(seconds=shift))
            if set_zone:
                result, dst = set_timezone(result, resolve_zone(set_zone))
                logger.info(f"Timezone set ({'DST' if dst else 'Standard'})")
            if change_zone:
                result, dst = change_timezone(result, resolve_zone(change_zone))
                logger.info(f"Timezone changed ({'DST' if dst else 'Standard'})")
    except PhotoFinishError as e:
        fail(str(e))

    plan = build_commit_plan(
        result,
        candidates.comment,
        original_filename=candidates.original_filename,
        save_original_filename=save_original_filename or config.commit.save_original_filename,
        set_uuid=set_uuid or config.commit.set_uuid,
    )

    if as_json:
        payload = {
            "creation_date": result.creation_date.format() if result.creation_date else None,
            "date_source": result.date_source.value if result.date_source else None,
            "timezone": result.timezone.to_tag() if result.timezone else None,
            "timezone_source": result.timezone_source.value if result.timezone_source else None,
            "resolved_date": plan.date_text,
            "always_store": result.always_store,
            "comment": plan.comment,
            "changed": plan.changed,
            "must_store": plan.must_store,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    print_header(f"📷 {candidates.original_filename or file.name}")
    if result.creation_date is None:
        print_warning("No creation date found.")
    else:
        table = Table(show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Date", plan.date_text or "")
        table.add_row("Date source", result.date_source.value if result.date_source else "")
        table.add_row("Timezone", plan.timezone_text or "unknown")
        table.add_row(
            "Timezone source", result.timezone_source.value if result.timezone_source else ""
        )
        table.add_row("Precision", str(result.creation_date.precision))
        console.print(table)

    console.print(f"Comment: {plan.comment!r}", markup=False)
    if plan.must_store:
        print_success("Metadata should be stored.")
    else:
        print_success("Metadata is up to date.")


def main():
    """Entry point for the console script."""
    cli()


if __name__ == "__main__":
    main()

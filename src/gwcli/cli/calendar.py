"""`gwcli calendar` commands."""

import click

from gwcli.cli.context import CliContext, pass_cli_context, run_with_client
from gwcli.cli.output import render
from gwcli.clients import CalendarClient
from gwcli.utils import parse_datetime

EVENT_COLUMNS = ["id", "start", "end", "summary", "location"]


def _split_attendees(attendees: str | None) -> list[str] | None:
    if attendees is None:
        return None
    return [a.strip() for a in attendees.split(",") if a.strip()]


@click.group()
def calendar() -> None:
    """View and manage calendar events."""


@calendar.command("list")
@pass_cli_context
def list_calendars(cli_ctx: CliContext) -> None:
    """List calendars."""
    calendars = run_with_client(cli_ctx, CalendarClient, lambda c: c.list_calendars())
    render(calendars, cli_ctx.output_format, columns=["id", "summary", "primary", "access_role"])


@calendar.command()
@click.option("--days", default=7, show_default=True, type=click.IntRange(min=1))
@click.option("--calendar", "calendar_id", default="primary", show_default=True)
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1))
@pass_cli_context
def events(cli_ctx: CliContext, days: int, calendar_id: str, limit: int) -> None:
    """List upcoming events."""
    results = run_with_client(
        cli_ctx,
        CalendarClient,
        lambda c: c.list_events(calendar_id=calendar_id, days=days, max_results=limit),
    )
    render(results, cli_ctx.output_format, columns=EVENT_COLUMNS)


@calendar.command()
@click.argument("query")
@click.option("--days", default=30, show_default=True, type=click.IntRange(min=1))
@click.option("--calendar", "calendar_id", default="primary", show_default=True)
@pass_cli_context
def search(cli_ctx: CliContext, query: str, days: int, calendar_id: str) -> None:
    """Search upcoming events."""
    results = run_with_client(
        cli_ctx, CalendarClient, lambda c: c.search(query, calendar_id=calendar_id, days=days)
    )
    render(results, cli_ctx.output_format, columns=EVENT_COLUMNS)


@calendar.command()
@click.argument("title")
@click.option("--start", required=True, help='e.g. "tomorrow 2pm", "2025-01-15 10:00"')
@click.option("--end", help="Defaults to one hour after start")
@click.option("--description")
@click.option("--location")
@click.option("--attendees", help="Comma-separated emails")
@click.option("--calendar", "calendar_id", default="primary", show_default=True)
@pass_cli_context
def create(
    cli_ctx: CliContext,
    title: str,
    start: str,
    end: str | None,
    description: str | None,
    location: str | None,
    attendees: str | None,
    calendar_id: str,
) -> None:
    """Create an event."""
    # Bad times fail before a session is loaded
    start = parse_datetime(start)
    end = parse_datetime(end) if end else None

    event = run_with_client(
        cli_ctx,
        CalendarClient,
        lambda c: c.create_event(
            title,
            start,
            end=end,
            calendar_id=calendar_id,
            description=description,
            location=location,
            attendees=_split_attendees(attendees),
        ),
    )
    if cli_ctx.output_format == "json":
        render(event, "json")
    else:
        click.echo(f"✓ Event created: {event.id} ({event.start})")


@calendar.command()
@click.argument("event_id")
@click.option("--title")
@click.option("--start")
@click.option("--end")
@click.option("--description")
@click.option("--location")
@click.option("--attendees", help="Comma-separated emails (replaces existing)")
@click.option("--calendar", "calendar_id", default="primary", show_default=True)
@pass_cli_context
def update(
    cli_ctx: CliContext,
    event_id: str,
    title: str | None,
    start: str | None,
    end: str | None,
    description: str | None,
    location: str | None,
    attendees: str | None,
    calendar_id: str,
) -> None:
    """Update fields of an existing event."""
    if all(v is None for v in (title, start, end, description, location, attendees)):
        raise click.UsageError("Nothing to update. Provide at least one option.")

    start = parse_datetime(start) if start else None
    end = parse_datetime(end) if end else None

    event = run_with_client(
        cli_ctx,
        CalendarClient,
        lambda c: c.update_event(
            event_id,
            calendar_id=calendar_id,
            summary=title,
            start=start,
            end=end,
            description=description,
            location=location,
            attendees=_split_attendees(attendees),
        ),
    )
    if cli_ctx.output_format == "json":
        render(event, "json")
    else:
        click.echo(f"✓ Event updated: {event.id}")


@calendar.command()
@click.argument("event_id")
@click.option("--calendar", "calendar_id", default="primary", show_default=True)
@pass_cli_context
def delete(cli_ctx: CliContext, event_id: str, calendar_id: str) -> None:
    """Delete an event."""
    run_with_client(
        cli_ctx, CalendarClient, lambda c: c.delete_event(event_id, calendar_id=calendar_id)
    )
    click.echo(f"✓ Event deleted: {event_id}")

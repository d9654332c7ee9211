"""`gwcli gmail` commands."""

import click

from gwcli.cli.context import CliContext, pass_cli_context, run_with_client
from gwcli.cli.output import render
from gwcli.clients import GmailClient

MESSAGE_COLUMNS = ["id", "date", "from", "subject", "is_unread"]
DETAIL_COLUMNS = ["id", "thread_id", "date", "from", "to", "subject", "labels", "body"]


@click.group()
def gmail() -> None:
    """Read, search, and send email."""


@gmail.command("list")
@click.option("--unread", is_flag=True, help="Only unread messages")
@click.option("--limit", default=20, show_default=True, type=click.IntRange(min=1))
@pass_cli_context
def list_messages(cli_ctx: CliContext, unread: bool, limit: int) -> None:
    """List recent messages."""
    messages = run_with_client(
        cli_ctx, GmailClient, lambda c: c.list(max_results=limit, unread=unread)
    )
    render(messages, cli_ctx.output_format, columns=MESSAGE_COLUMNS)


@gmail.command()
@click.argument("query")
@click.option("--limit", default=20, show_default=True, type=click.IntRange(min=1))
@pass_cli_context
def search(cli_ctx: CliContext, query: str, limit: int) -> None:
    """Search messages using Gmail query syntax (e.g. "from:alice is:unread")."""
    messages = run_with_client(cli_ctx, GmailClient, lambda c: c.search(query, max_results=limit))
    render(messages, cli_ctx.output_format, columns=MESSAGE_COLUMNS)


@gmail.command()
@click.argument("message_id")
@pass_cli_context
def read(cli_ctx: CliContext, message_id: str) -> None:
    """Show a message including its body."""
    message = run_with_client(cli_ctx, GmailClient, lambda c: c.read(message_id))
    render(message, cli_ctx.output_format, columns=DETAIL_COLUMNS + ["attachments"])


@gmail.command()
@click.argument("thread_id")
@pass_cli_context
def thread(cli_ctx: CliContext, thread_id: str) -> None:
    """Show every message in a thread."""
    messages = run_with_client(cli_ctx, GmailClient, lambda c: c.get_thread(thread_id))
    render(messages, cli_ctx.output_format, columns=DETAIL_COLUMNS)


@gmail.command()
@click.argument("message_id")
@pass_cli_context
def archive(cli_ctx: CliContext, message_id: str) -> None:
    """Archive a message (remove it from the inbox)."""
    run_with_client(cli_ctx, GmailClient, lambda c: c.archive(message_id))
    click.echo(f"✓ Archived {message_id}")


@gmail.command()
@click.argument("message_id")
@pass_cli_context
def trash(cli_ctx: CliContext, message_id: str) -> None:
    """Move a message to trash."""
    run_with_client(cli_ctx, GmailClient, lambda c: c.trash(message_id))
    click.echo(f"✓ Trashed {message_id}")


@gmail.command()
@click.option("--to", required=True, help="Recipient email(s)")
@click.option("--subject", required=True)
@click.option("--body", required=True)
@pass_cli_context
def draft(cli_ctx: CliContext, to: str, subject: str, body: str) -> None:
    """Create a draft."""
    draft_id = run_with_client(cli_ctx, GmailClient, lambda c: c.create_draft(to, subject, body))
    click.echo(f"✓ Draft created: {draft_id}")


@gmail.command()
@click.argument("draft_id", required=False)
@click.option("--to", help="Recipient email(s)")
@click.option("--subject")
@click.option("--body")
@pass_cli_context
def send(
    cli_ctx: CliContext,
    draft_id: str | None,
    to: str | None,
    subject: str | None,
    body: str | None,
) -> None:
    """Send a draft by ID, or compose and send with --to/--subject/--body."""
    if draft_id:
        message_id = run_with_client(cli_ctx, GmailClient, lambda c: c.send_draft(draft_id))
    else:
        if not (to and subject and body):
            raise click.UsageError("Provide a DRAFT_ID, or all of --to, --subject and --body.")
        message_id = run_with_client(cli_ctx, GmailClient, lambda c: c.send(to, subject, body))
    click.echo(f"✓ Sent: {message_id}")


@gmail.command()
@click.argument("message_id")
@click.option("--body", required=True)
@pass_cli_context
def reply(cli_ctx: CliContext, message_id: str, body: str) -> None:
    """Reply to a message in its thread."""
    reply_id = run_with_client(cli_ctx, GmailClient, lambda c: c.reply(message_id, body))
    click.echo(f"✓ Reply sent: {reply_id}")

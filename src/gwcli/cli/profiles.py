"""`gwcli profiles` commands."""

import asyncio
import logging
from pathlib import Path

import click
import httpx

from gwcli.auth import (
    AuthorizationFlow,
    ProfileStore,
    SessionProvider,
    TokenStatus,
    parse_client_file,
)
from gwcli.cli.context import CliContext, pass_cli_context
from gwcli.cli.output import render
from gwcli.clients import GmailClient
from gwcli.errors import DuplicateProfileError, GwcliError, UnknownProfileError

logger = logging.getLogger(__name__)


async def _lookup_email(store: ProfileStore, profile_name: str) -> str | None:
    session = await SessionProvider(store).get_session(profile_name)
    async with GmailClient(session) as gmail:
        return await gmail.get_profile_email()


@click.group()
def profiles() -> None:
    """Manage Google account profiles."""


@profiles.command("list")
@pass_cli_context
def list_profiles(cli_ctx: CliContext) -> None:
    """List configured profiles."""
    store = cli_ctx.store
    default = store.get_default()

    rows = []
    for name in sorted(store.list_profiles()):
        config = store.load_config(name)
        rows.append(
            {
                "name": name,
                "email": config.email if config else None,
                "default": name == default,
                "created": config.created_at.strftime("%Y-%m-%d") if config else None,
            }
        )

    if not rows and cli_ctx.output_format != "json":
        click.echo("No profiles configured. Run: gwcli profiles add <name> --client <path>")
        return

    render(rows, cli_ctx.output_format, columns=["name", "email", "default", "created"])


@profiles.command()
@click.argument("name")
@click.option(
    "--client",
    "client_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="OAuth client JSON downloaded from Google Cloud Console",
)
@pass_cli_context
def add(cli_ctx: CliContext, name: str, client_path: Path) -> None:
    """Add a profile by authorizing a Google account in the browser."""
    store = cli_ctx.store
    if store.profile_exists(name):
        raise DuplicateProfileError(name)
    client = parse_client_file(client_path)

    flow = AuthorizationFlow(store, notify=lambda line: click.echo(line, err=True))
    asyncio.run(flow.authorize(name, client.client_id, client.client_secret))

    # Email is cosmetic; the profile is usable without it
    try:
        email = asyncio.run(_lookup_email(store, name))
    except (GwcliError, httpx.HTTPError) as e:
        logger.warning(f"Could not look up account email for profile {name}: {e}")
        email = None

    if email:
        config = store.load_config(name)
        if config is not None:
            config.email = email
            store.save_config(name, config)

    click.echo(f"✓ Profile {name} added" + (f" ({email})" if email else ""))
    if store.get_default() == name:
        click.echo(f"✓ {name} is now the default profile")


@profiles.command()
@click.argument("name")
@pass_cli_context
def remove(cli_ctx: CliContext, name: str) -> None:
    """Remove a profile and its stored credentials."""
    store = cli_ctx.store
    was_default = store.get_default() == name

    if not store.remove_profile(name):
        raise UnknownProfileError(name)

    click.echo(f"✓ Profile {name} removed")
    if was_default:
        click.echo("No default profile is set. Run: gwcli profiles set-default <name>")


@profiles.command("set-default")
@click.argument("name")
@pass_cli_context
def set_default(cli_ctx: CliContext, name: str) -> None:
    """Make a profile the default."""
    cli_ctx.store.set_default(name)
    click.echo(f"✓ Default profile set to {name}")


@profiles.command()
@click.argument("name", required=False)
@pass_cli_context
def status(cli_ctx: CliContext, name: str | None) -> None:
    """Show token status for one profile, or all of them."""
    store = cli_ctx.store

    if name is not None:
        if not store.profile_exists(name):
            raise UnknownProfileError(name)
        names = [name]
    else:
        names = sorted(store.list_profiles())

    rows = []
    for profile_name in names:
        token_status = store.get_status(profile_name)
        stored = store.load_credentials(profile_name)
        expires_at = stored.tokens.expires_at if stored else None
        rows.append(
            {
                "name": profile_name,
                "status": token_status.value,
                "expires": expires_at.strftime("%Y-%m-%d %H:%M:%S UTC") if expires_at else None,
                "missing_scopes": stored.tokens.missing_scopes() if stored else [],
            }
        )

    if not rows and cli_ctx.output_format != "json":
        click.echo("No profiles configured. Run: gwcli profiles add <name> --client <path>")
        return

    render(rows, cli_ctx.output_format, columns=["name", "status", "expires", "missing_scopes"])

    if cli_ctx.output_format != "json" and any(
        row["status"] in (TokenStatus.MISSING.value, TokenStatus.INVALID.value) for row in rows
    ):
        click.echo("Re-authorize with: gwcli profiles remove <name> && gwcli profiles add <name>")

"""Command-line interface for gwcli."""

import logging
import os
from typing import Any

import click
import httpx

from gwcli.__version__ import __version__
from gwcli.auth import ProfileStore
from gwcli.cli.calendar import calendar
from gwcli.cli.context import CliContext
from gwcli.cli.drive import drive
from gwcli.cli.gmail import gmail
from gwcli.cli.output import OUTPUT_FORMATS
from gwcli.cli.profiles import profiles
from gwcli.errors import GwcliError

LOG_LEVEL_ENV_VAR = "GWCLI_LOG_LEVEL"


def _http_error_message(error: httpx.HTTPStatusError) -> str:
    """Prefer Google's own error message over the generic status text."""
    try:
        message = error.response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = error.response.reason_phrase
    return f"Google API error {error.response.status_code}: {message}"


class GwcliGroup(click.Group):
    """Root group that turns gwcli errors into a message and exit code 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except GwcliError as e:
            click.echo(f"❌ {e}", err=True)
            ctx.exit(1)
        except httpx.HTTPStatusError as e:
            click.echo(f"❌ {_http_error_message(e)}", err=True)
            ctx.exit(1)


def configure_logging(verbose: bool) -> None:
    """Log to stderr; --verbose wins over GWCLI_LOG_LEVEL."""
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)

    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group(cls=GwcliGroup)
@click.version_option(version=__version__)
@click.option("--profile", "-p", help="Profile to use (overrides GWCLI_PROFILE and the default)")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="table",
    show_default=True,
    help="Output format",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, profile: str | None, output_format: str, verbose: bool) -> None:
    """gwcli - Gmail, Calendar, and Drive from the command line.

    Works with multiple Google accounts through named profiles:

    \b
      gwcli profiles add work --client ./client_secret.json
      gwcli -p work gmail list --unread
      gwcli calendar events --days 3
      gwcli -f json drive search "quarterly report"
    """
    configure_logging(verbose)
    ctx.obj = CliContext(store=ProfileStore(), profile=profile, output_format=output_format)


main.add_command(profiles)
main.add_command(gmail)
main.add_command(calendar)
main.add_command(drive)


if __name__ == "__main__":
    main()

"""Shared state and helpers for gwcli commands."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import click

from gwcli.auth import ProfileStore, SessionProvider, resolve_active_profile
from gwcli.clients.base import GoogleApiClient

ClientT = TypeVar("ClientT", bound=GoogleApiClient)


@dataclass
class CliContext:
    """Options given to the top-level command.

    Attributes:
        store: Profile store rooted at the configured directory.
        profile: Profile passed with --profile, if any.
        output_format: "json", "table" or "text".
    """

    store: ProfileStore
    profile: str | None = None
    output_format: str = "table"


pass_cli_context = click.make_pass_decorator(CliContext)


def run_with_client(
    cli_ctx: CliContext,
    client_cls: type[ClientT],
    operation: Callable[[ClientT], Awaitable[Any]],
) -> Any:
    """Run an API operation under the active profile.

    Resolves the profile, builds a session (refreshing the token if
    needed) and hands a client bound to it to ``operation``.
    """

    async def _run() -> Any:
        profile_name = resolve_active_profile(cli_ctx.store, cli_ctx.profile)
        session = await SessionProvider(cli_ctx.store).get_session(profile_name)
        client = client_cls(session)
        try:
            return await operation(client)
        finally:
            await client.close()

    return asyncio.run(_run())

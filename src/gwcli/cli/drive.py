"""`gwcli drive` commands."""

from pathlib import Path

import click

from gwcli.cli.context import CliContext, pass_cli_context, run_with_client
from gwcli.cli.output import render
from gwcli.clients import EXPORT_MIME_TYPES, DriveClient, mime_type_for

FILE_COLUMNS = ["id", "name", "mime_type", "size", "modified_time"]


@click.group()
def drive() -> None:
    """Browse, search, and download Drive files."""


@drive.command("list")
@click.option("--folder", "folder_id", default="root", show_default=True)
@click.option("--limit", default=100, show_default=True, type=click.IntRange(min=1))
@pass_cli_context
def list_files(cli_ctx: CliContext, folder_id: str, limit: int) -> None:
    """List files in a folder."""
    files = run_with_client(
        cli_ctx, DriveClient, lambda c: c.list(folder_id=folder_id, max_results=limit)
    )
    render(files, cli_ctx.output_format, columns=FILE_COLUMNS)


@drive.command()
@click.argument("query")
@click.option("--limit", default=100, show_default=True, type=click.IntRange(min=1))
@pass_cli_context
def search(cli_ctx: CliContext, query: str, limit: int) -> None:
    """Search files by name/content or Drive query syntax."""
    files = run_with_client(cli_ctx, DriveClient, lambda c: c.search(query, max_results=limit))
    render(files, cli_ctx.output_format, columns=FILE_COLUMNS)


@drive.command()
@click.argument("file_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path))
@pass_cli_context
def download(cli_ctx: CliContext, file_id: str, output: Path | None) -> None:
    """Download a file (defaults to its Drive name in the current directory)."""

    async def _download(client: DriveClient) -> tuple[Path, int]:
        target = output
        if target is None:
            metadata = await client.get_file_metadata(file_id)
            target = Path(Path(metadata.name).name or file_id)
        return target, await client.download(file_id, target)

    target, written = run_with_client(cli_ctx, DriveClient, _download)
    click.echo(f"✓ Downloaded {written} bytes to {target}")


@drive.command()
@click.argument("file_id")
@click.option(
    "--to",
    "export_format",
    required=True,
    help=f"One of: {', '.join(EXPORT_MIME_TYPES)}",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path))
@pass_cli_context
def export(cli_ctx: CliContext, file_id: str, export_format: str, output: Path | None) -> None:
    """Export a Google Doc, Sheet, or Slides file to another format."""
    # Fail on an unknown format before touching the network
    mime_type_for(export_format)

    async def _export(client: DriveClient) -> tuple[Path, int]:
        target = output
        if target is None:
            metadata = await client.get_file_metadata(file_id)
            stem = Path(metadata.name).name or file_id
            target = Path(f"{stem}.{export_format.lower()}")
        return target, await client.export(file_id, export_format, target)

    target, written = run_with_client(cli_ctx, DriveClient, _export)
    click.echo(f"✓ Exported {written} bytes to {target}")

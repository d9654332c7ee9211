"""Rendering command results as JSON, a table, or plain text."""

import json
from collections.abc import Sequence
from typing import Any

import click
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

OUTPUT_FORMATS = ["json", "table", "text"]


def to_data(result: Any) -> Any:
    """Convert models (or lists of them) to plain JSON-compatible data."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    if isinstance(result, (list, tuple)):
        return [to_data(item) for item in result]
    return result


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "✓" if value else ""
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def render_table(
    rows: list[dict[str, Any]], columns: Sequence[str], title: str | None = None
) -> None:
    """Print rows as a rich table limited to the given columns."""
    table = Table(title=title, show_lines=False)
    for column in columns:
        table.add_column(column.replace("_", " ").title())
    for row in rows:
        table.add_row(*[_cell(row.get(column)) for column in columns])

    Console().print(table)


def render_text(rows: list[dict[str, Any]], columns: Sequence[str]) -> None:
    """Print one "key: value" block per row."""
    for index, row in enumerate(rows):
        if index:
            click.echo("")
        for column in columns:
            value = row.get(column)
            if value in (None, "", []):
                continue
            click.echo(f"{column}: {_cell(value)}")


def render(
    result: Any,
    output_format: str,
    columns: Sequence[str] | None = None,
    title: str | None = None,
) -> None:
    """Print a command result in the requested format.

    Args:
        result: Model, list of models, dict, or list of dicts.
        output_format: One of "json", "table" or "text".
        columns: Fields shown by table/text output. Defaults to every key
            of the first row.
        title: Optional table title.
    """
    data = to_data(result)

    if output_format == "json":
        click.echo(json.dumps(data, indent=2, default=str))
        return

    rows = data if isinstance(data, list) else [data]
    if not rows:
        click.echo("No results.")
        return

    columns = list(columns or rows[0].keys())
    if output_format == "table":
        render_table(rows, columns, title=title)
    else:
        render_text(rows, columns)

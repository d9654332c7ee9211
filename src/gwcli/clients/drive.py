"""Google Drive REST client."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

from gwcli.clients.base import DRIVE_API_BASE, GoogleApiClient
from gwcli.clients.models import DriveFile
from gwcli.errors import UnsupportedExportFormatError

logger = logging.getLogger(__name__)

FILE_FIELDS = "id, name, mimeType, size, modifiedTime, parents, webViewLink"

# Export format -> target MIME type for Google Docs/Sheets/Slides
EXPORT_MIME_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain",
    "md": "text/markdown",
    "html": "text/html",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

# Operators that mark a query as already being Drive query syntax
DRIVE_QUERY_OPERATORS = ["contains", "=", "!=", "<", ">", " in ", " has ", " not "]


def mime_type_for(export_format: str) -> str:
    """Look up the export MIME type for a format name.

    Raises:
        UnsupportedExportFormatError: If the format is unknown.
    """
    try:
        return EXPORT_MIME_TYPES[export_format.lower()]
    except KeyError:
        raise UnsupportedExportFormatError(export_format) from None


def normalize_drive_query(query: str) -> str:
    """Wrap plain search terms in a fullText query.

    "quarterly report" becomes "fullText contains 'quarterly report'";
    queries already using Drive syntax pass through unchanged.
    """
    query = query.strip()
    if any(op in query.lower() for op in DRIVE_QUERY_OPERATORS):
        return query
    escaped = query.replace("\\", "\\\\").replace("'", "\\'")
    return f"fullText contains '{escaped}'"


def parse_file(file: dict[str, Any]) -> DriveFile:
    """Parse a Drive API file resource."""
    size = file.get("size")
    return DriveFile(
        id=file.get("id", ""),
        name=file.get("name", ""),
        mime_type=file.get("mimeType", ""),
        size=int(size) if size is not None else None,
        modified_time=file.get("modifiedTime", ""),
        parents=file.get("parents"),
        web_view_link=file.get("webViewLink"),
    )


class DriveClient(GoogleApiClient):
    """Drive operations for the authenticated profile."""

    async def _list_files(self, query: str, max_results: int) -> list[DriveFile]:
        response = await self._request(
            "GET",
            f"{DRIVE_API_BASE}/files",
            params={
                "q": query,
                "pageSize": max_results,
                "orderBy": "modifiedTime desc",
                "fields": f"files({FILE_FIELDS})",
            },
        )
        return [parse_file(f) for f in response.get("files", [])]

    async def list(self, folder_id: str = "root", max_results: int = 100) -> list[DriveFile]:
        """List non-trashed files in a folder, most recently modified first."""
        escaped = folder_id.replace("'", "\\'")
        return await self._list_files(f"'{escaped}' in parents and trashed = false", max_results)

    async def search(self, query: str, max_results: int = 100) -> list[DriveFile]:
        """Search non-trashed files by plain text or Drive query syntax."""
        return await self._list_files(
            f"{normalize_drive_query(query)} and trashed = false", max_results
        )

    async def get_file_metadata(self, file_id: str) -> DriveFile:
        """Get a file's metadata."""
        url = f"{DRIVE_API_BASE}/files/{quote(file_id, safe='')}"
        response = await self._request("GET", url, params={"fields": FILE_FIELDS})
        return parse_file(response)

    async def download(self, file_id: str, output_path: Path) -> int:
        """Download a binary file's content.

        Returns:
            Number of bytes written.
        """
        url = f"{DRIVE_API_BASE}/files/{quote(file_id, safe='')}"
        written = await self._download(url, output_path, params={"alt": "media"})
        logger.info(f"Downloaded {file_id} to {output_path} ({written} bytes)")
        return written

    async def export(self, file_id: str, export_format: str, output_path: Path) -> int:
        """Export a Google Workspace document to another format.

        Raises:
            UnsupportedExportFormatError: If the format is unknown.
        """
        mime_type = mime_type_for(export_format)
        url = f"{DRIVE_API_BASE}/files/{quote(file_id, safe='')}/export"
        written = await self._download(url, output_path, params={"mimeType": mime_type})
        logger.info(f"Exported {file_id} as {export_format} to {output_path}")
        return written

"""REST clients for Gmail, Calendar and Drive."""

from gwcli.clients.base import GoogleApiClient, TokenSource
from gwcli.clients.calendar import CalendarClient
from gwcli.clients.drive import EXPORT_MIME_TYPES, DriveClient, mime_type_for
from gwcli.clients.gmail import GmailClient
from gwcli.clients.models import (
    CalendarEvent,
    CalendarInfo,
    DriveFile,
    EmailAttachment,
    EmailDetail,
    EmailMessage,
)

__all__ = [
    "CalendarClient",
    "CalendarEvent",
    "CalendarInfo",
    "DriveClient",
    "DriveFile",
    "EXPORT_MIME_TYPES",
    "EmailAttachment",
    "EmailDetail",
    "EmailMessage",
    "GmailClient",
    "GoogleApiClient",
    "TokenSource",
    "mime_type_for",
]

"""Result models returned by the API clients."""

from pydantic import BaseModel, Field


class EmailAttachment(BaseModel):
    filename: str
    mime_type: str = "application/octet-stream"
    size: int = 0


class EmailMessage(BaseModel):
    """Summary of a Gmail message."""

    id: str
    thread_id: str = ""
    subject: str = ""
    sender: str = Field(default="", serialization_alias="from")
    to: str = ""
    date: str = ""
    snippet: str = ""
    labels: list[str] = Field(default_factory=list)
    is_unread: bool = False


class EmailDetail(EmailMessage):
    """Full Gmail message including body and attachments."""

    body: str = ""
    attachments: list[EmailAttachment] = Field(default_factory=list)


class CalendarInfo(BaseModel):
    id: str
    summary: str = ""
    description: str | None = None
    primary: bool = False
    access_role: str = ""


class CalendarEvent(BaseModel):
    id: str
    calendar_id: str
    summary: str = "(No title)"
    description: str | None = None
    start: str = ""
    end: str = ""
    location: str | None = None
    attendees: list[str] = Field(default_factory=list)
    status: str = "confirmed"
    html_link: str | None = None


class DriveFile(BaseModel):
    id: str
    name: str = ""
    mime_type: str = ""
    size: int | None = None
    modified_time: str = ""
    parents: list[str] | None = None
    web_view_link: str | None = None

"""Gmail REST client."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from email.mime.text import MIMEText
from typing import Any

from gwcli.clients.base import GMAIL_API_BASE, GoogleApiClient
from gwcli.clients.models import EmailAttachment, EmailDetail, EmailMessage

logger = logging.getLogger(__name__)

METADATA_HEADERS = ["Subject", "From", "To", "Date"]


def decode_base64url(data: str) -> str:
    """Decode Gmail's base64url payload data (padding optional)."""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def build_email_message(
    to: str,
    subject: str,
    body: str,
    in_reply_to: str | None = None,
) -> str:
    """Build an RFC 2822 message and return it base64url encoded.

    Args:
        to: Recipient email(s).
        subject: Email subject.
        body: Plain text body.
        in_reply_to: Message-ID being replied to, for threading.

    Returns:
        Base64url encoded email message.
    """
    message = MIMEText(body, "plain", "utf-8")
    message["To"] = to
    message["Subject"] = subject
    if in_reply_to:
        message["In-Reply-To"] = in_reply_to
        message["References"] = in_reply_to

    return base64.urlsafe_b64encode(message.as_bytes()).decode().rstrip("=")


def _headers(message: dict[str, Any]) -> dict[str, str]:
    """Header lookup keyed by lower-cased name."""
    return {
        h["name"].lower(): h.get("value", "")
        for h in message.get("payload", {}).get("headers", [])
        if "name" in h
    }


def parse_message(message: dict[str, Any]) -> EmailMessage:
    """Parse a Gmail API message into an EmailMessage."""
    headers = _headers(message)
    labels = message.get("labelIds", [])
    return EmailMessage(
        id=message.get("id", ""),
        thread_id=message.get("threadId", ""),
        subject=headers.get("subject", ""),
        sender=headers.get("from", ""),
        to=headers.get("to", ""),
        date=headers.get("date", ""),
        snippet=message.get("snippet", ""),
        labels=labels,
        is_unread="UNREAD" in labels,
    )


def extract_body(payload: dict[str, Any]) -> str:
    """Extract the message body, preferring text/plain over text/html.

    Walks nested multipart parts depth-first.
    """
    if payload.get("body", {}).get("data") and not payload.get("parts"):
        return decode_base64url(payload["body"]["data"])

    parts = payload.get("parts", [])
    for mime_type in ("text/plain", "text/html"):
        for part in parts:
            if part.get("mimeType") == mime_type and part.get("body", {}).get("data"):
                return decode_base64url(part["body"]["data"])

    for part in parts:
        if part.get("mimeType", "").startswith("multipart/"):
            nested = extract_body(part)
            if nested:
                return nested

    return ""


def extract_attachments(payload: dict[str, Any]) -> list[EmailAttachment]:
    """Collect attachment metadata from all (nested) parts."""
    attachments: list[EmailAttachment] = []
    for part in payload.get("parts", []):
        body = part.get("body", {})
        if part.get("filename") and body.get("attachmentId"):
            attachments.append(
                EmailAttachment(
                    filename=part["filename"],
                    mime_type=part.get("mimeType") or "application/octet-stream",
                    size=body.get("size", 0),
                )
            )
        attachments.extend(extract_attachments(part))
    return attachments


def parse_message_detail(message: dict[str, Any]) -> EmailDetail:
    """Parse a full-format Gmail API message into an EmailDetail."""
    payload = message.get("payload", {})
    return EmailDetail(
        **parse_message(message).model_dump(),
        body=extract_body(payload),
        attachments=extract_attachments(payload),
    )


class GmailClient(GoogleApiClient):
    """Gmail operations for the authenticated profile."""

    async def list(
        self, max_results: int = 50, unread: bool = False, query: str = ""
    ) -> list[EmailMessage]:
        """List messages, newest first.

        Message details are fetched in parallel; messages that fail to
        load are logged and skipped.
        """
        q = query
        if unread:
            q = f"{q} is:unread" if q else "is:unread"

        params: dict[str, Any] = {"maxResults": max_results}
        if q:
            params["q"] = q

        response = await self._request("GET", f"{GMAIL_API_BASE}/users/me/messages", params=params)
        message_list = response.get("messages", [])
        if not message_list:
            return []

        async def fetch_message_detail(msg_id: str) -> dict[str, Any]:
            return await self._request(
                "GET",
                f"{GMAIL_API_BASE}/users/me/messages/{msg_id}",
                params={"format": "metadata", "metadataHeaders": METADATA_HEADERS},
            )

        details = await asyncio.gather(
            *[fetch_message_detail(msg["id"]) for msg in message_list],
            return_exceptions=True,
        )

        messages = []
        for msg, detail in zip(message_list, details):
            if isinstance(detail, BaseException):
                logger.warning("Failed to fetch message %s: %s", msg["id"], detail)
                continue
            messages.append(parse_message(detail))
        return messages

    async def search(self, query: str, max_results: int = 50) -> list[EmailMessage]:
        """Search messages using Gmail query syntax."""
        return await self.list(max_results=max_results, query=query)

    async def read(self, message_id: str) -> EmailDetail:
        """Get full message details including body."""
        response = await self._request(
            "GET", f"{GMAIL_API_BASE}/users/me/messages/{message_id}", params={"format": "full"}
        )
        return parse_message_detail(response)

    async def get_thread(self, thread_id: str) -> list[EmailDetail]:
        """Get all messages in a thread."""
        response = await self._request(
            "GET", f"{GMAIL_API_BASE}/users/me/threads/{thread_id}", params={"format": "full"}
        )
        return [parse_message_detail(m) for m in response.get("messages", [])]

    async def archive(self, message_id: str) -> None:
        """Archive a message (remove the INBOX label)."""
        await self._request(
            "POST",
            f"{GMAIL_API_BASE}/users/me/messages/{message_id}/modify",
            json_data={"removeLabelIds": ["INBOX"]},
        )

    async def trash(self, message_id: str) -> None:
        """Move a message to trash."""
        await self._request("POST", f"{GMAIL_API_BASE}/users/me/messages/{message_id}/trash")

    async def create_draft(self, to: str, subject: str, body: str) -> str:
        """Create a draft and return its ID."""
        raw_message = build_email_message(to, subject, body)
        response = await self._request(
            "POST",
            f"{GMAIL_API_BASE}/users/me/drafts",
            json_data={"message": {"raw": raw_message}},
        )
        if not response.get("id"):
            raise RuntimeError("Draft creation failed: no ID returned")
        return str(response["id"])

    async def send_draft(self, draft_id: str) -> str:
        """Send an existing draft and return the sent message ID."""
        response = await self._request(
            "POST", f"{GMAIL_API_BASE}/users/me/drafts/send", json_data={"id": draft_id}
        )
        return str(response.get("id", ""))

    async def send(self, to: str, subject: str, body: str) -> str:
        """Compose and send a message immediately, returning its ID."""
        raw_message = build_email_message(to, subject, body)
        response = await self._request(
            "POST", f"{GMAIL_API_BASE}/users/me/messages/send", json_data={"raw": raw_message}
        )
        if not response.get("id"):
            raise RuntimeError("Message send failed: no ID returned")
        return str(response["id"])

    async def reply(self, message_id: str, body: str) -> str:
        """Reply to a message in its thread, returning the reply's ID."""
        original = await self._request(
            "GET",
            f"{GMAIL_API_BASE}/users/me/messages/{message_id}",
            params={
                "format": "metadata",
                "metadataHeaders": ["Subject", "From", "Reply-To", "Message-ID"],
            },
        )
        headers = _headers(original)

        # Reply to the bare address of "Name <email>"
        reply_to = headers.get("reply-to") or headers.get("from", "")
        address = re.search(r"<(.+?)>", reply_to)
        to = address.group(1) if address else reply_to

        subject = headers.get("subject", "")
        if not subject.lower().startswith("re:"):
            subject = f"Re: {subject}"

        raw_message = build_email_message(
            to, subject, body, in_reply_to=headers.get("message-id") or None
        )
        response = await self._request(
            "POST",
            f"{GMAIL_API_BASE}/users/me/messages/send",
            json_data={"raw": raw_message, "threadId": original.get("threadId")},
        )
        if not response.get("id"):
            raise RuntimeError("Reply send failed: no ID returned")
        return str(response["id"])

    async def get_profile_email(self) -> str | None:
        """Get the authenticated account's email address."""
        response = await self._request("GET", f"{GMAIL_API_BASE}/users/me/profile")
        return response.get("emailAddress")

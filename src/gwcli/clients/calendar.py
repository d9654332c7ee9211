"""Google Calendar REST client."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

from gwcli.clients.base import CALENDAR_API_BASE, GoogleApiClient
from gwcli.clients.models import CalendarEvent, CalendarInfo
from gwcli.utils.datetime_parser import default_end, parse_datetime, to_utc_iso

logger = logging.getLogger(__name__)


def parse_event(event: dict[str, Any], calendar_id: str) -> CalendarEvent:
    """Parse a Calendar API event. All-day events carry a date instead of a dateTime."""
    start = event.get("start", {})
    end = event.get("end", {})
    return CalendarEvent(
        id=event.get("id", ""),
        calendar_id=calendar_id,
        summary=event.get("summary") or "(No title)",
        description=event.get("description"),
        start=start.get("dateTime") or start.get("date", ""),
        end=end.get("dateTime") or end.get("date", ""),
        location=event.get("location"),
        attendees=[a["email"] for a in event.get("attendees", []) if a.get("email")],
        status=event.get("status", "confirmed"),
        html_link=event.get("htmlLink"),
    )


class CalendarClient(GoogleApiClient):
    """Calendar operations for the authenticated profile."""

    def _events_url(self, calendar_id: str, event_id: str | None = None) -> str:
        url = f"{CALENDAR_API_BASE}/calendars/{quote(calendar_id, safe='')}/events"
        if event_id:
            url += f"/{quote(event_id, safe='')}"
        return url

    async def list_calendars(self) -> list[CalendarInfo]:
        """List calendars on the user's calendar list."""
        response = await self._request("GET", f"{CALENDAR_API_BASE}/users/me/calendarList")
        return [
            CalendarInfo(
                id=cal.get("id", ""),
                summary=cal.get("summary", ""),
                description=cal.get("description"),
                primary=bool(cal.get("primary", False)),
                access_role=cal.get("accessRole", ""),
            )
            for cal in response.get("items", [])
        ]

    async def list_events(
        self,
        calendar_id: str = "primary",
        days: int = 7,
        max_results: int = 10,
        query: str | None = None,
        now: datetime | None = None,
    ) -> list[CalendarEvent]:
        """List upcoming events within the next ``days`` days, ordered by start time."""
        now = now or datetime.now(timezone.utc)
        params: dict[str, Any] = {
            "timeMin": to_utc_iso(now),
            "timeMax": to_utc_iso(now + timedelta(days=days)),
            "maxResults": max_results,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if query:
            params["q"] = query

        response = await self._request("GET", self._events_url(calendar_id), params=params)
        return [parse_event(e, calendar_id) for e in response.get("items", [])]

    async def search(
        self,
        query: str,
        calendar_id: str = "primary",
        days: int = 30,
        max_results: int = 50,
    ) -> list[CalendarEvent]:
        """Search upcoming events by free text."""
        return await self.list_events(
            calendar_id=calendar_id, days=days, max_results=max_results, query=query
        )

    async def create_event(
        self,
        summary: str,
        start: str,
        end: str | None = None,
        calendar_id: str = "primary",
        description: str | None = None,
        location: str | None = None,
        attendees: list[str] | None = None,
    ) -> CalendarEvent:
        """Create an event.

        Args:
            summary: Event title.
            start: Start time in any form parse_datetime accepts.
            end: End time; defaults to one hour after start.
            calendar_id: Calendar to create the event in.
            description: Optional description.
            location: Optional location.
            attendees: Optional attendee emails.

        Returns:
            The created event.
        """
        start_iso = parse_datetime(start)
        end_iso = parse_datetime(end) if end else default_end(start_iso)

        event: dict[str, Any] = {
            "summary": summary,
            "start": {"dateTime": start_iso},
            "end": {"dateTime": end_iso},
        }
        if description:
            event["description"] = description
        if location:
            event["location"] = location
        if attendees:
            event["attendees"] = [{"email": email} for email in attendees]

        response = await self._request("POST", self._events_url(calendar_id), json_data=event)
        logger.info(f"Created event {response.get('id')} in calendar {calendar_id}")
        return parse_event(response, calendar_id)

    async def update_event(
        self,
        event_id: str,
        calendar_id: str = "primary",
        summary: str | None = None,
        start: str | None = None,
        end: str | None = None,
        description: str | None = None,
        location: str | None = None,
        attendees: list[str] | None = None,
    ) -> CalendarEvent:
        """Update only the provided fields of an existing event.

        The event's existing timeZone is kept on rewritten start/end times.

        Raises:
            ValueError: If no fields to update were provided.
        """
        if all(v is None for v in (summary, start, end, description, location, attendees)):
            raise ValueError("Nothing to update. Provide at least one field to change.")

        url = self._events_url(calendar_id, event_id)
        existing = await self._request("GET", url)

        patch: dict[str, Any] = {}
        if summary is not None:
            patch["summary"] = summary
        if description is not None:
            patch["description"] = description
        if location is not None:
            patch["location"] = location
        if attendees is not None:
            patch["attendees"] = [{"email": email} for email in attendees]
        if start is not None:
            patch["start"] = {"dateTime": parse_datetime(start)}
            if "timeZone" in existing.get("start", {}):
                patch["start"]["timeZone"] = existing["start"]["timeZone"]
        if end is not None:
            patch["end"] = {"dateTime": parse_datetime(end)}
            if "timeZone" in existing.get("end", {}):
                patch["end"]["timeZone"] = existing["end"]["timeZone"]

        response = await self._request("PATCH", url, json_data=patch)
        return parse_event(response, calendar_id)

    async def delete_event(self, event_id: str, calendar_id: str = "primary") -> None:
        """Delete an event."""
        await self._request("DELETE", self._events_url(calendar_id, event_id))
        logger.info(f"Deleted event {event_id} from calendar {calendar_id}")

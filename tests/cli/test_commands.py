"""CLI tests for the gmail, calendar, and drive commands."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner

from gwcli.auth.profile_store import ProfileStore
from gwcli.cli.main import main
from gwcli.clients import CalendarClient, DriveClient, GmailClient
from gwcli.clients.models import CalendarEvent, DriveFile, EmailMessage


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def session_provider(fake_session: Any) -> Any:
    """Replace SessionProvider so commands get a fake session."""
    with patch("gwcli.cli.context.SessionProvider") as provider_class:
        provider = MagicMock()
        provider.get_session = AsyncMock(return_value=fake_session)
        provider_class.return_value = provider
        yield provider


@pytest.mark.unit
class TestProfileResolution:
    """Tests for picking the profile a command runs under."""

    def test_should_fail_without_profile(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify commands explain how to choose a profile."""
        result = cli_runner.invoke(main, ["gmail", "list"])

        assert result.exit_code == 1
        assert "❌ No profile specified" in result.output

    def test_should_fail_for_unknown_profile(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify an unknown --profile exits 1."""
        result = cli_runner.invoke(main, ["-p", "ghost", "gmail", "list"])

        assert result.exit_code == 1
        assert "ghost" in result.output

    def test_should_use_profile_from_environment(
        self,
        cli_runner: CliRunner,
        cli_env: ProfileStore,
        saved_profile: str,
        session_provider: Any,
    ) -> None:
        """Verify GWCLI_PROFILE selects the profile."""
        with patch.object(GmailClient, "list", new_callable=AsyncMock, return_value=[]):
            result = cli_runner.invoke(main, ["gmail", "list"], env={"GWCLI_PROFILE": saved_profile})

        assert result.exit_code == 0, result.output
        session_provider.get_session.assert_called_once_with(saved_profile)


@pytest.mark.unit
class TestGmailCommands:
    """Tests for `gwcli gmail`."""

    def test_should_list_messages_as_json(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify messages render as JSON with a "from" key."""
        messages = [EmailMessage(id="m1", subject="Hello", sender="alice@example.com", is_unread=True)]

        with patch.object(GmailClient, "list", new_callable=AsyncMock, return_value=messages) as list_mock:
            result = cli_runner.invoke(
                main, ["-p", saved_profile, "-f", "json", "gmail", "list", "--unread", "--limit", "5"]
            )

        assert result.exit_code == 0, result.output
        list_mock.assert_called_once_with(max_results=5, unread=True)
        [row] = json.loads(result.output)
        assert row["from"] == "alice@example.com"
        assert row["is_unread"] is True

    def test_should_render_table(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify the default table output shows message IDs."""
        messages = [EmailMessage(id="m1", subject="Hi")]

        with patch.object(GmailClient, "list", new_callable=AsyncMock, return_value=messages):
            result = cli_runner.invoke(main, ["-p", saved_profile, "gmail", "list"])

        assert result.exit_code == 0, result.output
        assert "m1" in result.output

    def test_should_reject_non_positive_limit(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify --limit must be at least 1."""
        result = cli_runner.invoke(main, ["gmail", "list", "--limit", "0"])
        assert result.exit_code == 2

    def test_should_send_draft_by_id(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify `send DRAFT_ID` sends the draft."""
        with patch.object(GmailClient, "send_draft", new_callable=AsyncMock, return_value="sent1") as send_draft:
            result = cli_runner.invoke(main, ["-p", saved_profile, "gmail", "send", "d1"])

        assert result.exit_code == 0, result.output
        send_draft.assert_called_once_with("d1")
        assert "Sent: sent1" in result.output

    def test_should_require_fields_to_compose(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify `send` without a draft needs --to, --subject and --body."""
        result = cli_runner.invoke(main, ["gmail", "send", "--to", "a@example.com"])

        assert result.exit_code == 2
        assert "--subject" in result.output

    def test_should_report_api_errors(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify Google API errors print Google's message and exit 1."""
        request = httpx.Request("GET", "https://gmail.googleapis.com/gmail/v1/users/me/messages")
        response = httpx.Response(
            403, json={"error": {"message": "Insufficient Permission"}}, request=request
        )
        error = httpx.HTTPStatusError("forbidden", request=request, response=response)

        with patch.object(GmailClient, "list", new_callable=AsyncMock, side_effect=error):
            result = cli_runner.invoke(main, ["-p", saved_profile, "gmail", "list"])

        assert result.exit_code == 1
        assert "❌ Google API error 403: Insufficient Permission" in result.output


@pytest.mark.unit
class TestCalendarCommands:
    """Tests for `gwcli calendar`."""

    def test_should_create_event(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify create passes options through and splits attendees."""
        event = CalendarEvent(id="e1", calendar_id="primary", start="2025-01-15T10:00:00Z")

        with patch.object(CalendarClient, "create_event", new_callable=AsyncMock, return_value=event) as create:
            result = cli_runner.invoke(
                main,
                [
                    "-p", saved_profile,
                    "calendar", "create", "Standup",
                    "--start", "2025-01-15T10:00:00Z",
                    "--attendees", "a@example.com, b@example.com",
                ],
            )

        assert result.exit_code == 0, result.output
        assert create.call_args.kwargs["attendees"] == ["a@example.com", "b@example.com"]
        assert create.call_args.kwargs["end"] is None
        assert "Event created: e1" in result.output

    def test_should_report_unparseable_start(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify a bad --start prints the parse error."""
        with patch.object(httpx.AsyncClient, "request", new_callable=AsyncMock) as request:
            result = cli_runner.invoke(
                main, ["-p", saved_profile, "calendar", "create", "X", "--start", "13pm"]
            )

        assert result.exit_code == 1
        assert "Unable to parse date/time: 13pm" in result.output
        request.assert_not_called()
        session_provider.get_session.assert_not_called()

    def test_should_normalize_times_before_creating(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify create hands the client UTC ISO start and end times."""
        event = CalendarEvent(id="e1", calendar_id="primary", start="2025-01-15T10:00:00Z")

        with patch.object(CalendarClient, "create_event", new_callable=AsyncMock, return_value=event) as create:
            result = cli_runner.invoke(
                main,
                [
                    "-p", saved_profile,
                    "calendar", "create", "Standup",
                    "--start", "2025-01-15T11:00:00+01:00",
                    "--end", "2025-01-15T12:00:00+01:00",
                ],
            )

        assert result.exit_code == 0, result.output
        assert create.call_args.args[1] == "2025-01-15T10:00:00Z"
        assert create.call_args.kwargs["end"] == "2025-01-15T11:00:00Z"

    def test_should_report_unparseable_update_end_before_refreshing(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify a bad --end on update fails without loading a session."""
        result = cli_runner.invoke(
            main, ["-p", saved_profile, "calendar", "update", "e1", "--end", "banana"]
        )

        assert result.exit_code == 1
        assert "Unable to parse date/time: banana" in result.output
        session_provider.get_session.assert_not_called()

    def test_should_require_something_to_update(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify update without options is a usage error."""
        result = cli_runner.invoke(main, ["calendar", "update", "e1"])
        assert result.exit_code == 2


@pytest.mark.unit
class TestDriveCommands:
    """Tests for `gwcli drive`."""

    def test_should_search_files_as_text(
        self, cli_runner: CliRunner, cli_env: ProfileStore, saved_profile: str, session_provider: Any
    ) -> None:
        """Verify text output prints one block per file."""
        files = [DriveFile(id="f1", name="Budget.xlsx", mime_type="text/csv")]

        with patch.object(DriveClient, "search", new_callable=AsyncMock, return_value=files):
            result = cli_runner.invoke(main, ["-p", saved_profile, "-f", "text", "drive", "search", "budget"])

        assert result.exit_code == 0, result.output
        assert "id: f1" in result.output
        assert "name: Budget.xlsx" in result.output

    def test_should_reject_unknown_export_format(self, cli_runner: CliRunner, cli_env: ProfileStore) -> None:
        """Verify unsupported formats fail before any profile lookup."""
        result = cli_runner.invoke(main, ["drive", "export", "doc1", "--to", "odt"])

        assert result.exit_code == 1
        assert "Unsupported export format: odt" in result.output

    def test_should_export_to_named_file(
        self,
        cli_runner: CliRunner,
        cli_env: ProfileStore,
        saved_profile: str,
        session_provider: Any,
        tmp_path: Path,
    ) -> None:
        """Verify export defaults the output name to the Drive name plus extension."""
        metadata = DriveFile(id="doc1", name="Plan")

        with (
            patch.object(DriveClient, "get_file_metadata", new_callable=AsyncMock, return_value=metadata),
            patch.object(DriveClient, "export", new_callable=AsyncMock, return_value=12) as export,
            cli_runner.isolated_filesystem(temp_dir=tmp_path),
        ):
            result = cli_runner.invoke(main, ["-p", saved_profile, "drive", "export", "doc1", "--to", "pdf"])

        assert result.exit_code == 0, result.output
        export.assert_called_once_with("doc1", "pdf", Path("Plan.pdf"))
        assert "Exported 12 bytes to Plan.pdf" in result.output

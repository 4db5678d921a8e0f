"""
Tests for InkSlate CLI module.
"""

from datetime import timedelta

import pytest
from click.testing import CliRunner

from inkslate.cli import cli
from inkslate.database import create_db_engine, create_session_factory, init_db
from inkslate.notes import Note
from inkslate.soft_delete import utcnow


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def db_url(tmp_path):
    """Database URL of a fresh SQLite file."""
    return f"sqlite:///{tmp_path / 'slate.db'}"


@pytest.fixture
def invoke(runner, db_url):
    """Invoke the CLI against the temporary database."""

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ["--database-url", db_url, *args], **kwargs)

    return _invoke


@pytest.fixture
def seed_notes(db_url):
    """Insert notes directly into the database."""

    def _seed(*notes):
        engine = create_db_engine(db_url)
        init_db(engine)
        with create_session_factory(engine)() as session:
            session.add_all(notes)
            session.commit()
            ids = [n.id for n in notes]
        engine.dispose()
        return ids

    return _seed


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test CLI help command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "InkSlate" in result.output
        assert "trash" in result.output

    def test_cli_version(self, runner):
        """Test CLI version command."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "version" in result.output.lower()

    def test_cli_no_command(self, runner):
        """Test CLI with no command shows info."""
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "InkSlate" in result.output

    def test_invalid_environment(self, runner, monkeypatch):
        """Test a bad environment variable is reported."""
        monkeypatch.setenv("SLATE_ENVIRONMENT", "moon")
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 1
        assert "Error loading configuration" in result.output


class TestConfigCommands:
    """Test configuration-related commands."""

    def test_config_show(self, runner):
        result = runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0
        assert "InkSlate Configuration" in result.output

    def test_config_show_json(self, invoke, db_url):
        result = invoke("config", "show", "--format", "json")
        assert result.exit_code == 0
        assert '"trash_retention_days": 30' in result.output

    def test_config_show_yaml(self, runner):
        result = runner.invoke(cli, ["config", "show", "--format", "yaml"])
        assert result.exit_code == 0
        assert "sweep_interval_hours: 24" in result.output

    def test_config_validate(self, runner):
        result = runner.invoke(cli, ["config", "validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "Warnings" not in result.output

    def test_config_validate_warnings(self, runner, monkeypatch):
        monkeypatch.setenv("SLATE_TRASH_RETENTION_DAYS", "1")
        monkeypatch.setenv("SLATE_SWEEP_INTERVAL_HOURS", "48")
        result = runner.invoke(cli, ["config", "validate"])
        assert result.exit_code == 0
        assert "Warnings" in result.output


class TestNotesCommands:
    """Test note commands."""

    def test_add_and_list(self, invoke):
        result = invoke("notes", "add", "Groceries", "--content", "milk")
        assert result.exit_code == 0
        assert "Created note 1: Groceries" in result.output

        result = invoke("notes", "list")
        assert result.exit_code == 0
        assert "Groceries" in result.output

    def test_list_empty(self, invoke):
        result = invoke("notes", "list")
        assert result.exit_code == 0
        assert "No notes found" in result.output

    def test_search(self, invoke):
        invoke("notes", "add", "Groceries")
        invoke("notes", "add", "Ideas")

        result = invoke("notes", "list", "--search", "idea")
        assert "Ideas" in result.output
        assert "Groceries" not in result.output

    def test_delete(self, invoke):
        invoke("notes", "add", "Groceries")

        result = invoke("notes", "delete", "1")
        assert result.exit_code == 0
        assert "Moved note 1 to trash" in result.output

        result = invoke("notes", "list")
        assert "No notes found" in result.output

    def test_delete_missing(self, invoke):
        result = invoke("notes", "delete", "42")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestBudgetCommands:
    """Test budget commands."""

    def test_add_and_delete(self, invoke):
        result = invoke("budget", "add", "Rent", "950", "--budget-amount", "1000")
        assert result.exit_code == 0
        assert "Created budget item 1: Rent" in result.output

        result = invoke("budget", "delete", "1")
        assert result.exit_code == 0

        result = invoke("trash", "list", "budget")
        assert "Rent" in result.output

    def test_add_blank_name(self, invoke):
        result = invoke("budget", "add", " ", "10")
        assert result.exit_code == 1
        assert "Error" in result.output


class TestTrashCommands:
    """Test trash commands."""

    def test_list_empty(self, invoke):
        result = invoke("trash", "list", "notes")
        assert result.exit_code == 0
        assert "Trash for notes is empty" in result.output

    def test_unknown_kind(self, invoke):
        result = invoke("trash", "list", "calendar")
        assert result.exit_code != 0

    def test_list_shows_expiry(self, invoke, seed_notes):
        note = Note(title="Old")
        note.mark_deleted(utcnow() - timedelta(days=28, hours=1))
        seed_notes(note)

        result = invoke("trash", "list", "notes")
        assert result.exit_code == 0
        assert "Old" in result.output
        assert "in 1 day" in result.output

    def test_restore(self, invoke):
        invoke("notes", "add", "Groceries")
        invoke("notes", "delete", "1")

        result = invoke("trash", "restore", "notes", "1")
        assert result.exit_code == 0
        assert "Restored notes record 1" in result.output

        result = invoke("notes", "list")
        assert "Groceries" in result.output

    def test_purge(self, invoke):
        invoke("notes", "add", "Groceries")
        invoke("notes", "delete", "1")

        result = invoke("trash", "purge", "notes", "1", "--yes")
        assert result.exit_code == 0
        assert "Purged notes record 1" in result.output

        result = invoke("trash", "list", "notes")
        assert "Trash for notes is empty" in result.output

    def test_purge_active_note_fails(self, invoke):
        invoke("notes", "add", "Groceries")

        result = invoke("trash", "purge", "notes", "1", "--yes")
        assert result.exit_code == 1
        assert "invalid state" in result.output

    def test_purge_requires_confirmation(self, invoke):
        invoke("notes", "add", "Groceries")
        invoke("notes", "delete", "1")

        result = invoke("trash", "purge", "notes", "1", input="n\n")
        assert result.exit_code != 0

        result = invoke("trash", "list", "notes")
        assert "Groceries" in result.output

    def test_empty(self, invoke):
        for title in ("One", "Two"):
            invoke("notes", "add", title)
        invoke("notes", "delete", "1")
        invoke("notes", "delete", "2")

        result = invoke("trash", "empty", "notes", "--yes")
        assert result.exit_code == 0
        assert "purged 2 of 2" in result.output

    @pytest.mark.sweep
    def test_sweep(self, invoke, seed_notes):
        expired = Note(title="Expired")
        expired.mark_deleted(utcnow() - timedelta(days=31))
        recent = Note(title="Recent")
        recent.mark_deleted(utcnow() - timedelta(days=29))
        seed_notes(expired, recent)

        result = invoke("trash", "sweep")
        assert result.exit_code == 0
        assert "Note: purged 1 of 1" in result.output

        result = invoke("trash", "list", "notes")
        assert "Recent" in result.output
        assert "Expired" not in result.output

    @pytest.mark.sweep
    def test_sweep_with_retention_override(self, invoke, seed_notes):
        note = Note(title="Week old")
        note.mark_deleted(utcnow() - timedelta(days=8))
        seed_notes(note)

        result = invoke("trash", "sweep", "--retention-days", "7")
        assert result.exit_code == 0
        assert "Note: purged 1 of 1" in result.output
        assert "BudgetItem: purged 0 of 0" in result.output

    def test_stats(self, invoke):
        invoke("notes", "add", "Groceries")
        invoke("notes", "delete", "1")

        result = invoke("trash", "stats")
        assert result.exit_code == 0
        assert "Trash Statistics" in result.output
        assert "Note" in result.output

"""
Tests for application wiring and start-up behaviour.
"""

import asyncio
from datetime import timedelta

import pytest

from inkslate import SlateApplication, SlateConfig
from inkslate.budget import BudgetItem
from inkslate.config import set_config
from inkslate.database import create_db_engine
from inkslate.notes import Note
from inkslate.soft_delete import utcnow


@pytest.fixture
def config():
    return SlateConfig(
        database_url="sqlite:///:memory:",
        environment="test",
        trash_retention_days=30,
    )


@pytest.fixture
def app(config):
    application = SlateApplication(config)
    yield application
    application.engine.dispose()


async def trashed(store, record, days_ago):
    record.mark_deleted(utcnow() - timedelta(days=days_ago))
    return await store.save(record)


class TestWiring:
    """Test that the application builds each service once."""

    def test_services_registered(self, app):
        assert app.trash.get("Note") is app.note_trash
        assert app.trash.get("BudgetItem") is app.budget_trash
        assert app.notes.trash is app.note_trash
        assert app.budget.trash is app.budget_trash

    def test_policy_from_config(self):
        config = SlateConfig(
            database_url="sqlite:///:memory:",
            trash_retention_days=10,
            expiry_warning_days=2,
            sweep_interval_hours=6,
            sweep_on_startup=False,
        )
        app = SlateApplication(config)

        assert app.note_trash.policy.retention_days == 10
        assert app.budget_trash.policy.expiry_warning_days == 2
        assert app.sweeper.interval == timedelta(hours=6)
        assert app.sweeper.run_on_start is False
        app.engine.dispose()

    def test_default_config(self):
        set_config(SlateConfig(database_url="sqlite:///:memory:"))
        app = SlateApplication()

        assert app.config.database_url == "sqlite:///:memory:"
        app.engine.dispose()

    def test_existing_engine(self, config):
        engine = create_db_engine("sqlite:///:memory:")
        app = SlateApplication(config, engine=engine)

        assert app.engine is engine
        engine.dispose()


class TestLifecycle:
    """Test start-up sweeps and shutdown."""

    @pytest.mark.asyncio
    @pytest.mark.sweep
    async def test_start_sweeps_expired_trash(self, app):
        expired = await trashed(app.note_trash.store, Note(title="Expired"), 31)
        recent = await trashed(app.note_trash.store, Note(title="Recent"), 29)
        old_item = await trashed(app.budget_trash.store, BudgetItem(name="Rent"), 45)

        await app.start()
        await asyncio.sleep(0.05)

        assert app.sweeper.sweep_count == 1
        assert await app.note_trash.store.get(expired.id) is None
        assert await app.note_trash.store.get(recent.id) is not None
        assert await app.budget_trash.store.get(old_item.id) is None

        await app.sweeper.stop()

    @pytest.mark.asyncio
    async def test_start_migrates_blank_titles(self, app):
        note = await app.notes.create_note("Temp")
        note.title = ""
        await app.note_trash.store.save(note)

        await app.start()
        await app.sweeper.stop()

        stored = await app.note_trash.store.get(note.id)
        assert stored.title == "Untitled Note"

    @pytest.mark.asyncio
    async def test_stop(self, app):
        await app.start()
        assert app.sweeper.is_running is True

        await app.stop()

        assert app.sweeper.is_running is False

    @pytest.mark.asyncio
    async def test_budget_subcategories_persisted(self, app):
        housing = await app.budget.create_category("Housing")
        rent = await app.budget.create_subcategory("Rent", housing)
        item = await app.budget.create_item(
            "March rent", 900.0, category_id=housing.id, subcategory_id=rent.id
        )

        stored = await app.budget_trash.store.get(item.id)

        assert stored.subcategory_id == rent.id
        assert [s.name for s in await app.budget.list_subcategories(housing)] == [
            "Rent"
        ]

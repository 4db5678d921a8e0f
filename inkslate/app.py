"""
Application wiring.

Builds the database engine, record stores, soft delete services, feature
managers and the trash sweeper exactly once from a configuration, and hands
them to callers by reference.
"""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from .budget import BudgetCategory, BudgetItem, BudgetManager, BudgetSubcategory
from .config import SlateConfig, get_config
from .database import create_db_engine, create_session_factory, init_db
from .notes import Folder, Note, NotesManager
from .soft_delete import (
    PeriodicSweeper,
    RetentionPolicy,
    SoftDeleteService,
    SQLRecordStore,
    TrashManager,
)

logger = logging.getLogger(__name__)


class SlateApplication:
    """Container for the services of one InkSlate process.

    Example:
        >>> app = SlateApplication(SlateConfig(database_url="sqlite:///:memory:"))
        >>> await app.start()
        >>> note = await app.notes.create_note("Groceries")
        >>> await app.notes.delete_note(note)
        >>> await app.stop()
    """

    def __init__(
        self, config: Optional[SlateConfig] = None, engine: Optional[Engine] = None
    ):
        """
        Wire the application.

        Args:
            config: Configuration, the process default when omitted
            engine: Existing engine to use instead of one built from the config
        """
        self.config = config or get_config()
        self.engine = engine or create_db_engine(
            self.config.database_url, echo=self.config.echo_sql
        )
        init_db(self.engine)
        session_factory = create_session_factory(self.engine)

        self.trash = TrashManager()
        self.note_trash = self._register(SQLRecordStore(Note, session_factory))
        self.budget_trash = self._register(SQLRecordStore(BudgetItem, session_factory))

        self.notes = NotesManager(
            store=self.note_trash.store,
            folder_store=SQLRecordStore(Folder, session_factory),
            trash=self.note_trash,
        )
        self.budget = BudgetManager(
            store=self.budget_trash.store,
            category_store=SQLRecordStore(BudgetCategory, session_factory),
            subcategory_store=SQLRecordStore(BudgetSubcategory, session_factory),
            trash=self.budget_trash,
        )

        self.sweeper = PeriodicSweeper(
            self.trash,
            interval=self.config.sweep_interval,
            run_on_start=self.config.sweep_on_startup,
        )

    def _register(self, store: SQLRecordStore) -> SoftDeleteService:
        policy = RetentionPolicy(
            entity_type=store.entity_type,
            retention_days=self.config.trash_retention_days,
            expiry_warning_days=self.config.expiry_warning_days,
        )
        service = SoftDeleteService(store, policy)
        self.trash.register(service)
        return service

    async def start(self) -> None:
        """Run start-up maintenance and begin periodic trash sweeps."""
        await self.notes.migrate_notes()
        self.sweeper.start()
        logger.info(f"{self.config.application_name} started")

    async def stop(self) -> None:
        """Stop background sweeps and release database connections."""
        await self.sweeper.stop()
        self.engine.dispose()
        logger.info(f"{self.config.application_name} stopped")

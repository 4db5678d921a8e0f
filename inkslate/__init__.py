"""
InkSlate - data layer for a personal productivity app.

Notes and budget items are never removed the moment a user deletes them.
They move to a trash, can be restored from there, and are purged either on
request or automatically once they have been in the trash longer than the
retention period (30 days by default).

Key Features
------------
* **Soft Delete**: Trash lifecycle with restore, purge and empty trash
* **Expiry Sweeps**: Automatic purge at start-up and on a fixed interval
* **Record Stores**: SQLAlchemy-backed and in-memory repositories
* **Notes**: Folders, search and password-protected notes
* **Budget**: Categories, budget items and monthly totals

Quick Start
-----------
>>> from inkslate import SlateApplication, SlateConfig
>>>
>>> app = SlateApplication(SlateConfig(database_url="sqlite:///slate.db"))
>>> await app.start()            # sweeps expired trash, then every 24 hours
>>> note = await app.notes.create_note("Shopping list")
>>> await app.notes.delete_note(note)
>>> await app.note_trash.restore(note)
>>> await app.stop()
"""

__version__ = "1.0.0"

from .app import SlateApplication
from .config import SlateConfig
from .soft_delete import (
    PeriodicSweeper,
    SoftDeleteMixin,
    SoftDeleteService,
    TrashManager,
)

__all__ = [
    "SlateApplication",
    # Soft Delete
    "SoftDeleteMixin",
    "SoftDeleteService",
    "TrashManager",
    "PeriodicSweeper",
    # Configuration
    "SlateConfig",
]

"""
Notes feature: folders, notes and password-protected notes.

Deleting a note moves it to the trash through the soft delete lifecycle;
notes are only ever removed from storage by a purge.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from passlib.hash import pbkdf2_sha256
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from .soft_delete import (
    RecordQuery,
    RecordStore,
    SoftDeleteMixin,
    SoftDeleteService,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_NOTE_TITLE = "New Note"
DEFAULT_FOLDER_NAME = "New Folder"
MIGRATED_NOTE_TITLE = "Untitled Note"


def normalize_title(title: Optional[str], default: str = DEFAULT_NOTE_TITLE) -> str:
    """Strip surrounding whitespace; blank titles fall back to ``default``."""
    stripped = (title or "").strip()
    return stripped or default


class Folder(Base):  # type: ignore[valid-type,misc]
    """A named group of notes."""

    __tablename__ = "folders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __init__(self, name: str = DEFAULT_FOLDER_NAME, **kwargs: Any):
        kwargs.setdefault("created_date", utcnow())
        super().__init__(name=normalize_title(name, DEFAULT_FOLDER_NAME), **kwargs)


class Note(Base, SoftDeleteMixin):  # type: ignore[valid-type,misc]
    """A note, optionally filed in a folder and optionally password protected."""

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    modified_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    folder_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True
    )

    # Password protection; empty strings instead of NULL when unset
    is_password_protected: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    password_hint: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    def __init__(
        self,
        title: Optional[str] = DEFAULT_NOTE_TITLE,
        content: str = "",
        folder_id: Optional[int] = None,
        **kwargs: Any,
    ):
        now = utcnow()
        kwargs.setdefault("created_date", now)
        kwargs.setdefault("modified_date", now)
        kwargs.setdefault("is_password_protected", False)
        kwargs.setdefault("password_hash", "")
        kwargs.setdefault("password_hint", "")
        kwargs.setdefault("is_deleted", False)
        super().__init__(
            title=normalize_title(title),
            content=content,
            folder_id=folder_id,
            **kwargs,
        )

    @property
    def safe_title(self) -> str:
        """Title for display, never empty."""
        return self.title or "Untitled"


class NotesManager:
    """
    Creates, edits and lists notes and folders.

    Deletion, restoration and purging are delegated to the soft delete
    service for notes.
    """

    def __init__(
        self,
        store: RecordStore,
        folder_store: RecordStore,
        trash: SoftDeleteService,
    ):
        """
        Initialize the notes manager.

        Args:
            store: Record store holding notes
            folder_store: Record store holding folders
            trash: Soft delete service for notes
        """
        self.store = store
        self.folder_store = folder_store
        self.trash = trash

    async def create_note(
        self,
        title: Optional[str] = DEFAULT_NOTE_TITLE,
        content: str = "",
        folder_id: Optional[int] = None,
    ) -> Note:
        """Create and persist a new, active note."""
        note = await self.store.save(
            Note(title=title, content=content, folder_id=folder_id)
        )
        logger.debug(f"Created note {note.id}")
        return note

    async def save_note(self, note: Note) -> Note:
        """Persist edits to a note and bump its modification time."""
        note.title = normalize_title(note.title)
        note.modified_date = utcnow()
        return await self.store.save(note)

    async def list_notes(
        self, folder_id: Optional[int] = None, search: Optional[str] = None
    ) -> List[Note]:
        """
        List notes that are not in the trash.

        Args:
            folder_id: Only notes filed in this folder
            search: Case-insensitive text matched against title and content

        Returns:
            Matching notes, most recently modified first
        """
        scope = {"folder_id": folder_id} if folder_id is not None else None
        notes = await self.trash.list_active(scope)

        if search:
            needle = search.lower()
            notes = [
                n
                for n in notes
                if needle in n.title.lower() or needle in (n.content or "").lower()
            ]

        return sorted(notes, key=lambda n: n.modified_date, reverse=True)

    async def delete_note(self, note: Note) -> Note:
        """Move a note to the trash."""
        return await self.trash.soft_delete(note)

    async def restore_note(self, note: Note) -> Optional[Note]:
        """Take a note out of the trash."""
        return await self.trash.restore(note)

    async def permanently_delete(self, note: Note) -> None:
        """Purge a trashed note."""
        await self.trash.purge(note)

    async def create_folder(self, name: str = DEFAULT_FOLDER_NAME) -> Folder:
        """Create and persist a new folder."""
        return await self.folder_store.save(Folder(name=name))

    async def list_folders(self) -> List[Folder]:
        """All folders, alphabetically."""
        folders = await self.folder_store.fetch()
        return sorted(folders, key=lambda f: f.name.lower())

    async def delete_folder(self, folder: Folder) -> int:
        """
        Delete a folder, moving its notes to the trash first.

        Trashed notes are detached from the folder so they can still be
        restored once it is gone.

        Returns:
            Number of notes moved to the trash
        """
        filed = await self.store.fetch(RecordQuery(filters={"folder_id": folder.id}))

        moved = 0
        for note in filed:
            note.folder_id = None
            if note.is_deleted:
                await self.store.save(note)
            else:
                # One save both detaches and trashes the note
                await self.trash.soft_delete(note)
                moved += 1

        await self.folder_store.delete(folder)
        logger.info(f"Deleted folder {folder.id}, {moved} note(s) moved to trash")
        return moved

    async def migrate_notes(self) -> int:
        """
        Give every note with an empty title a placeholder title.

        Returns:
            Number of notes that were fixed
        """
        fixed = 0
        for note in await self.store.fetch():
            if not (note.title or "").strip():
                note.title = MIGRATED_NOTE_TITLE
                note.modified_date = utcnow()
                await self.store.save(note)
                fixed += 1

        if fixed:
            logger.info(f"Migrated {fixed} note(s) with empty titles")
        return fixed

    async def set_password(
        self, note: Note, password: str, hint: Optional[str] = None
    ) -> Note:
        """
        Protect a note with a password.

        Raises:
            ValueError: If the password is empty
        """
        if not password:
            raise ValueError("Password must not be empty")

        note.is_password_protected = True
        note.password_hash = pbkdf2_sha256.hash(password)
        note.password_hint = hint or ""
        return await self.store.save(note)

    async def remove_password(self, note: Note) -> Note:
        """Remove password protection from a note."""
        note.is_password_protected = False
        note.password_hash = ""
        note.password_hint = ""
        return await self.store.save(note)

    def verify_password(self, note: Note, password: str) -> bool:
        """Check a password against a protected note."""
        if not note.is_password_protected or not note.password_hash:
            return False
        return pbkdf2_sha256.verify(password, note.password_hash)

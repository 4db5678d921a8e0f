#!/usr/bin/env python3
"""
Trash Lifecycle Example - InkSlate

Demonstrates the life of a deleted note:
- Moving a note to the trash and restoring it
- Days left before automatic purge
- Expiry sweeps after the retention period
"""

import asyncio
from datetime import timedelta

from inkslate import SlateApplication, SlateConfig
from inkslate.soft_delete import utcnow


async def main() -> None:
    app = SlateApplication(
        SlateConfig(database_url="sqlite:///:memory:", sweep_on_startup=False)
    )
    await app.start()

    print("=== Soft delete and restore ===")
    note = await app.notes.create_note("Shopping list", content="milk, eggs")
    await app.notes.delete_note(note)
    print(f"Deleted at {note.deleted_at:%Y-%m-%d %H:%M}")
    print(f"Days until purge: {app.note_trash.days_until_purge(note)}")

    await app.notes.restore_note(note)
    print(f"Restored, active notes: {len(await app.notes.list_notes())}")

    print("\n=== Expiry sweep ===")
    old = await app.notes.create_note("Old draft")
    await app.notes.delete_note(old)
    # Pretend the draft was deleted five weeks ago
    old.deleted_at = utcnow() - timedelta(days=35)
    await app.note_trash.store.save(old)

    for result in await app.sweeper.run_once():
        print(f"{result.entity_type}: purged {result.succeeded} of {result.attempted}")

    summary = await app.note_trash.summarize_trash()
    print(f"Notes left in trash: {summary.total_items}")

    await app.stop()


if __name__ == "__main__":
    asyncio.run(main())

"""
Row-level access to the draftroom tables.

Every function takes an open connection so callers can group several
statements into one transaction. Draft writes are conditional on the version
read alongside the draft; a write that matches no row means another writer
got there first.
"""
import uuid
from typing import List, Optional, Set, Tuple

import aiosqlite

from .errors import ConcurrentModificationError, InvalidOperationError
from .models.draft import Draft, Manager
from .models.trade import Trade


def _new_id() -> str:
    return uuid.uuid4().hex


def _draft_from_row(row) -> Draft:
    draft = Draft.model_validate_json(row["data"])
    draft.id = row["id"]
    draft.version = row["version"]
    return draft


async def get_draft(db: aiosqlite.Connection, draft_id: str) -> Optional[Draft]:
    async with db.execute("SELECT id, data, version FROM drafts WHERE id = ?", (draft_id,)) as cursor:
        row = await cursor.fetchone()
    return _draft_from_row(row) if row else None


async def list_drafts(db: aiosqlite.Connection) -> List[Draft]:
    async with db.execute("SELECT id, data, version FROM drafts ORDER BY created_at DESC") as cursor:
        return [_draft_from_row(row) for row in await cursor.fetchall()]


async def insert_draft(db: aiosqlite.Connection, draft: Draft) -> Draft:
    stored = draft.model_copy(update={"id": _new_id(), "version": 1})
    await db.execute(
        "INSERT INTO drafts (id, data, version, created_at) VALUES (?, ?, ?, ?)",
        (stored.id, stored.model_dump_json(), stored.version, stored.created_at.isoformat()),
    )
    return stored


async def save_draft(db: aiosqlite.Connection, draft: Draft) -> Draft:
    """Write ``draft`` if the stored version is still ``draft.version``."""
    stored = draft.model_copy(update={"version": draft.version + 1})
    cursor = await db.execute(
        "UPDATE drafts SET data = ?, version = ? WHERE id = ? AND version = ?",
        (stored.model_dump_json(), stored.version, draft.id, draft.version),
    )
    if cursor.rowcount == 0:
        raise ConcurrentModificationError(f"Draft {draft.id} changed since version {draft.version}")
    return stored


async def delete_draft(db: aiosqlite.Connection, draft_id: str) -> bool:
    cursor = await db.execute("DELETE FROM drafts WHERE id = ?", (draft_id,))
    return cursor.rowcount > 0


async def get_active_slot(db: aiosqlite.Connection) -> Tuple[Optional[str], int]:
    async with db.execute("SELECT draft_id, version FROM active_draft WHERE slot = 1") as cursor:
        row = await cursor.fetchone()
    if row is None:
        return None, 0
    return row["draft_id"], row["version"]


async def set_active_slot(db: aiosqlite.Connection, draft_id: Optional[str], expected_version: int) -> int:
    cursor = await db.execute(
        "UPDATE active_draft SET draft_id = ?, version = version + 1 WHERE slot = 1 AND version = ?",
        (draft_id, expected_version),
    )
    if cursor.rowcount == 0:
        raise ConcurrentModificationError("Active draft changed concurrently")
    return expected_version + 1


def _manager_from_row(row) -> Manager:
    return Manager(
        id=row["id"],
        name=row["name"],
        team_name=row["team_name"],
        is_user=bool(row["is_user"]),
        email=row["email"],
    )


async def list_managers(db: aiosqlite.Connection) -> List[Manager]:
    async with db.execute("SELECT * FROM managers ORDER BY name") as cursor:
        return [_manager_from_row(row) for row in await cursor.fetchall()]


async def get_manager(db: aiosqlite.Connection, manager_id: str) -> Optional[Manager]:
    async with db.execute("SELECT * FROM managers WHERE id = ?", (manager_id,)) as cursor:
        row = await cursor.fetchone()
    return _manager_from_row(row) if row else None


async def manager_ids(db: aiosqlite.Connection) -> Set[str]:
    async with db.execute("SELECT id FROM managers") as cursor:
        return {row["id"] for row in await cursor.fetchall()}


async def insert_manager(db: aiosqlite.Connection, manager: Manager) -> Manager:
    stored = manager.model_copy(update={"id": manager.id or _new_id()})
    try:
        await db.execute(
            "INSERT INTO managers (id, name, team_name, is_user, email) VALUES (?, ?, ?, ?, ?)",
            (stored.id, stored.name, stored.team_name, int(stored.is_user), stored.email),
        )
    except aiosqlite.IntegrityError:
        raise InvalidOperationError(f"Manager name {manager.name!r} is already taken") from None
    return stored


async def update_manager(db: aiosqlite.Connection, manager: Manager) -> Manager:
    try:
        await db.execute(
            "UPDATE managers SET name = ?, team_name = ?, email = ? WHERE id = ?",
            (manager.name, manager.team_name, manager.email, manager.id),
        )
    except aiosqlite.IntegrityError:
        raise InvalidOperationError(f"Manager name {manager.name!r} is already taken") from None
    return manager


async def delete_manager(db: aiosqlite.Connection, manager_id: str) -> bool:
    cursor = await db.execute("DELETE FROM managers WHERE id = ?", (manager_id,))
    return cursor.rowcount > 0


def _trade_from_row(row) -> Trade:
    trade = Trade.model_validate_json(row["data"])
    trade.id = row["id"]
    return trade


async def get_trade(db: aiosqlite.Connection, trade_id: str) -> Optional[Trade]:
    async with db.execute("SELECT id, data FROM trades WHERE id = ?", (trade_id,)) as cursor:
        row = await cursor.fetchone()
    return _trade_from_row(row) if row else None


async def list_trades(db: aiosqlite.Connection, draft_id: Optional[str] = None) -> List[Trade]:
    if draft_id is None:
        query, params = "SELECT id, data FROM trades ORDER BY timestamp DESC", ()
    else:
        query, params = "SELECT id, data FROM trades WHERE draft_id = ? ORDER BY timestamp DESC", (draft_id,)
    async with db.execute(query, params) as cursor:
        return [_trade_from_row(row) for row in await cursor.fetchall()]


async def insert_trade(db: aiosqlite.Connection, trade: Trade) -> Trade:
    stored = trade.model_copy(update={"id": _new_id()})
    await db.execute(
        "INSERT INTO trades (id, draft_id, status, data, timestamp) VALUES (?, ?, ?, ?, ?)",
        (stored.id, stored.draft_id, stored.status.value, stored.model_dump_json(), stored.timestamp.isoformat()),
    )
    return stored


async def update_trade(db: aiosqlite.Connection, trade: Trade) -> Trade:
    await db.execute(
        "UPDATE trades SET status = ?, data = ? WHERE id = ?",
        (trade.status.value, trade.model_dump_json(), trade.id),
    )
    return trade


async def delete_trade(db: aiosqlite.Connection, trade_id: str) -> bool:
    cursor = await db.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
    return cursor.rowcount > 0


async def delete_trades_for_draft(db: aiosqlite.Connection, draft_id: str) -> int:
    cursor = await db.execute("DELETE FROM trades WHERE draft_id = ?", (draft_id,))
    return cursor.rowcount

import aiosqlite
import asyncio

from . import config

DATABASE_URL = config.DATABASE_URL


async def get_db_connection():
    db = await aiosqlite.connect(DATABASE_URL, timeout=30)
    db.row_factory = aiosqlite.Row
    return db


async def create_tables():
    async with aiosqlite.connect(DATABASE_URL) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS managers (
                id TEXT PRIMARY KEY,
                name TEXT UNIQUE NOT NULL,
                team_name TEXT,
                is_user INTEGER NOT NULL DEFAULT 0,
                email TEXT
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS drafts (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 0,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        # Single row holding the id of the one active draft
        await db.execute("""
            CREATE TABLE IF NOT EXISTS active_draft (
                slot INTEGER PRIMARY KEY CHECK (slot = 1),
                draft_id TEXT,
                version INTEGER NOT NULL DEFAULT 0
            )
        """)
        await db.execute("INSERT OR IGNORE INTO active_draft (slot, draft_id, version) VALUES (1, NULL, 0)")
        await db.execute("""
            CREATE TABLE IF NOT EXISTS trades (
                id TEXT PRIMARY KEY,
                draft_id TEXT NOT NULL,
                status TEXT NOT NULL,
                data TEXT NOT NULL,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS draft_selections (
                draft_id TEXT NOT NULL,
                player_id TEXT NOT NULL,
                manager_id TEXT NOT NULL,
                round INTEGER NOT NULL,
                pick INTEGER NOT NULL,
                overall_pick_number INTEGER NOT NULL,
                drafted_at DATETIME NOT NULL,
                PRIMARY KEY (draft_id, player_id)
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS player_transfers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                trade_id TEXT NOT NULL,
                player_id TEXT NOT NULL,
                from_manager_id TEXT NOT NULL,
                to_manager_id TEXT NOT NULL
            )
        """)
        await db.commit()

if __name__ == "__main__":
    asyncio.run(create_tables())

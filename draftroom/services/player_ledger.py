"""Player-side record of the draft: who drafted which player, and players moved by trades."""
import logging
from datetime import datetime, timezone
from typing import List

import aiosqlite

from ..errors import InvalidOperationError
from ..models.draft import DraftSelection
from ..models.trade import PlayerTransfer

logger = logging.getLogger(__name__)


async def record_drafted(
    db: aiosqlite.Connection,
    draft_id: str,
    player_id: str,
    manager_id: str,
    round_number: int,
    pick_number: int,
    overall_pick_number: int,
) -> DraftSelection:
    selection = DraftSelection(
        draft_id=draft_id,
        player_id=player_id,
        manager_id=manager_id,
        round=round_number,
        pick=pick_number,
        overall_pick_number=overall_pick_number,
        drafted_at=datetime.now(timezone.utc),
    )
    try:
        await db.execute(
            """
            INSERT INTO draft_selections
                (draft_id, player_id, manager_id, round, pick, overall_pick_number, drafted_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                selection.draft_id, selection.player_id, selection.manager_id, selection.round,
                selection.pick, selection.overall_pick_number, selection.drafted_at.isoformat(),
            ),
        )
    except aiosqlite.IntegrityError:
        raise InvalidOperationError(f"Player {player_id} has already been drafted in draft {draft_id}") from None
    return selection


async def list_selections(db: aiosqlite.Connection, draft_id: str) -> List[DraftSelection]:
    async with db.execute(
        "SELECT * FROM draft_selections WHERE draft_id = ? ORDER BY overall_pick_number", (draft_id,)
    ) as cursor:
        rows = await cursor.fetchall()
    return [
        DraftSelection(
            draft_id=row["draft_id"],
            player_id=row["player_id"],
            manager_id=row["manager_id"],
            round=row["round"],
            pick=row["pick"],
            overall_pick_number=row["overall_pick_number"],
            drafted_at=datetime.fromisoformat(row["drafted_at"]),
        )
        for row in rows
    ]


async def reset_draft(db: aiosqlite.Connection, draft_id: str) -> int:
    cursor = await db.execute("DELETE FROM draft_selections WHERE draft_id = ?", (draft_id,))
    if cursor.rowcount:
        logger.info("Draft %s: cleared %d drafted players", draft_id, cursor.rowcount)
    return cursor.rowcount


async def record_transfers(db: aiosqlite.Connection, trade_id: str, transfers) -> None:
    """Store (player_id, from_manager, to_manager) moves made by a trade."""
    await db.executemany(
        "INSERT INTO player_transfers (trade_id, player_id, from_manager_id, to_manager_id) VALUES (?, ?, ?, ?)",
        [(trade_id, player_id, source, target) for player_id, source, target in transfers],
    )


async def revert_transfers(db: aiosqlite.Connection, trade_id: str) -> int:
    cursor = await db.execute("DELETE FROM player_transfers WHERE trade_id = ?", (trade_id,))
    return cursor.rowcount


async def list_transfers(db: aiosqlite.Connection, trade_id: str) -> List[PlayerTransfer]:
    async with db.execute(
        "SELECT player_id, from_manager_id, to_manager_id FROM player_transfers WHERE trade_id = ? ORDER BY id",
        (trade_id,),
    ) as cursor:
        return [
            PlayerTransfer(
                player_id=row["player_id"],
                from_manager_id=row["from_manager_id"],
                to_manager_id=row["to_manager_id"],
            )
            for row in await cursor.fetchall()
        ]

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

import aiosqlite

from .. import config, database, repository
from ..errors import ConcurrentModificationError, InvalidOperationError, NotFoundError
from ..models.draft import Draft, DraftPosition, DraftSelection, PickPointer
from ..models.trade import TradeStatus
from . import pick_advancer, player_ledger, round_manager
from .pick_order import get_display_pick_number as display_pick_number

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_write(operation: Callable[[aiosqlite.Connection], Awaitable[T]], retry: bool = True) -> T:
    """Run ``operation`` in a transaction, repeating it when a conditional write conflicts.

    ``operation`` must re-read whatever it depends on each time it is called:
    a retry starts again from a fresh read.
    """
    attempts = max(1, config.MAX_WRITE_RETRIES) if retry else 1
    db = await database.get_db_connection()
    try:
        for attempt in range(1, attempts + 1):
            try:
                result = await operation(db)
                await db.commit()
                return result
            except ConcurrentModificationError:
                await db.rollback()
                if attempt == attempts:
                    raise
                logger.warning("Write conflict, retrying (%d/%d)", attempt, attempts)
            except Exception:
                await db.rollback()
                raise
    finally:
        await db.close()


async def load_draft(db: aiosqlite.Connection, draft_id: str) -> Draft:
    draft = await repository.get_draft(db, draft_id)
    if draft is None:
        raise NotFoundError(f"Draft {draft_id} not found")
    return draft


async def mutate_draft(
    draft_id: str,
    change: Callable[[Draft], Draft],
    expected_version: Optional[int] = None,
    after: Optional[Callable[[aiosqlite.Connection, Draft], Awaitable[None]]] = None,
) -> Draft:
    """Read-compute-write one draft under optimistic concurrency.

    ``change`` is a pure function of the stored draft. ``after`` runs inside
    the same transaction once the new draft is written. A caller passing
    ``expected_version`` is told about a stale read instead of retried.
    """
    async def operation(db):
        draft = await load_draft(db, draft_id)
        if expected_version is not None and draft.version != expected_version:
            raise ConcurrentModificationError(
                f"Draft {draft_id} is at version {draft.version}, expected {expected_version}"
            )
        stored = await repository.save_draft(db, change(draft))
        if after is not None:
            await after(db, stored)
        return stored

    return await run_write(operation, retry=expected_version is None)


async def list_drafts() -> List[Draft]:
    db = await database.get_db_connection()
    try:
        return await repository.list_drafts(db)
    finally:
        await db.close()


async def get_draft(draft_id: str) -> Draft:
    db = await database.get_db_connection()
    try:
        return await load_draft(db, draft_id)
    finally:
        await db.close()


async def get_active_draft() -> Optional[Draft]:
    db = await database.get_db_connection()
    try:
        active_id, _ = await repository.get_active_slot(db)
        if active_id is None:
            return None
        return await repository.get_draft(db, active_id)
    finally:
        await db.close()


async def create_draft(year: int, type: str, is_snake_draft: bool, initial_rounds: int, draft_order: Sequence[str]) -> Draft:
    if initial_rounds < 1:
        raise InvalidOperationError("A draft needs at least one round")

    async def operation(db):
        known = await repository.manager_ids(db)
        missing = [manager_id for manager_id in draft_order if manager_id not in known]
        if missing:
            raise NotFoundError(f"Unknown managers in draft order: {', '.join(missing)}")

        active_id, slot_version = await repository.get_active_slot(db)
        if active_id is not None:
            raise InvalidOperationError("There is already an active draft")

        draft = Draft(
            year=year,
            type=type,
            is_snake_draft=is_snake_draft,
            created_at=datetime.now(timezone.utc),
            is_active=True,
            draft_order=list(draft_order),
        )
        for _ in range(initial_rounds):
            draft = round_manager.add_round(draft)

        stored = await repository.insert_draft(db, draft)
        await repository.set_active_slot(db, stored.id, slot_version)
        logger.info(
            "Created draft %s: %d %s, %d rounds of %d picks",
            stored.id, year, type, initial_rounds, len(draft_order),
        )
        return stored

    return await run_write(operation)


async def delete_draft(draft_id: str) -> bool:
    async def operation(db):
        await load_draft(db, draft_id)
        active_id, slot_version = await repository.get_active_slot(db)
        if active_id == draft_id:
            await repository.set_active_slot(db, None, slot_version)
        for trade in await repository.list_trades(db, draft_id):
            await player_ledger.revert_transfers(db, trade.id)
        await repository.delete_trades_for_draft(db, draft_id)
        await player_ledger.reset_draft(db, draft_id)
        deleted = await repository.delete_draft(db, draft_id)
        logger.info("Deleted draft %s", draft_id)
        return deleted

    return await run_write(operation)


async def add_round(draft_id: str) -> Draft:
    return await mutate_draft(draft_id, round_manager.add_round)


async def remove_round(draft_id: str) -> Draft:
    return await mutate_draft(draft_id, round_manager.remove_round)


async def mark_pick_complete(
    draft_id: str,
    round_number: int,
    manager_id: str,
    player_id: str,
    expected_version: Optional[int] = None,
) -> Draft:
    completed: List[DraftPosition] = []

    def change(draft):
        completed.clear()
        updated, position = pick_advancer.mark_pick_complete(draft, round_number, manager_id)
        completed.append(position)
        return updated

    async def record_player(db, draft):
        position = completed[0]
        await player_ledger.record_drafted(
            db,
            draft_id=draft.id,
            player_id=player_id,
            manager_id=manager_id,
            round_number=round_number,
            pick_number=display_pick_number(draft, position.pick_number, round_number),
            overall_pick_number=position.overall_pick_number,
        )

    return await mutate_draft(draft_id, change, expected_version, after=record_player)


async def advance_pick(draft_id: str, skip_completed: bool = False, expected_version: Optional[int] = None) -> PickPointer:
    pointers: List[PickPointer] = []

    def change(draft):
        pointers.clear()
        pointer = pick_advancer.advance_pick(draft, skip_completed)
        pointers.append(pointer)
        return pick_advancer.apply_current_pick(draft, pointer)

    draft = await mutate_draft(draft_id, change, expected_version)
    logger.info(
        "Draft %s advanced to round %d, pick %d (overall %d)",
        draft.id, draft.current_round, draft.current_pick, draft.current_overall_pick,
    )
    return pointers[0]


async def update_active_pick(draft_id: str, round_number: int, pick: int, overall_pick_number: Optional[int] = None) -> Draft:
    return await mutate_draft(
        draft_id,
        lambda draft: pick_advancer.update_active_pick(draft, round_number, pick, overall_pick_number),
    )


async def reset_draft(draft_id: str) -> bool:
    async def clear_records(db, draft):
        await player_ledger.reset_draft(db, draft.id)
        for trade in await repository.list_trades(db, draft.id):
            if trade.status == TradeStatus.COMPLETED:
                await player_ledger.revert_transfers(db, trade.id)
                trade.status = TradeStatus.REVERSED
                await repository.update_trade(db, trade)

    await mutate_draft(draft_id, pick_advancer.reset_draft, after=clear_records)
    logger.info("Reset draft %s", draft_id)
    return True


async def toggle_active(draft_id: str) -> Draft:
    async def operation(db):
        draft = await load_draft(db, draft_id)
        active_id, slot_version = await repository.get_active_slot(db)
        toggled = pick_advancer.toggle_active(draft)

        if toggled.is_active:
            if active_id is not None and active_id != draft_id:
                previous = await repository.get_draft(db, active_id)
                if previous is not None and previous.is_active:
                    await repository.save_draft(db, pick_advancer.toggle_active(previous))
                    logger.info("Deactivated draft %s", active_id)
            await repository.set_active_slot(db, draft_id, slot_version)
        elif active_id == draft_id:
            await repository.set_active_slot(db, None, slot_version)

        return await repository.save_draft(db, toggled)

    return await run_write(operation)


async def get_current_pick(draft_id: str) -> Optional[PickPointer]:
    return pick_advancer.first_open_pick(await get_draft(draft_id))


async def get_display_pick_number(draft_id: str, pick_number: int, round_number: Optional[int] = None) -> int:
    return display_pick_number(await get_draft(draft_id), pick_number, round_number)


async def list_selections(draft_id: str) -> List[DraftSelection]:
    db = await database.get_db_connection()
    try:
        await load_draft(db, draft_id)
        return await player_ledger.list_selections(db, draft_id)
    finally:
        await db.close()

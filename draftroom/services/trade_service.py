import logging
from datetime import datetime, timezone
from typing import List, Optional

from .. import database, repository
from ..errors import InvalidOperationError, NotFoundError
from ..models.trade import PlayerTransfer, Trade, TradeProposal, TradeResult, TradeStatus, TradeValidation
from . import player_ledger
from .draft_service import load_draft, run_write
from .trade_allocator import (
    TradeAllocation,
    check_against_draft,
    commit_trade,
    player_transfers,
    revert_trade,
)

logger = logging.getLogger(__name__)


async def validate_trade(draft_id: str, proposal: TradeProposal) -> TradeValidation:
    """Check a proposal without committing it.

    Distribution problems come back as issues; references the draft cannot
    honour (unknown picks or managers, used picks) raise.
    """
    allocation = TradeAllocation.from_proposal(proposal)
    db = await database.get_db_connection()
    try:
        draft = await load_draft(db, draft_id)
        check_against_draft(draft, allocation, await repository.manager_ids(db))
    finally:
        await db.close()
    return allocation.validate()


async def propose_trade(draft_id: str, proposal: TradeProposal) -> TradeResult:
    allocation = TradeAllocation.from_proposal(proposal)
    logger.info(
        "Trade proposed in draft %s between %s (%d assets)",
        draft_id, ", ".join(allocation.manager_ids), len(allocation.allocations),
    )

    async def operation(db):
        draft = await load_draft(db, draft_id)
        if not draft.is_active:
            raise InvalidOperationError(f"Draft {draft_id} is not the active draft")

        updated = commit_trade(draft, allocation, await repository.manager_ids(db))
        stored_draft = await repository.save_draft(db, updated)

        trade = await repository.insert_trade(db, Trade(
            draft_id=draft_id,
            timestamp=datetime.now(timezone.utc),
            notes=proposal.notes,
            status=TradeStatus.COMPLETED,
            parties=allocation.parties,
            allocations=allocation.allocations,
        ))
        moves = player_transfers(trade.allocations)
        if moves:
            await player_ledger.record_transfers(db, trade.id, moves)
        return TradeResult(trade=trade, draft=stored_draft)

    result = await run_write(operation)
    logger.info("Trade %s completed in draft %s", result.trade.id, draft_id)
    return result


async def list_trades(draft_id: Optional[str] = None) -> List[Trade]:
    db = await database.get_db_connection()
    try:
        return await repository.list_trades(db, draft_id)
    finally:
        await db.close()


async def _load_trade(db, trade_id: str) -> Trade:
    trade = await repository.get_trade(db, trade_id)
    if trade is None:
        raise NotFoundError(f"Trade {trade_id} not found")
    return trade


async def list_player_transfers(trade_id: str) -> List[PlayerTransfer]:
    db = await database.get_db_connection()
    try:
        await _load_trade(db, trade_id)
        return await player_ledger.list_transfers(db, trade_id)
    finally:
        await db.close()


async def cancel_trade(trade_id: str) -> Trade:
    """Give every traded pick back to the manager who held it before the trade."""
    async def operation(db):
        trade = await _load_trade(db, trade_id)
        if trade.status != TradeStatus.COMPLETED:
            raise InvalidOperationError(f"Trade {trade_id} is {trade.status.value}, only completed trades can be cancelled")

        draft = await load_draft(db, trade.draft_id)
        await repository.save_draft(db, revert_trade(draft, trade))
        await player_ledger.revert_transfers(db, trade_id)

        trade.status = TradeStatus.CANCELLED
        return await repository.update_trade(db, trade)

    trade = await run_write(operation)
    logger.info("Trade %s cancelled", trade_id)
    return trade


async def delete_trade(trade_id: str) -> bool:
    db = await database.get_db_connection()
    try:
        trade = await _load_trade(db, trade_id)
    finally:
        await db.close()

    if trade.status == TradeStatus.COMPLETED:
        logger.info("Trade %s is not cancelled. Cancelling first", trade_id)
        await cancel_trade(trade_id)

    async def operation(db):
        return await repository.delete_trade(db, trade_id)

    deleted = await run_write(operation)
    logger.info("Trade %s permanently deleted", trade_id)
    return deleted

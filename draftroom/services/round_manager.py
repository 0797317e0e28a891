import logging

from .. import config
from ..errors import InvalidOperationError, InvalidStateError
from ..models.draft import Draft
from .pick_order import build_round

logger = logging.getLogger(__name__)


def _recover_draft_order(draft: Draft):
    if draft.draft_order:
        return list(draft.draft_order)
    if not draft.rounds:
        return []
    first_round = sorted(draft.rounds[0].picks, key=lambda p: p.pick_number)
    return [p.manager_id for p in first_round]


def add_round(draft: Draft) -> Draft:
    """Return a copy of ``draft`` with one more round appended."""
    draft_order = _recover_draft_order(draft)
    if not draft_order:
        raise InvalidStateError("Draft has no rounds and no draft order configured")

    updated = draft.model_copy(deep=True)
    updated.draft_order = draft_order
    next_round = updated.last_round.round_number + 1 if updated.rounds else 1
    new_round = build_round(draft_order, updated.is_snake_draft, next_round)

    # Continue after whatever the last round ends on
    offset = updated.total_picks - (next_round - 1) * len(draft_order)
    if offset:
        for position in new_round.picks:
            position.overall_pick_number += offset

    updated.rounds.append(new_round)
    logger.info("Draft %s: added round %d (%d picks)", draft.id, next_round, len(new_round.picks))
    return updated


def remove_round(draft: Draft) -> Draft:
    """Return a copy of ``draft`` without its last round."""
    if len(draft.rounds) <= config.MIN_ROUNDS:
        raise InvalidOperationError("A draft must keep at least one round")

    last = draft.last_round
    if any(p.is_complete for p in last.picks):
        raise InvalidOperationError(f"Round {last.round_number} has completed picks")

    first_overall = min(p.overall_pick_number for p in last.picks)
    if draft.current_overall_pick >= first_overall:
        raise InvalidOperationError(f"Draft progression has already reached round {last.round_number}")

    if any(p.traded_to for p in last.picks):
        raise InvalidOperationError(f"Round {last.round_number} has traded picks; cancel those trades first")

    updated = draft.model_copy(deep=True)
    updated.rounds.pop()
    if updated.active_overall_pick >= first_overall:
        updated.active_round = updated.current_round
        updated.active_pick = updated.current_pick
        updated.active_overall_pick = updated.current_overall_pick
    logger.info("Draft %s: removed round %d", draft.id, last.round_number)
    return updated

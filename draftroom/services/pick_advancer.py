"""
Draft progression.

``current*`` is the true progression pointer and only moves forward through
``advance_pick``. ``active*`` is a navigation cursor the draft room can move
anywhere. Completing a pick and advancing are separate steps so picks can be
recorded out of order while catching up.
"""
import logging
from typing import Optional, Tuple

from ..errors import (
    AlreadyCompleteError,
    DraftCompleteError,
    NotFoundError,
    OutOfRangeError,
)
from ..models.draft import Draft, DraftPosition, PickPointer

logger = logging.getLogger(__name__)


def _next_slot(draft: Draft, round_number: int, pick: int) -> Optional[Tuple[int, int]]:
    draft_round = draft.get_round(round_number)
    if draft_round is not None and pick < len(draft_round.picks):
        return round_number, pick + 1
    if draft.get_round(round_number + 1) is not None:
        return round_number + 1, 1
    return None


def _pointer(draft: Draft, round_number: int, pick: int) -> PickPointer:
    position = draft.get_position(round_number, pick)
    return PickPointer(round=round_number, pick=pick, overall_pick_number=position.overall_pick_number)


def advance_pick(draft: Draft, skip_completed: bool = False) -> PickPointer:
    """Pointer to the slot after ``current*``.

    With ``skip_completed`` the search keeps going past slots that are
    already complete. The draft is left untouched.
    """
    slot = _next_slot(draft, draft.current_round, draft.current_pick)
    while slot is not None and skip_completed and draft.get_position(*slot).is_complete:
        slot = _next_slot(draft, *slot)

    if slot is None:
        raise DraftCompleteError(f"No pick left after overall pick {draft.current_overall_pick}")
    return _pointer(draft, *slot)


def apply_current_pick(draft: Draft, pointer: PickPointer) -> Draft:
    updated = draft.model_copy(deep=True)
    updated.current_round = pointer.round
    updated.current_pick = pointer.pick
    updated.current_overall_pick = pointer.overall_pick_number
    return updated


def first_open_pick(draft: Draft) -> Optional[PickPointer]:
    for draft_round in draft.rounds:
        for index, position in enumerate(draft_round.picks, start=1):
            if not position.is_complete:
                return PickPointer(
                    round=draft_round.round_number,
                    pick=index,
                    overall_pick_number=position.overall_pick_number,
                )
    return None


def mark_pick_complete(draft: Draft, round_number: int, manager_id: str) -> Tuple[Draft, DraftPosition]:
    """Complete the first open slot of ``round_number`` held by ``manager_id``.

    Ownership is the effective owner, so traded picks are completed by
    whoever holds them now. Returns the updated draft and the completed slot.
    """
    draft_round = draft.get_round(round_number)
    if draft_round is None:
        raise NotFoundError(f"Round {round_number} not found")

    owned = [i for i, p in enumerate(draft_round.picks) if p.effective_owner == manager_id]
    if not owned:
        raise NotFoundError(f"Manager {manager_id} holds no pick in round {round_number}")

    open_index = next((i for i in owned if not draft_round.picks[i].is_complete), None)
    if open_index is None:
        raise AlreadyCompleteError(f"Manager {manager_id} has already picked in round {round_number}")

    updated = draft.model_copy(deep=True)
    position = updated.get_round(round_number).picks[open_index]
    position.is_complete = True
    logger.info(
        "Draft %s: pick %d (round %d) completed by %s",
        draft.id, position.overall_pick_number, round_number, manager_id,
    )
    return updated, position


def update_active_pick(draft: Draft, round_number: int, pick: int, overall_pick_number: Optional[int] = None) -> Draft:
    position = draft.get_position(round_number, pick)
    if position is None:
        raise OutOfRangeError(f"Round {round_number}, pick {pick} does not exist")
    if overall_pick_number is not None and overall_pick_number != position.overall_pick_number:
        raise OutOfRangeError(
            f"Round {round_number}, pick {pick} is overall pick {position.overall_pick_number}, not {overall_pick_number}"
        )

    updated = draft.model_copy(deep=True)
    updated.active_round = round_number
    updated.active_pick = pick
    updated.active_overall_pick = position.overall_pick_number
    return updated


def reset_draft(draft: Draft) -> Draft:
    updated = draft.model_copy(deep=True)
    for draft_round in updated.rounds:
        for position in draft_round.picks:
            position.is_complete = False
            position.traded_to = []
    updated.current_round = updated.current_pick = updated.current_overall_pick = 1
    updated.active_round = updated.active_pick = updated.active_overall_pick = 1
    return updated


def toggle_active(draft: Draft) -> Draft:
    updated = draft.model_copy(deep=True)
    updated.is_active = not draft.is_active
    return updated

from typing import List, Optional, Sequence

from ..models.draft import Draft, DraftPosition, DraftRound


def is_reversed_round(is_snake_draft: bool, round_number: int) -> bool:
    return is_snake_draft and round_number % 2 == 0


def pick_order(draft_order: Sequence[str], is_snake_draft: bool, round_number: int) -> List[str]:
    """Managers in selection order for one round.

    Snake drafts reverse the draft order on even rounds; everything else
    selects in draft order.
    """
    order = list(draft_order)
    if is_reversed_round(is_snake_draft, round_number):
        order.reverse()
    return order


def slot_for_pick(picks_per_round: int, is_snake_draft: bool, round_number: int, pick: int) -> int:
    """Draft-order slot that selects ``pick``-th in the round."""
    if is_reversed_round(is_snake_draft, round_number):
        return picks_per_round - pick + 1
    return pick


def build_round(draft_order: Sequence[str], is_snake_draft: bool, round_number: int) -> DraftRound:
    picks_per_round = len(draft_order)
    first_overall = (round_number - 1) * picks_per_round
    picks = []
    for index, manager_id in enumerate(pick_order(draft_order, is_snake_draft, round_number), start=1):
        picks.append(DraftPosition(
            manager_id=manager_id,
            pick_number=slot_for_pick(picks_per_round, is_snake_draft, round_number, index),
            overall_pick_number=first_overall + index,
        ))
    return DraftRound(round_number=round_number, picks=picks)


def get_display_pick_number(draft: Draft, pick_number: int, round_number: Optional[int] = None) -> int:
    """Translate a stored slot number into the number shown for that round.

    Display only: any missing piece of information falls back to the
    stored number instead of raising.
    """
    if round_number is None:
        round_number = draft.active_round
    if not draft.draft_order or not round_number:
        return pick_number
    if not is_reversed_round(draft.is_snake_draft, round_number):
        return pick_number
    return len(draft.draft_order) - pick_number + 1

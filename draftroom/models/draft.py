from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class Manager(BaseModel):
    id: Optional[str] = None
    name: str
    team_name: Optional[str] = None
    is_user: bool = False
    email: Optional[str] = None


class DraftPosition(BaseModel):
    manager_id: str  # ORIGINAL owner of the slot per the draft order
    pick_number: int  # Draft-order slot, 1-based
    overall_pick_number: int
    is_complete: bool = False
    traded_to: List[str] = []  # Ownership chain, last entry is the current holder

    @property
    def effective_owner(self) -> str:
        return self.traded_to[-1] if self.traded_to else self.manager_id


class DraftRound(BaseModel):
    round_number: int
    picks: List[DraftPosition]  # Selection order: picks[i] is the (i+1)-th pick of the round


class PickPointer(BaseModel):
    round: int
    pick: int  # Selection index within the round
    overall_pick_number: int


class Draft(BaseModel):
    id: Optional[str] = None
    year: int
    type: str
    is_snake_draft: bool = False
    created_at: datetime
    is_active: bool = False
    rounds: List[DraftRound] = []
    draft_order: List[str] = []

    current_round: int = 1
    current_pick: int = 1
    current_overall_pick: int = 1

    active_round: int = 1
    active_pick: int = 1
    active_overall_pick: int = 1

    version: int = 0

    @property
    def total_picks(self) -> int:
        return sum(len(r.picks) for r in self.rounds)

    @property
    def last_round(self) -> Optional[DraftRound]:
        return self.rounds[-1] if self.rounds else None

    def get_round(self, round_number: int) -> Optional[DraftRound]:
        return next((r for r in self.rounds if r.round_number == round_number), None)

    def get_position(self, round_number: int, pick: int) -> Optional[DraftPosition]:
        """Position at selection index ``pick`` of ``round_number``."""
        draft_round = self.get_round(round_number)
        if draft_round is None or pick < 1 or pick > len(draft_round.picks):
            return None
        return draft_round.picks[pick - 1]

    def find_overall(self, overall_pick_number: int) -> Optional[DraftPosition]:
        for draft_round in self.rounds:
            for position in draft_round.picks:
                if position.overall_pick_number == overall_pick_number:
                    return position
        return None

    def referenced_managers(self) -> set:
        ids = set(self.draft_order)
        for draft_round in self.rounds:
            for position in draft_round.picks:
                ids.add(position.manager_id)
                ids.update(position.traded_to)
        return ids


class CreateDraftRequest(BaseModel):
    year: int
    type: str
    is_snake_draft: bool = False
    initial_rounds: int = Field(..., ge=1)
    draft_order: List[str] = Field(..., min_length=1)

    @field_validator("draft_order")
    @classmethod
    def _distinct_managers(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("draft_order must not repeat a manager")
        return value


class MarkPickRequest(BaseModel):
    round_number: int
    manager_id: str
    player_id: str
    expected_version: Optional[int] = None


class AdvancePickRequest(BaseModel):
    skip_completed: bool = False
    expected_version: Optional[int] = None


class UpdateActivePickRequest(BaseModel):
    round: int
    pick: int
    overall_pick_number: Optional[int] = None


class ManagerUpdate(BaseModel):
    name: Optional[str] = None
    team_name: Optional[str] = None
    email: Optional[str] = None


class DraftSelection(BaseModel):
    draft_id: str
    player_id: str
    manager_id: str
    round: int
    pick: int
    overall_pick_number: int
    drafted_at: datetime

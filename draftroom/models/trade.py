from enum import Enum
from typing import List, Dict, Optional, Union, Literal, Annotated
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from .draft import Draft


class TradeAssetType(str, Enum):
    DRAFT_PICK = "DraftPick"
    PLAYER = "Player"


class TradeStatus(str, Enum):
    COMPLETED = "Completed"
    REVERSED = "Reversed"
    CANCELLED = "Cancelled"


class TradeAsset(BaseModel):
    type: TradeAssetType
    draft_id: Optional[str] = None
    player_id: Optional[str] = None
    overall_pick_number: Optional[int] = None
    pick_number: Optional[int] = None
    round_number: Optional[int] = None

    @model_validator(mode="after")
    def _identified(self):
        if self.type == TradeAssetType.DRAFT_PICK and self.overall_pick_number is None:
            raise ValueError("a DraftPick asset needs overall_pick_number")
        if self.type == TradeAssetType.PLAYER and not self.player_id:
            raise ValueError("a Player asset needs player_id")
        return self

    @property
    def key(self) -> str:
        """Identity of the asset inside one trade: ``pick:<overall>`` or ``player:<id>``."""
        if self.type == TradeAssetType.DRAFT_PICK:
            return f"pick:{self.overall_pick_number}"
        return f"player:{self.player_id}"


class TradeParty(BaseModel):
    manager_id: str
    assets: List[TradeAsset] = []  # What this manager puts into the trade


class InOriginalPool(BaseModel):
    state: Literal["in_original_pool"] = "in_original_pool"
    owner_id: str


class Distributed(BaseModel):
    state: Literal["distributed"] = "distributed"
    holder_id: str


AssetState = Annotated[Union[InOriginalPool, Distributed], Field(discriminator="state")]


class AllocatedAsset(BaseModel):
    asset: TradeAsset
    contributed_by: str
    state: AssetState


class TradeIssue(BaseModel):
    code: str  # IncompleteDistribution, EmptyReceipt, DuplicateAssignment, DegenerateTrade, UnknownRecipient, UnknownAsset
    message: str
    manager_id: Optional[str] = None
    asset_key: Optional[str] = None


class TradeValidation(BaseModel):
    valid: bool
    issues: List[TradeIssue] = []


class TradeProposal(BaseModel):
    participants: List[TradeParty] = Field(..., min_length=2)
    # receiving manager_id -> assets that manager ends up with
    asset_map: Dict[str, List[TradeAsset]] = {}
    notes: Optional[str] = None


class Trade(BaseModel):
    id: Optional[str] = None
    draft_id: str
    timestamp: datetime
    notes: Optional[str] = None
    status: TradeStatus
    parties: List[TradeParty]
    allocations: List[AllocatedAsset]


class TradeResult(BaseModel):
    trade: Trade
    draft: Draft


class PlayerTransfer(BaseModel):
    player_id: str
    from_manager_id: str
    to_manager_id: str

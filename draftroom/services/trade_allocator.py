"""
Trade allocation among two or more managers.

Each manager contributes assets to a shared pool; the pool is then handed out
so every participant ends up with something. While the trade is being built,
every asset carries an explicit state:

    InOriginalPool(owner_id) -> Distributed(holder_id)

Once distributed, an asset only moves between recipients. It never goes back
to the pool, not even when its contributor receives it again.

Committing a trade appends new holders to the ``traded_to`` chain of each
traded draft pick. Player assets are reported back so the player ledger can
record them.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..errors import InvalidOperationError, NotFoundError, TradeRejectedError
from ..models.draft import Draft
from ..models.trade import (
    AllocatedAsset,
    Distributed,
    InOriginalPool,
    Trade,
    TradeAsset,
    TradeAssetType,
    TradeIssue,
    TradeParty,
    TradeProposal,
    TradeValidation,
)

logger = logging.getLogger(__name__)

INCOMPLETE_DISTRIBUTION = "IncompleteDistribution"
EMPTY_RECEIPT = "EmptyReceipt"
DUPLICATE_ASSIGNMENT = "DuplicateAssignment"
DEGENERATE_TRADE = "DegenerateTrade"
UNKNOWN_RECIPIENT = "UnknownRecipient"
UNKNOWN_ASSET = "UnknownAsset"


class TradeAllocation:
    def __init__(self, parties: List[TradeParty]):
        manager_ids = [party.manager_id for party in parties]
        if len(manager_ids) < 2:
            raise InvalidOperationError("A trade needs at least two managers")
        if len(set(manager_ids)) != len(manager_ids):
            raise InvalidOperationError("A manager can only appear once in a trade")

        self.parties = [party.model_copy(deep=True) for party in parties]
        self._assets: Dict[str, AllocatedAsset] = {}
        self._issues: List[TradeIssue] = []

        for party in self.parties:
            for asset in party.assets:
                if asset.key in self._assets:
                    self._issues.append(TradeIssue(
                        code=DUPLICATE_ASSIGNMENT,
                        message=f"{asset.key} is contributed more than once",
                        manager_id=party.manager_id,
                        asset_key=asset.key,
                    ))
                    continue
                self._assets[asset.key] = AllocatedAsset(
                    asset=asset,
                    contributed_by=party.manager_id,
                    state=InOriginalPool(owner_id=party.manager_id),
                )

    @classmethod
    def from_proposal(cls, proposal: TradeProposal) -> "TradeAllocation":
        """Build an allocation from a submitted payload.

        ``asset_map`` lists, per receiving manager, the assets that manager
        ends up with. An asset listed under two receivers keeps its first
        assignment and is reported as a duplicate. Receivers outside the trade
        and assets nobody contributed are reported instead of raised.
        """
        allocation = cls(proposal.participants)
        assigned: Dict[str, str] = {}
        for manager_id, assets in proposal.asset_map.items():
            if manager_id not in allocation.manager_ids:
                allocation._issues.append(TradeIssue(
                    code=UNKNOWN_RECIPIENT,
                    message=f"Manager {manager_id} receives assets but is not part of this trade",
                    manager_id=manager_id,
                ))
                continue
            for asset in assets:
                if asset.key not in allocation._assets:
                    allocation._issues.append(TradeIssue(
                        code=UNKNOWN_ASSET,
                        message=f"{asset.key} is assigned to {manager_id} but nobody contributed it",
                        manager_id=manager_id,
                        asset_key=asset.key,
                    ))
                    continue
                if asset.key in assigned:
                    allocation._issues.append(TradeIssue(
                        code=DUPLICATE_ASSIGNMENT,
                        message=f"{asset.key} is assigned to both {assigned[asset.key]} and {manager_id}",
                        manager_id=manager_id,
                        asset_key=asset.key,
                    ))
                    continue
                allocation.distribute(asset.key, manager_id)
                assigned[asset.key] = manager_id
        return allocation

    @property
    def manager_ids(self) -> List[str]:
        return [party.manager_id for party in self.parties]

    @property
    def allocations(self) -> List[AllocatedAsset]:
        return list(self._assets.values())

    def state_of(self, asset_key: str):
        return self._get(asset_key).state

    def distribute(self, asset_key: str, manager_id: str) -> AllocatedAsset:
        """Hand ``asset_key`` to ``manager_id``; works from the pool or from another recipient."""
        allocated = self._get(asset_key)
        if manager_id not in self.manager_ids:
            raise NotFoundError(f"Manager {manager_id} is not part of this trade")
        allocated.state = Distributed(holder_id=manager_id)
        return allocated

    def received(self, manager_id: str) -> List[TradeAsset]:
        return [
            a.asset for a in self._assets.values()
            if isinstance(a.state, Distributed) and a.state.holder_id == manager_id
        ]

    def pending(self) -> List[AllocatedAsset]:
        return [a for a in self._assets.values() if isinstance(a.state, InOriginalPool)]

    def transfers(self) -> List[AllocatedAsset]:
        """Distributed assets that end with someone other than their contributor."""
        return [
            a for a in self._assets.values()
            if isinstance(a.state, Distributed) and a.state.holder_id != a.contributed_by
        ]

    def validate(self) -> TradeValidation:
        issues = list(self._issues)

        for allocated in self.pending():
            issues.append(TradeIssue(
                code=INCOMPLETE_DISTRIBUTION,
                message=f"{allocated.asset.key} from {allocated.contributed_by} has not been distributed",
                manager_id=allocated.contributed_by,
                asset_key=allocated.asset.key,
            ))

        for manager_id in self.manager_ids:
            if not self.received(manager_id):
                issues.append(TradeIssue(
                    code=EMPTY_RECEIPT,
                    message=f"Manager {manager_id} receives nothing",
                    manager_id=manager_id,
                ))

        distributed = [a for a in self._assets.values() if isinstance(a.state, Distributed)]
        if distributed and not self.transfers():
            issues.append(TradeIssue(
                code=DEGENERATE_TRADE,
                message="Every asset ends with the manager who contributed it",
            ))

        return TradeValidation(valid=not issues, issues=issues)

    def _get(self, asset_key: str) -> AllocatedAsset:
        try:
            return self._assets[asset_key]
        except KeyError:
            raise NotFoundError(f"Asset {asset_key} is not part of this trade") from None


def check_against_draft(draft: Draft, allocation: TradeAllocation, known_managers: Optional[Set[str]] = None):
    """Raise if the trade refers to managers or picks the draft cannot honour."""
    if known_managers is not None:
        for manager_id in allocation.manager_ids:
            if manager_id not in known_managers:
                raise NotFoundError(f"Manager {manager_id} not found")

    for allocated in allocation.allocations:
        asset = allocated.asset
        if asset.type != TradeAssetType.DRAFT_PICK:
            continue
        if asset.draft_id is not None and asset.draft_id != draft.id:
            raise InvalidOperationError(f"Pick {asset.overall_pick_number} belongs to draft {asset.draft_id}, not {draft.id}")

        position = draft.find_overall(asset.overall_pick_number)
        if position is None:
            raise NotFoundError(f"Pick {asset.overall_pick_number} not found in draft {draft.id}")
        if position.is_complete:
            raise InvalidOperationError(f"Pick {asset.overall_pick_number} has already been used")
        if position.effective_owner != allocated.contributed_by:
            raise InvalidOperationError(
                f"Pick {asset.overall_pick_number} is held by {position.effective_owner}, not {allocated.contributed_by}"
            )


def commit_trade(draft: Draft, allocation: TradeAllocation, known_managers: Optional[Set[str]] = None) -> Draft:
    validation = allocation.validate()
    if not validation.valid:
        raise TradeRejectedError(validation)
    check_against_draft(draft, allocation, known_managers)

    updated = draft.model_copy(deep=True)
    for allocated in allocation.transfers():
        if allocated.asset.type != TradeAssetType.DRAFT_PICK:
            continue
        position = updated.find_overall(allocated.asset.overall_pick_number)
        position.traded_to.append(allocated.state.holder_id)
        logger.info(
            "Draft %s: pick %d moves %s -> %s",
            draft.id, position.overall_pick_number, allocated.contributed_by, allocated.state.holder_id,
        )
    return updated


def player_transfers(allocations: Iterable[AllocatedAsset]) -> List[Tuple[str, str, str]]:
    """(player_id, from_manager, to_manager) for every player that changes hands."""
    return [
        (a.asset.player_id, a.contributed_by, a.state.holder_id)
        for a in allocations
        if a.asset.type == TradeAssetType.PLAYER
        and isinstance(a.state, Distributed)
        and a.state.holder_id != a.contributed_by
    ]


def revert_trade(draft: Draft, trade: Trade) -> Draft:
    """Undo the pick moves ``trade`` made, newest holder first."""
    updated = draft.model_copy(deep=True)
    for allocated in trade.allocations:
        if allocated.asset.type != TradeAssetType.DRAFT_PICK:
            continue
        if not isinstance(allocated.state, Distributed) or allocated.state.holder_id == allocated.contributed_by:
            continue
        position = updated.find_overall(allocated.asset.overall_pick_number)
        if position is None:
            raise NotFoundError(f"Pick {allocated.asset.overall_pick_number} no longer exists")
        if position.is_complete:
            raise InvalidOperationError(f"Pick {position.overall_pick_number} has already been used")
        if not position.traded_to or position.effective_owner != allocated.state.holder_id:
            raise InvalidOperationError(
                f"Pick {position.overall_pick_number} has been traded again since this trade"
            )
        position.traded_to.pop()
    return updated

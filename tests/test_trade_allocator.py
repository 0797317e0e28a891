import pytest
from pydantic import ValidationError

from draftroom.errors import InvalidOperationError, NotFoundError, TradeRejectedError
from draftroom.models.trade import (
    AllocatedAsset,
    Distributed,
    InOriginalPool,
    Trade,
    TradeAsset,
    TradeAssetType,
    TradeParty,
    TradeProposal,
    TradeStatus,
)
from draftroom.services.trade_allocator import (
    TradeAllocation,
    check_against_draft,
    commit_trade,
    player_transfers,
    revert_trade,
)


def pick(overall):
    return TradeAsset(type=TradeAssetType.DRAFT_PICK, draft_id="draft-1", overall_pick_number=overall)


def player(player_id):
    return TradeAsset(type=TradeAssetType.PLAYER, player_id=player_id)


def issue_codes(validation):
    return sorted(issue.code for issue in validation.issues)


@pytest.fixture
def three_way():
    # Round 2 of the A/B/C snake draft: C=4, B=5, A=6
    return [
        TradeParty(manager_id="A", assets=[pick(6)]),
        TradeParty(manager_id="B", assets=[pick(5)]),
        TradeParty(manager_id="C", assets=[pick(4)]),
    ]


def test_assets_start_in_their_owners_pool(three_way):
    allocation = TradeAllocation(three_way)
    assert allocation.state_of("pick:6") == InOriginalPool(owner_id="A")
    assert len(allocation.pending()) == 3


def test_distributed_asset_never_returns_to_the_pool(three_way):
    allocation = TradeAllocation(three_way)
    allocation.distribute("pick:6", "B")
    allocation.distribute("pick:6", "C")
    allocation.distribute("pick:6", "A")

    assert allocation.state_of("pick:6") == Distributed(holder_id="A")
    assert [a.asset.key for a in allocation.pending()] == ["pick:5", "pick:4"]
    assert allocation.received("A") == [pick(6)]


def test_undistributed_asset_is_incomplete_distribution(three_way):
    allocation = TradeAllocation(three_way)
    allocation.distribute("pick:6", "B")
    allocation.distribute("pick:5", "A")

    validation = allocation.validate()
    assert not validation.valid
    assert "IncompleteDistribution" in issue_codes(validation)
    incomplete = [i for i in validation.issues if i.code == "IncompleteDistribution"]
    assert incomplete[0].asset_key == "pick:4"


def test_manager_receiving_nothing_is_empty_receipt(three_way):
    allocation = TradeAllocation(three_way)
    allocation.distribute("pick:6", "B")
    allocation.distribute("pick:5", "A")
    allocation.distribute("pick:4", "A")

    validation = allocation.validate()
    assert issue_codes(validation) == ["EmptyReceipt"]
    assert validation.issues[0].manager_id == "C"


def test_asset_in_two_buckets_is_duplicate_assignment(three_way):
    proposal = TradeProposal(
        participants=three_way,
        asset_map={"A": [pick(5)], "B": [pick(4), pick(6)], "C": [pick(6)]},
    )
    validation = TradeAllocation.from_proposal(proposal).validate()
    assert issue_codes(validation) == ["DuplicateAssignment", "EmptyReceipt"]


def test_asset_contributed_twice_is_duplicate_assignment():
    parties = [
        TradeParty(manager_id="A", assets=[pick(1)]),
        TradeParty(manager_id="B", assets=[pick(1), pick(2)]),
    ]
    allocation = TradeAllocation(parties)
    allocation.distribute("pick:1", "B")
    allocation.distribute("pick:2", "A")
    assert issue_codes(allocation.validate()) == ["DuplicateAssignment"]


def test_everyone_keeping_their_own_asset_is_degenerate():
    parties = [
        TradeParty(manager_id="A", assets=[pick(1)]),
        TradeParty(manager_id="B", assets=[pick(2)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(1)], "B": [pick(2)]})
    assert issue_codes(TradeAllocation.from_proposal(proposal).validate()) == ["DegenerateTrade"]


def test_self_receipt_inside_a_larger_reallocation_is_allowed():
    parties = [
        TradeParty(manager_id="A", assets=[pick(1), pick(4)]),
        TradeParty(manager_id="B", assets=[pick(2)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(2), pick(4)], "B": [pick(1)]})
    assert TradeAllocation.from_proposal(proposal).validate().valid


def test_full_rotation_is_valid(three_way):
    proposal = TradeProposal(
        participants=three_way,
        asset_map={"A": [pick(5)], "B": [pick(4)], "C": [pick(6)]},
    )
    validation = TradeAllocation.from_proposal(proposal).validate()
    assert validation.valid
    assert validation.issues == []


def test_trade_needs_two_distinct_managers():
    with pytest.raises(InvalidOperationError):
        TradeAllocation([TradeParty(manager_id="A", assets=[pick(1)])])
    with pytest.raises(InvalidOperationError):
        TradeAllocation([TradeParty(manager_id="A"), TradeParty(manager_id="A")])


def test_distributing_to_an_outsider_or_unknown_asset(three_way):
    allocation = TradeAllocation(three_way)
    with pytest.raises(NotFoundError):
        allocation.distribute("pick:6", "Z")
    with pytest.raises(NotFoundError):
        allocation.distribute("pick:99", "A")


def test_commit_appends_new_holders(make_draft, three_way):
    draft = make_draft()
    proposal = TradeProposal(
        participants=three_way,
        asset_map={"A": [pick(5)], "B": [pick(4)], "C": [pick(6)]},
    )
    updated = commit_trade(draft, TradeAllocation.from_proposal(proposal), {"A", "B", "C"})

    assert updated.find_overall(4).traded_to == ["B"]
    assert updated.find_overall(5).effective_owner == "A"
    assert updated.find_overall(6).effective_owner == "C"
    assert draft.find_overall(4).traded_to == []


def test_commit_skips_assets_returned_to_their_contributor(make_draft):
    parties = [
        TradeParty(manager_id="A", assets=[pick(1), pick(6)]),
        TradeParty(manager_id="B", assets=[pick(2)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(2), pick(6)], "B": [pick(1)]})
    updated = commit_trade(make_draft(), TradeAllocation.from_proposal(proposal))

    assert updated.find_overall(6).traded_to == []
    assert updated.find_overall(1).traded_to == ["B"]
    assert updated.find_overall(2).traded_to == ["A"]


def test_commit_rejects_an_invalid_allocation(make_draft, three_way):
    allocation = TradeAllocation(three_way)
    allocation.distribute("pick:6", "B")
    with pytest.raises(TradeRejectedError) as excinfo:
        commit_trade(make_draft(), allocation)
    assert "IncompleteDistribution" in issue_codes(excinfo.value.validation)


def test_pick_must_belong_to_its_contributor(make_draft):
    parties = [
        TradeParty(manager_id="A", assets=[pick(2)]),
        TradeParty(manager_id="B", assets=[pick(1)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(1)], "B": [pick(2)]})
    with pytest.raises(InvalidOperationError):
        check_against_draft(make_draft(), TradeAllocation.from_proposal(proposal))


def test_used_or_missing_picks_cannot_be_traded(make_draft):
    parties = [
        TradeParty(manager_id="A", assets=[pick(1)]),
        TradeParty(manager_id="B", assets=[pick(2)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(2)], "B": [pick(1)]})
    allocation = TradeAllocation.from_proposal(proposal)

    draft = make_draft()
    draft.find_overall(1).is_complete = True
    with pytest.raises(InvalidOperationError):
        check_against_draft(draft, allocation)

    with pytest.raises(NotFoundError):
        check_against_draft(make_draft(rounds=1), TradeAllocation.from_proposal(TradeProposal(
            participants=[
                TradeParty(manager_id="A", assets=[pick(6)]),
                TradeParty(manager_id="B", assets=[pick(2)]),
            ],
            asset_map={"A": [pick(2)], "B": [pick(6)]},
        )))

    with pytest.raises(NotFoundError):
        check_against_draft(make_draft(), allocation, known_managers={"A"})


def test_traded_pick_can_be_traded_on_by_its_new_holder(make_draft):
    draft = make_draft()
    first = TradeProposal(
        participants=[TradeParty(manager_id="A", assets=[pick(1)]), TradeParty(manager_id="B", assets=[pick(2)])],
        asset_map={"A": [pick(2)], "B": [pick(1)]},
    )
    draft = commit_trade(draft, TradeAllocation.from_proposal(first))

    second = TradeProposal(
        participants=[TradeParty(manager_id="B", assets=[pick(1)]), TradeParty(manager_id="C", assets=[pick(3)])],
        asset_map={"B": [pick(3)], "C": [pick(1)]},
    )
    draft = commit_trade(draft, TradeAllocation.from_proposal(second))
    assert draft.find_overall(1).traded_to == ["B", "C"]


def test_player_transfers_are_reported():
    parties = [
        TradeParty(manager_id="A", assets=[player("p-1")]),
        TradeParty(manager_id="B", assets=[pick(2)]),
    ]
    proposal = TradeProposal(participants=parties, asset_map={"A": [pick(2)], "B": [player("p-1")]})
    allocation = TradeAllocation.from_proposal(proposal)
    assert player_transfers(allocation.allocations) == [("p-1", "A", "B")]


def _committed(draft, proposal):
    allocation = TradeAllocation.from_proposal(proposal)
    updated = commit_trade(draft, allocation)
    trade = Trade(
        id="trade-1",
        draft_id=draft.id,
        timestamp=draft.created_at,
        status=TradeStatus.COMPLETED,
        parties=allocation.parties,
        allocations=allocation.allocations,
    )
    return updated, trade


def test_revert_trade_restores_previous_holders(make_draft, three_way):
    draft = make_draft()
    proposal = TradeProposal(participants=three_way, asset_map={"A": [pick(5)], "B": [pick(4)], "C": [pick(6)]})
    traded, trade = _committed(draft, proposal)

    reverted = revert_trade(traded, trade)
    assert all(reverted.find_overall(n).traded_to == [] for n in (4, 5, 6))


def test_revert_trade_refuses_when_a_pick_moved_on(make_draft):
    draft = make_draft()
    proposal = TradeProposal(
        participants=[TradeParty(manager_id="A", assets=[pick(1)]), TradeParty(manager_id="B", assets=[pick(2)])],
        asset_map={"A": [pick(2)], "B": [pick(1)]},
    )
    traded, trade = _committed(draft, proposal)
    traded.find_overall(1).traded_to.append("C")

    with pytest.raises(InvalidOperationError):
        revert_trade(traded, trade)

    traded.find_overall(1).traded_to.pop()
    traded.find_overall(2).is_complete = True
    with pytest.raises(InvalidOperationError):
        revert_trade(traded, trade)


def test_revert_trade_refuses_a_pick_with_no_chain(make_draft):
    # Pick 6 belongs to A with no chain; a trade claiming it went B -> A cannot pop anything
    trade = Trade(
        id="trade-1",
        draft_id="draft-1",
        timestamp=make_draft().created_at,
        status=TradeStatus.COMPLETED,
        parties=[TradeParty(manager_id="A", assets=[pick(1)]), TradeParty(manager_id="B", assets=[pick(6)])],
        allocations=[
            AllocatedAsset(asset=pick(6), contributed_by="B", state=Distributed(holder_id="A")),
        ],
    )
    with pytest.raises(InvalidOperationError):
        revert_trade(make_draft(), trade)


def test_outsider_receiver_and_uncontributed_asset_are_reported(three_way):
    proposal = TradeProposal(
        participants=three_way,
        asset_map={"A": [pick(5), pick(1)], "B": [pick(4)], "C": [pick(6)], "Z": [pick(6)]},
    )
    validation = TradeAllocation.from_proposal(proposal).validate()
    assert issue_codes(validation) == ["UnknownAsset", "UnknownRecipient"]
    assert {(i.code, i.manager_id) for i in validation.issues} == {("UnknownAsset", "A"), ("UnknownRecipient", "Z")}


@pytest.mark.parametrize("payload", [
    {"type": "Player"},
    {"type": "Player", "player_id": ""},
    {"type": "DraftPick", "draft_id": "draft-1"},
])
def test_assets_must_identify_what_they_trade(payload):
    with pytest.raises(ValidationError):
        TradeAsset(**payload)


def test_trades_are_only_ever_completed_reversed_or_cancelled():
    assert {status.value for status in TradeStatus} == {"Completed", "Reversed", "Cancelled"}

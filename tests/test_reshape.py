"""Tests for tallies and record builders."""
from fakes import DAO, delegate, delegate_vote, proposal, vote

from subgraph_loader.common.models import Delegate, DelegateVote, Proposal, Vote, VoteDirection
from subgraph_loader.integrations.subgraph import reshape


class TestTallies:

    def test_example_tally(self):
        votes = [Vote(id="1", support=True, votes="5"),
                 Vote(id="2", support=False, votes="3"),
                 Vote(id="3", support=True, votes="2")]
        votes_for, votes_against = reshape.tally_votes(votes)
        assert (votes_for, votes_against) == (7, 3)
        assert reshape.is_approved(votes_for, votes_against) is True

    def test_tie_is_not_approved(self):
        assert reshape.is_approved(4, 4) is False
        assert reshape.is_approved(0, 0) is False

    def test_no_votes(self):
        assert reshape.tally_votes([]) == (0, 0)

    def test_weights_are_truncated_to_integers(self):
        assert reshape.parse_vote_weight("12.9") == 12
        assert reshape.parse_vote_weight(" 7 ") == 7
        assert reshape.parse_vote_weight("400000000000000000000000") == 400000000000000000000000

    def test_unparseable_weight_counts_as_zero(self):
        assert reshape.parse_vote_weight("lots") == 0
        assert reshape.parse_vote_weight("NaN") == 0


class TestRecords:

    def test_governance_url_strips_trailing_slash(self):
        assert reshape.governance_url(DAO, "42") == "https://compound.example/governance/42"

    def test_latest_proposal_dates_are_block_strings(self):
        raw = Proposal.model_validate(proposal("7", start_block="123", end_block=456))
        latest = reshape.to_latest_proposal(raw, DAO)
        assert latest.start_block == 123
        assert latest.end_block == 456
        assert latest.start_date == "123"
        assert latest.end_date == "456"
        assert latest.dao == DAO

    def test_proposal_summary(self):
        raw = Proposal.model_validate(proposal("7", votes=[vote("a", True, "5"), vote("b", False, "9")]))
        summary = reshape.to_proposal_summary(raw, DAO)
        assert summary.votes_for == 5
        assert summary.votes_against == 9
        assert summary.approved is False
        assert len(summary.votes) == 2

    def test_proposal_summary_from_latest_proposal(self):
        raw = Proposal.model_validate(proposal("7"))
        summary = reshape.to_proposal_summary(reshape.to_latest_proposal(raw, DAO), DAO)
        assert summary.id == "7"
        assert summary.end_date == "200"

    def test_voting_history_entry(self):
        entry = reshape.to_voting_history_entry(
            DelegateVote.model_validate(delegate_vote("v1", False, "15", "9")), DAO
        )
        assert entry.how_they_voted == VoteDirection.AGAINST
        assert entry.protocol == "Compound"
        assert entry.number_of_votes_cast == "15"
        assert entry.proposal_id == "9"
        assert entry.start_date == "300"
        assert entry.end_date == "400"
        assert entry.status == "EXECUTED"
        assert entry.url == "https://compound.example/governance/9"

    def test_submitted_proposal(self):
        raw = Proposal.model_validate(proposal("3", votes=[vote("a", True, "10"), vote("b", False, "1")]))
        submitted = reshape.to_submitted_proposal(raw, DAO)
        assert submitted.proposal_id == "3"
        assert submitted.votes_for == 10
        assert submitted.votes_against == 1
        assert submitted.approved is True
        assert submitted.url.endswith("/governance/3")

    def test_delegate_profile_dumps_camel_case(self):
        profile = reshape.to_delegate_profile(Delegate.model_validate(delegate("0xabc", "55")), "alice.eth", DAO)
        dumped = profile.model_dump(by_alias=True)
        assert dumped == {
            "id": "0xabc",
            "ensName": "alice.eth",
            "delegatedVotes": "55",
            "daos": [{"name": "Compound", "url": "https://compound.example/"}],
        }

"""Turn subgraph entities into application records."""
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Tuple

from subgraph_loader.common.models import (
    DaoInfo,
    Delegate,
    DelegateProfile,
    DelegateVote,
    LatestProposal,
    Proposal,
    ProposalSummary,
    SubmittedProposal,
    Vote,
    VoteDirection,
    VotingHistoryEntry,
)

logger = logging.getLogger(__name__)


def parse_vote_weight(weight: str) -> int:
    """Parse a vote weight string as an integer, truncating any fraction.

    Unparseable weights count as 0.
    """
    try:
        return int(Decimal(str(weight).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        logger.warning(f"Unparseable vote weight {weight!r}, counting as 0")
        return 0


def tally_votes(votes: Iterable[Vote]) -> Tuple[int, int]:
    """Return ``(votes_for, votes_against)``."""
    votes_for = 0
    votes_against = 0
    for vote in votes:
        if vote.support:
            votes_for += parse_vote_weight(vote.votes)
        else:
            votes_against += parse_vote_weight(vote.votes)
    return votes_for, votes_against


def is_approved(votes_for: int, votes_against: int) -> bool:
    return votes_for > votes_against


def block_date(block: int) -> str:
    return str(block)


def governance_url(dao: DaoInfo, proposal_id: str) -> str:
    return f"{dao.url.rstrip('/')}/governance/{proposal_id}"


def to_latest_proposal(proposal: Proposal, dao: DaoInfo) -> LatestProposal:
    return LatestProposal(
        **proposal.model_dump(include=set(Proposal.model_fields)),
        dao=dao,
        start_date=block_date(proposal.start_block),
        end_date=block_date(proposal.end_block),
    )


def to_proposal_summary(proposal: Proposal, dao: DaoInfo) -> ProposalSummary:
    votes_for, votes_against = tally_votes(proposal.votes)
    logger.debug(f"Proposal {proposal.id} has {votes_for} votes for and {votes_against} votes against")
    fields = proposal.model_dump(include=set(Proposal.model_fields))
    return ProposalSummary(
        **fields,
        dao=dao,
        start_date=block_date(proposal.start_block),
        end_date=block_date(proposal.end_block),
        votes_for=votes_for,
        votes_against=votes_against,
        approved=is_approved(votes_for, votes_against),
    )


def to_delegate_profile(delegate: Delegate, ens_name: Optional[str], dao: DaoInfo) -> DelegateProfile:
    return DelegateProfile(
        id=delegate.id,
        ens_name=ens_name,
        delegated_votes=delegate.delegated_votes,
        daos=[dao],
    )


def to_voting_history_entry(vote: DelegateVote, dao: DaoInfo) -> VotingHistoryEntry:
    proposal = vote.proposal
    return VotingHistoryEntry(
        proposal_description=proposal.description,
        protocol=dao.name,
        how_they_voted=VoteDirection.FOR if vote.support else VoteDirection.AGAINST,
        number_of_votes_cast=vote.votes,
        proposal_id=proposal.id,
        start_date=block_date(proposal.start_block),
        end_date=block_date(proposal.end_block),
        status=proposal.status,
        url=governance_url(dao, proposal.id),
    )


def to_submitted_proposal(proposal: Proposal, dao: DaoInfo) -> SubmittedProposal:
    votes_for, votes_against = tally_votes(proposal.votes)
    return SubmittedProposal(
        proposal_id=proposal.id,
        description=proposal.description,
        start_date=block_date(proposal.start_block),
        end_date=block_date(proposal.end_block),
        status=proposal.status,
        url=governance_url(dao, proposal.id),
        votes_for=votes_for,
        votes_against=votes_against,
        approved=is_approved(votes_for, votes_against),
    )

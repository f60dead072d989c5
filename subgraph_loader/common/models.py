from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SubgraphModel(BaseModel):
    """Base model for subgraph entities and the records built from them.

    Attributes are snake_case; the subgraph (and ``model_dump(by_alias=True)``)
    use camelCase.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DaoInfo(SubgraphModel):
    """Static descriptor of the DAO being queried."""
    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class VoteDirection(str, Enum):
    FOR = "FOR"
    AGAINST = "AGAINST"


class Account(SubgraphModel):
    id: str


class Vote(SubgraphModel):
    """A single vote on a proposal. ``votes`` is the weight as a numeric string."""
    id: str
    support: bool
    votes: str


class Proposal(SubgraphModel):
    """Governance proposal as returned by the subgraph."""
    id: str
    description: Optional[str] = None
    start_block: int
    end_block: int
    status: Optional[str] = None
    proposer: Account
    votes: List[Vote] = Field(default_factory=list)


class LatestProposal(Proposal):
    """Proposal tagged with its DAO and block-derived dates."""
    dao: DaoInfo
    start_date: str
    end_date: str


class ProposalSummary(Proposal):
    """Proposal with vote tallies and approval status."""
    dao: DaoInfo
    start_date: str
    end_date: str
    votes_for: int
    votes_against: int
    approved: bool


class Delegate(SubgraphModel):
    """Delegate vote-weight fields as returned by the subgraph."""
    id: str
    delegated_votes_raw: str
    delegated_votes: str
    token_holders_represented_amount: int = 0


class DelegateProfile(SubgraphModel):
    """Delegate joined with its ENS name and DAO."""
    id: str
    ens_name: Optional[str] = None
    delegated_votes: str
    daos: List[DaoInfo]


class VotedProposal(SubgraphModel):
    id: str
    description: Optional[str] = None
    start_block: int
    end_block: int
    status: Optional[str] = None


class DelegateVote(SubgraphModel):
    """A vote cast by a delegate, with the proposal it was cast on."""
    id: str
    support: bool
    votes: str
    proposal: VotedProposal


class VotingHistoryEntry(SubgraphModel):
    proposal_description: Optional[str] = None
    protocol: str
    how_they_voted: VoteDirection
    number_of_votes_cast: str
    proposal_id: str
    start_date: str
    end_date: str
    status: Optional[str] = None
    url: str


class SubmittedProposal(SubgraphModel):
    proposal_id: str
    description: Optional[str] = None
    start_date: str
    end_date: str
    status: Optional[str] = None
    url: str
    votes_for: int
    votes_against: int
    approved: bool


class TopDelegate(DelegateProfile):
    """Delegate profile with its voting history and submitted proposals."""
    voting_history: List[VotingHistoryEntry] = Field(default_factory=list)
    submitted_proposals: List[SubmittedProposal] = Field(default_factory=list)

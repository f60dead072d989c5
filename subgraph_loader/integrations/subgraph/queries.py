"""GraphQL documents for the governance subgraph.

Each builder returns ``(query, variables)``. Caller-supplied values are only
ever passed as variables.
"""
from typing import Any, Dict, Tuple

DEFAULT_LIMIT = 10

GraphQLRequest = Tuple[str, Dict[str, Any]]

LATEST_PROPOSALS_QUERY = """
query LatestProposals($limit: Int!) {
  proposals(first: $limit, orderBy: startBlock, orderDirection: desc) {
    id
    description
    startBlock
    endBlock
    status
    proposer {
      id
    }
    votes {
      id
      support
      votes
    }
  }
}
"""

DELEGATE_QUERY = """
query Delegate($id: ID!) {
  delegate(id: $id) {
    id
    delegatedVotesRaw
    delegatedVotes
    tokenHoldersRepresentedAmount
  }
}
"""

TOP_DELEGATES_QUERY = """
query TopDelegates($limit: Int!) {
  delegates(first: $limit, orderBy: delegatedVotes, orderDirection: desc) {
    id
    delegatedVotesRaw
    delegatedVotes
    tokenHoldersRepresentedAmount
  }
}
"""

SUBMITTED_PROPOSALS_QUERY = """
query SubmittedProposals($proposer: String!, $limit: Int!) {
  proposals(where: {proposer: $proposer}, first: $limit) {
    id
    description
    startBlock
    endBlock
    status
    proposer {
      id
    }
    votes {
      id
      support
      votes
    }
  }
}
"""

VOTED_PROPOSALS_QUERY = """
query VotedProposals($voter: String!, $limit: Int!) {
  votes(first: $limit, where: {voter: $voter}) {
    id
    support
    votes
    proposal {
      id
      startBlock
      endBlock
      status
      description
    }
  }
}
"""


def _check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")
    return limit


def latest_proposals_query(limit: int = DEFAULT_LIMIT) -> GraphQLRequest:
    return LATEST_PROPOSALS_QUERY, {"limit": _check_limit(limit)}


def delegate_query(delegate_id: str) -> GraphQLRequest:
    return DELEGATE_QUERY, {"id": delegate_id}


def top_delegates_query(limit: int = DEFAULT_LIMIT) -> GraphQLRequest:
    return TOP_DELEGATES_QUERY, {"limit": _check_limit(limit)}


def submitted_proposals_query(address: str, limit: int = DEFAULT_LIMIT) -> GraphQLRequest:
    """Proposals submitted by ``address``."""
    return SUBMITTED_PROPOSALS_QUERY, {"proposer": address, "limit": _check_limit(limit)}


def voted_proposals_query(address: str, limit: int = DEFAULT_LIMIT) -> GraphQLRequest:
    """Votes cast by ``address``, each with the proposal it was cast on."""
    return VOTED_PROPOSALS_QUERY, {"voter": address, "limit": _check_limit(limit)}

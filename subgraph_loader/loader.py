"""Fetch proposals and delegates from a governance subgraph and reshape them.

Every operation returns a ``FetchResult``. Failures are logged through the
loader's logger and reported in the result; nothing is raised to the caller.
"""
import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union

import aiohttp
from pydantic import ValidationError

from subgraph_loader.common.config import settings
from subgraph_loader.common.models import (
    DaoInfo,
    Delegate,
    DelegateProfile,
    DelegateVote,
    LatestProposal,
    Proposal,
    ProposalSummary,
    SubgraphModel,
    TopDelegate,
)
from subgraph_loader.common.result import ErrorKind, FetchResult, SubgraphError
from subgraph_loader.integrations.subgraph import queries, reshape

M = TypeVar("M", bound=SubgraphModel)
T = TypeVar("T")
R = TypeVar("R")

FetchGraphQL = Callable[[str, str, Optional[Dict[str, Any]]], Awaitable[Dict]]
GetENSName = Callable[[str], Awaitable[Optional[str]]]
LatestProposalsFunc = Callable[[], Awaitable[Union[FetchResult[List[Proposal]], List[Union[Proposal, Dict]]]]]

TOP_DELEGATES_LIMIT = 10


class SubgraphLoader:
    """Loads governance data from a subgraph.

    Args:
        fetch_graphql: coroutine ``(endpoint_url, query, variables) -> dict``
            returning the parsed GraphQL response.
        get_ens_name: coroutine ``(address) -> Optional[str]``.
        max_concurrency: upper bound on per-item requests in flight for one
            operation. Defaults to ``settings.MAX_CONCURRENCY``.
        logger: where failures are reported. Defaults to this module's logger.
    """

    def __init__(
        self,
        fetch_graphql: FetchGraphQL,
        get_ens_name: GetENSName,
        max_concurrency: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.fetch_graphql = fetch_graphql
        self.get_ens_name = get_ens_name
        self.max_concurrency = settings.MAX_CONCURRENCY if max_concurrency is None else max_concurrency
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.logger = logger or logging.getLogger(__name__)

    async def _query(self, subgraph_url: str, request: queries.GraphQLRequest, label: str) -> FetchResult[Dict]:
        """Run one query and return its ``data`` object."""
        query, variables = request
        try:
            response = await self.fetch_graphql(subgraph_url, query, variables)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Request failed for {label}: {e!r}")
            return FetchResult.failure(SubgraphError(ErrorKind.TRANSPORT, f"{label}: {e!r}"))
        except ValueError as e:
            # body was not valid JSON
            self.logger.error(f"Invalid response for {label}: {e!r}")
            return FetchResult.failure(SubgraphError(ErrorKind.MALFORMED, f"{label}: invalid JSON: {e}"))

        if not isinstance(response, dict):
            self.logger.error(f"Response for {label} is not a JSON object: {response!r:.200}")
            return FetchResult.failure(
                SubgraphError(ErrorKind.MALFORMED, f"{label}: response is not a JSON object")
            )

        if response.get("errors"):
            self.logger.error(f"GraphQL errors for {label}: {response['errors']}")
            errors = response["errors"]
            return FetchResult.failure(
                SubgraphError(ErrorKind.GRAPHQL, f"{label}: GraphQL errors",
                              list(errors) if isinstance(errors, list) else [errors])
            )

        data = response.get("data")
        if not isinstance(data, dict):
            self.logger.error(f"Response for {label} has no data")
            return FetchResult.failure(SubgraphError(ErrorKind.MALFORMED, f"{label}: response has no data"))
        return FetchResult.success(data)

    def _parse_items(self, items: Optional[Iterable[Dict]], model: Type[M], label: str) -> List[M]:
        """Parse a list of entities, skipping (and logging) malformed ones."""
        parsed = []
        for item in items or []:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as e:
                self.logger.error(f"Error processing {label} data: {e}")
                continue
        return parsed

    async def _resolve_ens(self, address: str) -> Optional[str]:
        try:
            return await self.get_ens_name(address)
        except Exception as e:
            self.logger.error(f"ENS lookup failed for {address}: {e!r}")
            return None

    async def _gather_bounded(self, func: Callable[[T], Awaitable[R]], items: Iterable[T]) -> List[R]:
        """Run ``func`` over ``items`` concurrently, at most ``max_concurrency`` at a time.

        Results keep the order of ``items``.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(item: T) -> R:
            async with semaphore:
                return await func(item)

        return list(await asyncio.gather(*(run(item) for item in items)))

    async def get_delegate_by_id(
        self,
        subgraph_url: str,
        delegate_id: str,
        dao_info: DaoInfo
    ) -> FetchResult[DelegateProfile]:
        """Fetch one delegate and resolve its ENS name."""
        label = f"delegate {delegate_id}"
        result = await self._query(subgraph_url, queries.delegate_query(delegate_id), label)
        if not result.ok:
            return FetchResult.failure(result.error)

        raw = result.value.get("delegate")
        if raw is None:
            self.logger.warning(f"Delegate {delegate_id} not found")
            return FetchResult.failure(SubgraphError(ErrorKind.NOT_FOUND, f"{label}: not found"))

        try:
            delegate = Delegate.model_validate(raw)
        except ValidationError as e:
            self.logger.error(f"Error processing {label} data: {e}")
            return FetchResult.failure(SubgraphError(ErrorKind.MALFORMED, f"{label}: {e}"))

        ens_name = await self._resolve_ens(delegate.id)
        return FetchResult.success(reshape.to_delegate_profile(delegate, ens_name, dao_info))

    async def get_latest_proposals(
        self,
        subgraph_url: str,
        dao_info: DaoInfo,
        limit: int = queries.DEFAULT_LIMIT
    ) -> FetchResult[List[LatestProposal]]:
        """Fetch up to ``limit`` proposals, newest ``startBlock`` first."""
        result = await self._query(subgraph_url, queries.latest_proposals_query(limit), "latest proposals")
        if not result.ok:
            return FetchResult.failure(result.error)

        proposals = self._parse_items(result.value.get("proposals"), Proposal, "proposal")[:limit]
        self.logger.info(f"Found {len(proposals)} proposals for {dao_info.name}")
        return FetchResult.success([reshape.to_latest_proposal(p, dao_info) for p in proposals])

    async def get_proposals(
        self,
        subgraph_url: str,
        dao_info: DaoInfo,
        latest_proposals_func: Optional[LatestProposalsFunc] = None
    ) -> FetchResult[List[ProposalSummary]]:
        """Summarize the proposals produced by ``latest_proposals_func``.

        Each proposal gets vote tallies, its approval status and the DAO of its
        proposer's delegate record. ``latest_proposals_func`` defaults to
        ``get_latest_proposals`` for the same subgraph and DAO. It may return a
        ``FetchResult`` or a bare list; list items are ``Proposal`` records or
        raw subgraph proposal dicts.
        """
        if latest_proposals_func is None:
            latest_proposals_func = functools.partial(self.get_latest_proposals, subgraph_url, dao_info)

        latest = await latest_proposals_func()
        if isinstance(latest, FetchResult):
            if not latest.ok:
                return FetchResult.failure(latest.error)
            latest = latest.value

        proposals = []
        for item in latest or []:
            if isinstance(item, Proposal):
                proposals.append(item)
            else:
                proposals.extend(self._parse_items([item], Proposal, "proposal"))

        async def summarize(proposal: Proposal) -> ProposalSummary:
            delegate = await self.get_delegate_by_id(subgraph_url, proposal.proposer.id, dao_info)
            if delegate.ok:
                dao = delegate.value.daos[0]
            else:
                self.logger.warning(
                    f"No delegate record for proposer {proposal.proposer.id} of proposal {proposal.id} "
                    f"({delegate.error}); using {dao_info.name}"
                )
                dao = dao_info
            return reshape.to_proposal_summary(proposal, dao)

        summaries = await self._gather_bounded(summarize, proposals)
        return FetchResult.success(summaries)

    async def _load_top_delegate(
        self,
        subgraph_url: str,
        dao_info: DaoInfo,
        delegate: Delegate
    ) -> FetchResult[TopDelegate]:
        submitted, voted = await asyncio.gather(
            self._query(
                subgraph_url,
                queries.submitted_proposals_query(delegate.id),
                f"proposals submitted by {delegate.id}"
            ),
            self._query(
                subgraph_url,
                queries.voted_proposals_query(delegate.id),
                f"votes cast by {delegate.id}"
            ),
        )
        if not voted.ok:
            return FetchResult.failure(voted.error)
        if not submitted.ok:
            return FetchResult.failure(submitted.error)

        votes = self._parse_items(voted.value.get("votes"), DelegateVote, "vote")
        proposals = self._parse_items(submitted.value.get("proposals"), Proposal, "proposal")
        ens_name = await self._resolve_ens(delegate.id)

        profile = reshape.to_delegate_profile(delegate, ens_name, dao_info)
        return FetchResult.success(TopDelegate(
            **profile.model_dump(),
            voting_history=[reshape.to_voting_history_entry(v, dao_info) for v in votes],
            submitted_proposals=[reshape.to_submitted_proposal(p, dao_info) for p in proposals],
        ))

    async def get_top_delegates(self, subgraph_url: str, dao_info: DaoInfo) -> FetchResult[List[TopDelegate]]:
        """Fetch the top delegates by voting power with their voting history
        and submitted proposals.

        Any failed request fails the whole operation.
        """
        result = await self._query(
            subgraph_url, queries.top_delegates_query(TOP_DELEGATES_LIMIT), "top delegates"
        )
        if not result.ok:
            return FetchResult.failure(result.error)

        delegates = self._parse_items(result.value.get("delegates"), Delegate, "delegate")[:TOP_DELEGATES_LIMIT]
        loaded = await self._gather_bounded(
            functools.partial(self._load_top_delegate, subgraph_url, dao_info), delegates
        )

        failed = next((r for r in loaded if not r.ok), None)
        if failed is not None:
            self.logger.error(f"Discarding top delegates for {dao_info.name}: {failed.error}")
            return FetchResult.failure(failed.error)

        self.logger.info(f"Loaded {len(loaded)} top delegates for {dao_info.name}")
        return FetchResult.success([r.value for r in loaded])

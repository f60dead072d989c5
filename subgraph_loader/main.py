import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from subgraph_loader.common.config import settings
from subgraph_loader.common.models import DaoInfo
from subgraph_loader.integrations.ens.client import ENSResolver
from subgraph_loader.integrations.subgraph.client import SubgraphClient
from subgraph_loader.loader import SubgraphLoader

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Governance subgraph loader")
    parser.add_argument("--subgraph-url", default=settings.SUBGRAPH_URL,
                        help="Governance subgraph endpoint (default: $SUBGRAPH_URL)")
    parser.add_argument("--dao-name", default=settings.DAO_NAME,
                        help="DAO name (default: $DAO_NAME)")
    parser.add_argument("--dao-url", default=settings.DAO_URL,
                        help="DAO site URL used for proposal links (default: $DAO_URL)")
    parser.add_argument("--max-concurrency", type=int, default=settings.MAX_CONCURRENCY)

    subparsers = parser.add_subparsers(dest="command", required=True)
    latest = subparsers.add_parser("latest", help="Latest proposals")
    latest.add_argument("--limit", type=int, default=settings.LATEST_PROPOSALS_LIMIT)
    subparsers.add_parser("proposals", help="Latest proposals with vote tallies")
    delegate = subparsers.add_parser("delegate", help="A delegate by address")
    delegate.add_argument("delegate_id")
    subparsers.add_parser("top-delegates", help="Top delegates with voting history")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the selected command and print its result as JSON."""
    dao_info = DaoInfo(name=args.dao_name, url=args.dao_url)

    async with SubgraphClient() as client:
        resolver = ENSResolver(client.fetch_graphql)
        loader = SubgraphLoader(client.fetch_graphql, resolver.get_name, max_concurrency=args.max_concurrency)

        if args.command == "latest":
            result = await loader.get_latest_proposals(args.subgraph_url, dao_info, limit=args.limit)
        elif args.command == "proposals":
            result = await loader.get_proposals(args.subgraph_url, dao_info)
        elif args.command == "delegate":
            result = await loader.get_delegate_by_id(args.subgraph_url, args.delegate_id, dao_info)
        else:
            result = await loader.get_top_delegates(args.subgraph_url, dao_info)

    if not result.ok:
        logger.error(f"{args.command} failed: {result.error}")
        return 1

    value = result.value
    if isinstance(value, list):
        payload = [item.model_dump(mode="json", by_alias=True) for item in value]
    else:
        payload = value.model_dump(mode="json", by_alias=True)
    print(json.dumps(payload, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = build_parser().parse_args(argv)

    if not args.subgraph_url:
        logger.error("Missing subgraph URL: pass --subgraph-url or set SUBGRAPH_URL")
        return 2
    if not args.dao_name or not args.dao_url:
        logger.error("Missing DAO descriptor: pass --dao-name/--dao-url or set DAO_NAME and DAO_URL")
        return 2

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from subgraph_loader.common.config import settings

logger = logging.getLogger(__name__)

FetchGraphQL = Callable[[str, str, Optional[Dict[str, Any]]], Awaitable[Dict]]

# Reverse record of an address: the domain <hex address>.addr.reverse
REVERSE_RECORD_QUERY = """
query EnsReverseRecord($reverseName: String!) {
  domains(first: 1, where: {name: $reverseName}) {
    id
    resolver {
      id
    }
  }
}
"""

# Primary name set on the reverse record's resolver (latest setName wins)
PRIMARY_NAME_QUERY = """
query EnsPrimaryName($resolver: String!) {
  nameChangeds(first: 1, where: {resolver: $resolver}, orderBy: blockNumber, orderDirection: desc) {
    name
  }
}
"""

FORWARD_RECORD_QUERY = """
query EnsForwardRecord($name: String!) {
  domains(first: 1, where: {name: $name}) {
    name
    resolvedAddress {
      id
    }
  }
}
"""


def reverse_name(address: str) -> str:
    address = address.lower()
    if address.startswith("0x"):
        address = address[2:]
    return f"{address}.addr.reverse"


class ENSResolver:
    """Resolves addresses to their primary ENS names through the ENS subgraph.

    A primary name is the name on the address's reverse record, and it only
    counts when the name resolves back to the same address.
    """

    def __init__(self, fetch_graphql: FetchGraphQL, ens_subgraph_url: Optional[str] = None):
        self.fetch_graphql = fetch_graphql
        self.ens_subgraph_url = settings.ens_subgraph_endpoint if ens_subgraph_url is None else ens_subgraph_url

    async def _query(self, query: str, variables: Dict[str, Any], address: str) -> Optional[Dict]:
        """Return the ``data`` object of an ENS subgraph query, or None on any failure."""
        try:
            response = await self.fetch_graphql(self.ens_subgraph_url, query, variables)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error resolving ENS name for {address}: {str(e)}")
            return None

        if not isinstance(response, dict):
            logger.error(f"Invalid ENS subgraph response for {address}: {response!r:.200}")
            return None
        if "errors" in response:
            logger.error(f"GraphQL errors resolving ENS name for {address}: {response['errors']}")
            return None

        data = response.get("data")
        return data if isinstance(data, dict) else None

    async def get_name(self, address: str) -> Optional[str]:
        """Return the verified primary ENS name for ``address``, or None.

        Lookup failures are logged and treated as "no name".
        """
        if not self.ens_subgraph_url:
            logger.debug("No ENS subgraph configured, skipping ENS lookup")
            return None

        # ENS subgraph account ids are lowercase hex
        address = address.lower()

        data = await self._query(REVERSE_RECORD_QUERY, {"reverseName": reverse_name(address)}, address)
        domains = (data or {}).get("domains") or []
        resolver = domains[0].get("resolver") if domains else None
        if not resolver or not resolver.get("id"):
            logger.debug(f"No reverse record for {address}")
            return None

        data = await self._query(PRIMARY_NAME_QUERY, {"resolver": resolver["id"]}, address)
        changes = (data or {}).get("nameChangeds") or []
        name = changes[0].get("name") if changes else None
        if not name:
            logger.debug(f"No primary name for {address}")
            return None

        data = await self._query(FORWARD_RECORD_QUERY, {"name": name}, address)
        domains = (data or {}).get("domains") or []
        resolved = (domains[0].get("resolvedAddress") or {}).get("id") if domains else None
        if not resolved or resolved.lower() != address:
            logger.warning(f"ENS name {name} claimed by {address} resolves to {resolved}, ignoring")
            return None
        return name

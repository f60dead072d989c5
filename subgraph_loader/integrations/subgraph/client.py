import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from subgraph_loader.common.config import settings

logger = logging.getLogger(__name__)


class SubgraphClient:
    """Client for posting GraphQL queries to subgraph endpoints."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.REQUEST_TIMEOUT if timeout is None else timeout
        self.headers = {
            "Content-Type": "application/json",
        }
        self.session = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def fetch_graphql(
        self,
        endpoint_url: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None
    ) -> Dict:
        """POST a query to ``endpoint_url`` and return the parsed JSON body.

        The body holds ``data`` or ``errors``; GraphQL errors are returned, not
        raised. HTTP errors, connection errors, timeouts and bodies that are not
        valid JSON (``ValueError``) are logged and raised.
        """
        if self.session is None:
            raise RuntimeError("SubgraphClient must be used as an async context manager")
        try:
            async with asyncio.timeout(self.timeout):
                async with self.session.post(
                    endpoint_url,
                    json={"query": query, "variables": variables or {}},
                    headers=self.headers
                ) as response:
                    response.raise_for_status()
                    return await response.json()
        except asyncio.TimeoutError:
            logger.error(f"Timeout querying subgraph {endpoint_url}")
            raise
        except aiohttp.ClientError as e:
            logger.error(f"Error querying subgraph {endpoint_url}: {str(e)}")
            raise
        except ValueError as e:
            logger.error(f"Invalid JSON from subgraph {endpoint_url}: {str(e)}")
            raise

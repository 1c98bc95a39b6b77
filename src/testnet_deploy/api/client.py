"""Node status checks for deployed testnets"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import httpx

from testnet_deploy.testnet.inventory import Node

logger = logging.getLogger(__name__)


@dataclass
class NodeHealth:
    name: str
    url: str
    healthy: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class NodeStatusClient:
    """Check the status endpoint of each testnet node"""

    def __init__(
        self,
        port: int = 8080,
        path: str = "/api/v2/status",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.port = port
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout = timeout
        self.transport = transport

    def url(self, node: Node) -> str:
        return f"http://{node.socket(self.port)}{self.path}"

    def check(self, node: Node, client: Optional[httpx.Client] = None) -> NodeHealth:
        """Check a single node"""
        if client is None:
            with self._client() as client:
                return self.check(node, client)

        url = self.url(node)
        try:
            response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Status check of %s failed: %s", url, e)
            return NodeHealth(node.name, url, False, error=str(e) or type(e).__name__)

        healthy = response.status_code == 200
        error = None if healthy else f"HTTP {response.status_code}"
        return NodeHealth(node.name, url, healthy, response.status_code, error)

    def check_all(self, nodes: Iterable[Node]) -> List[NodeHealth]:
        """Check every node, collecting failures instead of raising"""
        with self._client() as client:
            return [self.check(node, client) for node in nodes]

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

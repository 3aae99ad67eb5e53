import logging
from typing import Callable, Optional

from ..core.client.chain_client import BoundContract, ChainClient
from ..core.reporter import Reporter
from ..utils.config_manager import NetworkConfiguration, PTokenConfig
from ..utils.exceptions import ConfigurationError

LOG = logging.getLogger(__name__)

ClientFactory = Callable[..., ChainClient]


class CommandContext:
    """
    Resolved handles shared by every command of one invocation.

    The chain client is created on first use so commands that never touch
    the chain run without a network configured.
    """

    def __init__(
        self,
        config: PTokenConfig,
        reporter: Reporter,
        network: Optional[str] = None,
        gas_price: Optional[int] = None,
        client_factory: ClientFactory = ChainClient.from_rpc_url
    ):
        self.config = config
        self.reporter = reporter
        self.network_name = network
        self.gas_price = gas_price
        self._client_factory = client_factory
        self._client: Optional[ChainClient] = None

    @property
    def network(self) -> NetworkConfiguration:
        return self.config.network(self.network_name)

    @property
    def client(self) -> ChainClient:
        if self._client is None:
            network = self.network
            tx_config = self.config.transactions
            LOG.info(f"Connecting to {network.name} at {network.rpc_url}")
            self._client = self._client_factory(
                network.rpc_url,
                self.config.private_key,
                gas_limit_padding=tx_config.gas_limit_padding,
                receipt_timeout=tx_config.receipt_timeout,
                poll_latency=tx_config.poll_latency
            )
        return self._client

    def contract(self, address: str) -> BoundContract:
        return self.client.contract(address)

    async def check_chain_id(self) -> int:
        """Fail when the node's chain id differs from the configured one"""
        chain_id = await self.client.get_chain_id()
        expected = self.network.chain_id
        if expected is not None and chain_id != expected:
            raise ConfigurationError(
                f"Network '{self.network.name}' expects chain id {expected}, node reports {chain_id}",
                field=f"networks.{self.network.name}.chain_id"
            )
        return chain_id

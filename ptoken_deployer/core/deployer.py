"""
Contract deployment for the pToken logic contract and its proxy

Design Notes:
- Init code is the artifact bytecode followed by the ABI-encoded constructor
  arguments, built locally so the bytes match what a block explorer expects
- Fees are resolved the same way as for contract calls
- A deployment only counts once code exists at the new address
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .client.chain_client import ChainClient
from .dispatcher import resolve_fee_options
from .init_args import encode_proxy_constructor_args, get_encoded_init_args, DEFAULT_ORIGIN_CHAIN_ID
from ..utils.artifacts import ContractData
from ..utils.common import strip_hex_prefix
from ..utils.exceptions import RevertedError, SubmissionError

LOG = logging.getLogger(__name__)


@dataclass
class DeploymentResult:
    """Result of contract deployment"""
    contract_name: str
    contract_address: str
    transaction_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    constructor_args: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractName": self.contract_name,
            "contractAddress": self.contract_address,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
            "constructorArgs": self.constructor_args,
        }


class ContractDeployer:
    """Deploys contracts from compiled artifacts with one signer"""

    def __init__(self, client: ChainClient):
        self.client = client

    async def deploy(
        self,
        contract_data: ContractData,
        constructor_args: str = "",
        gas_price: Optional[int] = None
    ) -> DeploymentResult:
        """
        Deploy a contract from ContractData.

        Args:
            contract_data: Contract bytecode and ABI
            constructor_args: ABI-encoded constructor arguments, prefix optional
            gas_price: Legacy gas price override in wei

        Returns:
            DeploymentResult with deployment details

        Raises:
            RevertedError: The creation transaction reverted
            SubmissionError: Broadcast failed or no code landed at the address
        """
        args_hex = strip_hex_prefix(constructor_args or "")
        init_code = contract_data.bytecode + args_hex
        options = await resolve_fee_options(self.client, gas_price)

        LOG.info(f"Deploying {contract_data.contract_name} from {self.client.address}...")
        result = await self.client.tx_builder.build_and_send_tx(to=None, data=init_code, options=options)
        receipt = result.tx_receipt

        if not receipt.success:
            raise RevertedError(
                f"Deployment of {contract_data.contract_name} reverted in transaction {receipt.tx_hash}",
                tx_hash=receipt.tx_hash
            )
        if not receipt.contract_address:
            raise SubmissionError(
                f"No contract address in receipt of {receipt.tx_hash}",
                tx_hash=receipt.tx_hash
            )

        code = await self.client.get_code(receipt.contract_address)
        if not strip_hex_prefix(code):
            raise SubmissionError(
                f"No code at {receipt.contract_address} after deployment",
                tx_hash=receipt.tx_hash,
                to_address=receipt.contract_address
            )

        LOG.info(f"{contract_data.contract_name} deployed at {receipt.contract_address}")
        return DeploymentResult(
            contract_name=contract_data.contract_name,
            contract_address=receipt.contract_address,
            transaction_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            constructor_args=args_hex,
        )

    async def deploy_proxy(
        self,
        proxy_data: ContractData,
        logic_address: str,
        proxy_admin_address: str,
        token_name: str,
        token_symbol: str,
        admin_address: str,
        origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID,
        gas_price: Optional[int] = None
    ) -> DeploymentResult:
        """Deploy a proxy whose constructor initializes the pToken behind it"""
        init_call_data = get_encoded_init_args(token_name, token_symbol, admin_address, origin_chain_id)
        constructor_args = encode_proxy_constructor_args(logic_address, proxy_admin_address, init_call_data)
        return await self.deploy(proxy_data, constructor_args, gas_price)

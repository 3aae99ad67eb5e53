import logging
from pathlib import Path
from typing import Optional

from .context import CommandContext
from ..core.abi_encoder import Address
from ..core.reporter import SUCCESS_MARK
from ..utils.exceptions import ConfigurationError
from ..utils.explorer_verifier import ExplorerVerifier, VerificationRequest
from ..utils.flattener import Flattener, flatten_to_file

LOG = logging.getLogger(__name__)


async def flatten_contract(ctx: CommandContext) -> Path:
    """Write the flattened pToken source for manual verification"""
    contracts = ctx.config.contracts
    ctx.reporter.info(f"{SUCCESS_MARK} Flattening {contracts.source}...")
    output = flatten_to_file(contracts.source, contracts.sources_dirs, contracts.flattened_output)
    ctx.reporter.info(f"{SUCCESS_MARK} Flattened contract written to {output}")
    return output


async def verify_ptoken(
    ctx: CommandContext,
    deployed_address: str,
    network_name: str,
    constructor_args: Optional[str] = None
) -> bool:
    """Verify a deployed pToken's source on the network's block explorer"""
    address = Address(deployed_address).value
    network = ctx.config.network(network_name)
    if not network.explorer_api_url or not network.explorer_api_key:
        raise ConfigurationError(
            f"Network '{network.name}' needs explorer_api_url and an explorer API key (ETHERSCAN_API_KEY)",
            field=f"networks.{network.name}.explorer_api_url"
        )

    contracts = ctx.config.contracts
    compiler = ctx.config.compiler
    request = VerificationRequest(
        contract_address=address,
        source_code=Flattener(contracts.sources_dirs).flatten(contracts.source),
        contract_name=contracts.contract_name,
        compiler_version=compiler.version,
        optimizer_enabled=compiler.optimizer_enabled,
        optimizer_runs=compiler.optimizer_runs,
        constructor_args=constructor_args or "",
        evm_version=compiler.evm_version,
        license_type=compiler.license_type,
    )

    ctx.reporter.info(f"{SUCCESS_MARK} Verifying {contracts.contract_name} at {address} on {network.name}...")
    verification = ctx.config.verification
    async with ExplorerVerifier(
        network.explorer_api_url,
        network.explorer_api_key,
        poll_interval=verification.poll_interval,
        max_attempts=verification.max_attempts
    ) as verifier:
        await verifier.verify(request)

    ctx.reporter.info(f"{SUCCESS_MARK} Contract verified!")
    return True

import logging

from .context import CommandContext
from ..core.deployer import ContractDeployer, DeploymentResult
from ..core.init_args import DEFAULT_ORIGIN_CHAIN_ID
from ..core.reporter import SUCCESS_MARK
from ..utils.artifacts import load_artifact

LOG = logging.getLogger(__name__)


async def deploy_ptoken(ctx: CommandContext) -> DeploymentResult:
    """Deploy the pToken logic contract from its compiled artifact"""
    contract_data = load_artifact(ctx.config.contracts.artifact)
    if not contract_data.has_function("initialize"):
        LOG.warning(f"{contract_data.contract_name} has no initialize function, is this the logic contract?")

    await ctx.check_chain_id()
    ctx.reporter.info(f"{SUCCESS_MARK} Deploying {contract_data.contract_name} logic contract...")
    result = await ContractDeployer(ctx.client).deploy(contract_data, gas_price=ctx.gas_price)
    ctx.reporter.info(f"{SUCCESS_MARK} pToken logic contract deployed!", result)
    return result


async def deploy_ptoken_proxy(
    ctx: CommandContext,
    logic_address: str,
    proxy_admin_address: str,
    token_name: str,
    token_symbol: str,
    admin_address: str,
    origin_chain_id: str = DEFAULT_ORIGIN_CHAIN_ID
) -> DeploymentResult:
    """Deploy an initialized proxy in front of an existing logic contract"""
    proxy_data = load_artifact(ctx.config.contracts.proxy_artifact)

    await ctx.check_chain_id()
    ctx.reporter.info(f"{SUCCESS_MARK} Deploying {token_symbol} proxy for logic contract {logic_address}...")
    result = await ContractDeployer(ctx.client).deploy_proxy(
        proxy_data,
        logic_address,
        proxy_admin_address,
        token_name,
        token_symbol,
        admin_address,
        origin_chain_id,
        gas_price=ctx.gas_price
    )
    ctx.reporter.info(f"{SUCCESS_MARK} pToken proxy deployed!", result)
    return result

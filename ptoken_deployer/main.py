#!/usr/bin/env python3
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import __version__
from .commands.context import CommandContext
from .commands.deploy import deploy_ptoken, deploy_ptoken_proxy
from .commands.encode import get_encoded_init_args, get_encoded_proxy_constructor_args
from .commands.info import get_balance_of, show_existing_contracts, show_suggested_fees
from .commands.peg_out import DEFAULT_DESTINATION_CHAIN_ID, peg_out
from .commands.roles import grant_minter_role, mint, revoke_minter_role
from .commands.verify import flatten_contract, verify_ptoken
from .core.init_args import DEFAULT_ORIGIN_CHAIN_ID
from .core.reporter import ConsoleReporter, Reporter
from .utils.common import hex_to_int
from .utils.config_manager import load_config
from .utils.exceptions import PTokenError
from .utils.logging import setup_logging

LOG = logging.getLogger(__name__)


def _gas_price(value: str) -> int:
    try:
        gas_price = hex_to_int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid gas price: {value!r}")
    if gas_price <= 0:
        raise argparse.ArgumentTypeError("gas price must be positive")
    return gas_price


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ptoken-deployer",
        description="A tool to aid with deployments of the upgradeable pToken ERC777 logic contract."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None,
                       help="Path to configuration file (default: ptoken.yaml)")
    parser.add_argument("--network", default=None,
                       help="Network to use, must exist in the configuration")
    parser.add_argument("--gas-price", type=_gas_price, default=None,
                       help="Legacy gas price in wei, skips the network fee suggestion")
    parser.add_argument("--log-level", default="WARNING",
                       choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                       help="Logging level")
    parser.add_argument("--log-file", default=None,
                       help="Path to log file")

    commands = parser.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    cmd = commands.add_parser("deployPToken", help="Deploy the pToken logic contract.")
    cmd.set_defaults(handler=lambda ctx, a: deploy_ptoken(ctx))

    cmd = commands.add_parser("deployPTokenProxy", help="Deploy an initialized proxy for a pToken logic contract.")
    cmd.add_argument("logicAddress")
    cmd.add_argument("proxyAdminAddress")
    cmd.add_argument("tokenName")
    cmd.add_argument("tokenSymbol")
    cmd.add_argument("adminAddress")
    cmd.add_argument("--originChainId", default=DEFAULT_ORIGIN_CHAIN_ID)
    cmd.set_defaults(handler=lambda ctx, a: deploy_ptoken_proxy(
        ctx, a.logicAddress, a.proxyAdminAddress, a.tokenName, a.tokenSymbol, a.adminAddress, a.originChainId
    ))

    cmd = commands.add_parser("verifyPToken", help="Verify a deployed pToken logic contract.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("network")
    cmd.add_argument("--constructorArgs", default=None,
                     help="ABI-encoded constructor arguments, for proxies")
    cmd.set_defaults(handler=lambda ctx, a: verify_ptoken(ctx, a.deployedAddress, a.network, a.constructorArgs))

    cmd = commands.add_parser("getEncodedInitArgs",
                              help="Calculate the initializer function arguments in ABI encoded format.")
    cmd.add_argument("tokenName")
    cmd.add_argument("tokenSymbol")
    cmd.add_argument("adminAddress")
    cmd.add_argument("--originChainId", default=DEFAULT_ORIGIN_CHAIN_ID)
    cmd.set_defaults(handler=lambda ctx, a: get_encoded_init_args(
        ctx, a.tokenName, a.tokenSymbol, a.adminAddress, a.originChainId
    ))

    cmd = commands.add_parser("getEncodedProxyConstructorArgs",
                              help="Calculate the proxy constructor arguments, without 0x prefix.")
    cmd.add_argument("tokenName")
    cmd.add_argument("tokenSymbol")
    cmd.add_argument("logicAddress")
    cmd.add_argument("adminAddress")
    cmd.add_argument("proxyAdminAddress")
    cmd.add_argument("--originChainId", default=DEFAULT_ORIGIN_CHAIN_ID)
    cmd.set_defaults(handler=lambda ctx, a: get_encoded_proxy_constructor_args(
        ctx, a.tokenName, a.tokenSymbol, a.logicAddress, a.adminAddress, a.proxyAdminAddress, a.originChainId
    ))

    cmd = commands.add_parser("showSuggestedFees", help="Show the network's suggested fees.")
    cmd.set_defaults(handler=lambda ctx, a: show_suggested_fees(ctx))

    cmd = commands.add_parser("flattenContract",
                              help="Flatten the pToken contract in case manual verification is required.")
    cmd.set_defaults(handler=lambda ctx, a: flatten_contract(ctx))

    cmd = commands.add_parser("showExistingContracts",
                              help="Show list of existing pToken logic contract addresses on various blockchains.")
    cmd.set_defaults(handler=lambda ctx, a: show_existing_contracts(ctx))

    cmd = commands.add_parser("grantMinterRole", help="Grant a minter role to <ethAddress>.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("ethAddress")
    cmd.set_defaults(handler=lambda ctx, a: grant_minter_role(ctx, a.deployedAddress, a.ethAddress))

    cmd = commands.add_parser("revokeMinterRole", help="Revoke the minter role of <ethAddress>.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("ethAddress")
    cmd.set_defaults(handler=lambda ctx, a: revoke_minter_role(ctx, a.deployedAddress, a.ethAddress))

    cmd = commands.add_parser("mint", help="Mint <amount> pTokens to <recipient>.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("recipient")
    cmd.add_argument("amount")
    cmd.set_defaults(handler=lambda ctx, a: mint(ctx, a.deployedAddress, a.recipient, a.amount))

    cmd = commands.add_parser("getBalanceOf", help="Get pToken balance of <ethAddress>.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("ethAddress")
    cmd.set_defaults(handler=lambda ctx, a: get_balance_of(ctx, a.deployedAddress, a.ethAddress))

    cmd = commands.add_parser("pegOut", help="Redeem <amount> pTokens to <recipient> with optional user data.")
    cmd.add_argument("deployedAddress")
    cmd.add_argument("amount", help="An amount in the most granular form of the token")
    cmd.add_argument("recipient", help="The recipient of the pegged out pTokens")
    cmd.add_argument("--userData", default="0x", help="Optional user data in hex format (default: 0x)")
    cmd.add_argument("--destinationChainId", default=DEFAULT_DESTINATION_CHAIN_ID)
    cmd.set_defaults(handler=lambda ctx, a: peg_out(
        ctx, a.deployedAddress, a.amount, a.recipient, a.userData, a.destinationChainId
    ))

    return parser


async def main(argv: Optional[List[str]] = None, reporter: Optional[Reporter] = None) -> int:
    """Main execution flow"""
    args = build_parser().parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, args.log_file)
    reporter = reporter or ConsoleReporter()

    try:
        config = load_config(args.config)
        ctx = CommandContext(config, reporter, network=args.network, gas_price=args.gas_price)
        await args.handler(ctx, args)
    except PTokenError as e:
        LOG.debug(f"{args.command} failed", exc_info=True)
        reporter.error(e.message)
        return 1
    except Exception as e:
        LOG.debug(f"{args.command} failed unexpectedly", exc_info=True)
        reporter.error(str(e))
        return 1

    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

"""
Configuration manager with JSON schema validation

This module loads the deployer's YAML configuration, validates it with
jsonschema and applies environment variable overrides.

Design Notes:
- A single YAML file (ptoken.yaml by default) holds networks, artifact paths,
  compiler settings and transaction tuning
- .env files are loaded with python-dotenv before the environment is read
- Secrets (private key, explorer API key) are expected in the environment
- Clear error messages for validation failures
- Only this module and the CLI read the environment
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError, ErrorCodes

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "ptoken.yaml"
DEFAULT_NETWORK_NAME = "default"

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "default_network": {"type": "string"},
        "networks": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "rpc_url": {"type": "string"},
                    "chain_id": {"type": "integer", "minimum": 1},
                    "explorer_api_url": {"type": "string"},
                    "explorer_api_key": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
        "contracts": {
            "type": "object",
            "properties": {
                "artifact": {"type": "string"},
                "proxy_artifact": {"type": "string"},
                "source": {"type": "string"},
                "contract_name": {"type": "string"},
                "sources_dirs": {"type": "array", "items": {"type": "string"}},
                "flattened_output": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "compiler": {
            "type": "object",
            "properties": {
                "version": {"type": "string"},
                "optimizer_enabled": {"type": "boolean"},
                "optimizer_runs": {"type": "integer", "minimum": 0},
                "evm_version": {"type": "string"},
                "license_type": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
        "transactions": {
            "type": "object",
            "properties": {
                "gas_limit_padding": {"type": "number", "minimum": 1},
                "receipt_timeout": {"type": ["number", "null"], "exclusiveMinimum": 0},
                "poll_latency": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "verification": {
            "type": "object",
            "properties": {
                "poll_interval": {"type": "number", "minimum": 0},
                "max_attempts": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": False,
        },
        "existing_contracts": {
            "type": "object",
            "additionalProperties": {"type": "string", "pattern": "^0x[0-9a-fA-F]{40}$"},
        },
    },
    "additionalProperties": False,
}


@dataclass
class NetworkConfiguration:
    """Connection settings of one named network"""
    name: str
    rpc_url: str
    chain_id: Optional[int] = None
    explorer_api_url: Optional[str] = None
    explorer_api_key: Optional[str] = None


@dataclass
class ContractsConfiguration:
    """Locations of the compiled artifacts and Solidity sources"""
    artifact: str = "artifacts/contracts/pToken.sol/PToken.json"
    proxy_artifact: str = "artifacts/contracts/TransparentUpgradeableProxy.sol/TransparentUpgradeableProxy.json"
    source: str = "contracts/pToken.sol"
    contract_name: str = "PToken"
    sources_dirs: List[str] = field(default_factory=lambda: ["contracts", "node_modules"])
    flattened_output: str = "flattened.sol"


@dataclass
class CompilerConfiguration:
    """Compiler settings reported to the block explorer"""
    version: str = "v0.6.2+commit.bacdbe57"
    optimizer_enabled: bool = True
    optimizer_runs: int = 200
    evm_version: str = "default"
    license_type: int = 3  # MIT


@dataclass
class TransactionConfiguration:
    gas_limit_padding: float = 1.2
    receipt_timeout: Optional[float] = None
    poll_latency: float = 1.0


@dataclass
class VerificationConfiguration:
    poll_interval: float = 5.0
    max_attempts: int = 20


@dataclass
class PTokenConfig:
    """Resolved configuration for one CLI invocation"""
    networks: Dict[str, NetworkConfiguration] = field(default_factory=dict)
    default_network: Optional[str] = None
    contracts: ContractsConfiguration = field(default_factory=ContractsConfiguration)
    compiler: CompilerConfiguration = field(default_factory=CompilerConfiguration)
    transactions: TransactionConfiguration = field(default_factory=TransactionConfiguration)
    verification: VerificationConfiguration = field(default_factory=VerificationConfiguration)
    existing_contracts: Dict[str, str] = field(default_factory=dict)
    private_key: Optional[str] = None
    config_file: Optional[str] = None

    def network(self, name: Optional[str] = None) -> NetworkConfiguration:
        """
        Look up a network by name, falling back to the default network.

        Raises:
            ConfigurationError: No such network, or no network selected at all
        """
        name = name or self.default_network
        if name is None:
            if len(self.networks) == 1:
                return next(iter(self.networks.values()))
            raise ConfigurationError(
                "No network selected, pass --network or set default_network",
                config_file=self.config_file,
                field="default_network"
            )
        if name not in self.networks:
            known = ", ".join(sorted(self.networks)) or "none"
            raise ConfigurationError(
                f"Unknown network '{name}' (configured: {known})",
                config_file=self.config_file,
                field=f"networks.{name}"
            )
        return self.networks[name]


class ConfigManager:
    """
    Loads, validates and resolves the deployer configuration.

    Resolution order, later wins: built-in defaults, YAML file, environment.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Explicit configuration file, must exist when given
            environ: Environment mapping (default: os.environ)
            load_env_file: Whether to load ./.env into os.environ first
        """
        if load_env_file:
            load_dotenv(Path.cwd() / ".env", override=False)
        self.environ = os.environ if environ is None else environ
        self.explicit = config_file is not None or "PTOKEN_CONFIG" in self.environ
        self.config_file = Path(config_file or self.environ.get("PTOKEN_CONFIG") or DEFAULT_CONFIG_FILE)

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            if self.explicit:
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_file}",
                    config_file=str(self.config_file),
                    code=ErrorCodes.CONFIG_NOT_FOUND
                )
            LOG.debug(f"No {self.config_file} found, using defaults and environment")
            return {}

        try:
            with open(self.config_file, 'r') as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file {self.config_file}: {e}",
                config_file=str(self.config_file),
                cause=e
            )
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file {self.config_file}: {e}",
                config_file=str(self.config_file),
                code=ErrorCodes.CONFIG_NOT_FOUND,
                cause=e
            )

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Configuration file {self.config_file} must contain a mapping",
                config_file=str(self.config_file)
            )
        LOG.info(f"Loaded configuration from {self.config_file}")
        return raw

    def validate(self, raw: Dict[str, Any]) -> None:
        """
        Validate a raw configuration mapping against CONFIG_SCHEMA.

        Raises:
            ConfigurationError: Listing every violation found
        """
        validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
        errors = []
        for error in sorted(validator.iter_errors(raw), key=lambda e: list(e.path)):
            if error.path:
                path = ".".join(str(p) for p in error.path)
                errors.append(f"'{path}' {error.message}")
            else:
                errors.append(error.message)

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                config_file=str(self.config_file),
                details={"errors": errors}
            )

    def _env(self, *keys: str) -> Optional[str]:
        for key in keys:
            value = self.environ.get(key)
            if value:
                return value
        return None

    def _build_networks(self, raw: Dict[str, Any]) -> Dict[str, NetworkConfiguration]:
        networks = {}
        for name, settings in (raw.get("networks") or {}).items():
            if "rpc_url" not in settings:
                raise ConfigurationError(
                    f"Network '{name}' has no rpc_url",
                    config_file=str(self.config_file),
                    field=f"networks.{name}.rpc_url"
                )
            networks[name] = NetworkConfiguration(name=name, **settings)
        return networks

    def _apply_env_overrides(self, config: PTokenConfig) -> PTokenConfig:
        """Apply environment variable overrides to configuration"""
        network_name = self._env("PTOKEN_NETWORK")
        if network_name:
            config.default_network = network_name

        rpc_url = self._env("PTOKEN_RPC_URL", "ENDPOINT")
        if rpc_url:
            target = config.default_network or DEFAULT_NETWORK_NAME
            if target in config.networks:
                config.networks[target].rpc_url = rpc_url
            else:
                config.networks[target] = NetworkConfiguration(name=target, rpc_url=rpc_url)
            config.default_network = target

        api_key = self._env("ETHERSCAN_API_KEY")
        if api_key:
            for network in config.networks.values():
                network.explorer_api_key = network.explorer_api_key or api_key

        config.private_key = self._env("PTOKEN_PRIVATE_KEY", "PRIVATE_KEY")
        return config

    def load(self) -> PTokenConfig:
        """
        Load and validate the configuration.

        Returns:
            Resolved configuration

        Raises:
            ConfigurationError: If the file is missing (when explicit) or invalid
        """
        raw = self._read_file()
        self.validate(raw)

        try:
            config = PTokenConfig(
                networks=self._build_networks(raw),
                default_network=raw.get("default_network"),
                contracts=ContractsConfiguration(**(raw.get("contracts") or {})),
                compiler=CompilerConfiguration(**(raw.get("compiler") or {})),
                transactions=TransactionConfiguration(**(raw.get("transactions") or {})),
                verification=VerificationConfiguration(**(raw.get("verification") or {})),
                existing_contracts=dict(raw.get("existing_contracts") or {}),
                config_file=str(self.config_file) if raw else None,
            )
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                config_file=str(self.config_file),
                cause=e
            )

        return self._apply_env_overrides(config)


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    load_env_file: bool = True
) -> PTokenConfig:
    """Convenience wrapper around ConfigManager(...).load()"""
    return ConfigManager(config_file, environ=environ, load_env_file=load_env_file).load()

"""
Compiled contract artifact loading

Reads the JSON artifacts produced by the Solidity toolchain (hardhat layout:
contractName, abi, bytecode, deployedBytecode).
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .common import add_hex_prefix, is_hex_string, strip_hex_prefix
from .exceptions import ArtifactError

LOG = logging.getLogger(__name__)


@dataclass
class ContractData:
    """Contract bytecode and ABI data"""
    contract_name: str
    bytecode: str
    abi: List[Dict[str, Any]]
    deployed_bytecode: Optional[str] = None

    def has_function(self, name: str) -> bool:
        return any(item.get("type") == "function" and item.get("name") == name for item in self.abi)


def load_artifact(path: Union[str, Path]) -> ContractData:
    """
    Load contract data from an artifact file.

    Raises:
        ArtifactError: File missing, not JSON, or without abi/bytecode
    """
    artifact_file = Path(path)
    if not artifact_file.exists():
        raise ArtifactError(
            f"Contract artifact not found: {artifact_file} (compile the contracts first)",
            artifact_path=str(artifact_file)
        )

    try:
        with open(artifact_file, 'r') as f:
            artifact = json.load(f)
    except json.JSONDecodeError as e:
        raise ArtifactError(
            f"Invalid JSON in contract artifact {artifact_file}: {e}",
            artifact_path=str(artifact_file),
            cause=e
        )

    for key in ("abi", "bytecode"):
        if key not in artifact:
            raise ArtifactError(
                f"Missing '{key}' in contract artifact {artifact_file}",
                artifact_path=str(artifact_file)
            )

    bytecode = artifact["bytecode"]
    if isinstance(bytecode, dict):
        # solc standard JSON output nests the code under "object"
        bytecode = bytecode.get("object", "")
    if not is_hex_string(bytecode) or not strip_hex_prefix(bytecode):
        raise ArtifactError(
            f"Contract artifact {artifact_file} has no deployable bytecode",
            artifact_path=str(artifact_file)
        )

    contract_data = ContractData(
        contract_name=artifact.get("contractName", artifact_file.stem),
        bytecode=add_hex_prefix(bytecode),
        abi=artifact["abi"],
        deployed_bytecode=artifact.get("deployedBytecode"),
    )
    LOG.info(f"Loaded contract data for {contract_data.contract_name}")
    return contract_data

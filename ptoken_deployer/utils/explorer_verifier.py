"""
Block explorer source verification

Submits flattened source to an Etherscan-compatible API and polls until the
explorer reports a verdict.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .common import strip_hex_prefix
from .exceptions import VerificationError

LOG = logging.getLogger(__name__)

PENDING_MARKERS = ("pending in queue", "in progress")
ALREADY_VERIFIED_MARKER = "already verified"
PASS_MARKER = "pass - verified"


@dataclass
class VerificationRequest:
    """Everything the explorer needs to reproduce the deployed bytecode"""
    contract_address: str
    source_code: str
    contract_name: str
    compiler_version: str
    optimizer_enabled: bool = True
    optimizer_runs: int = 200
    constructor_args: str = ""
    evm_version: str = "default"
    license_type: int = 3

    def to_form(self, api_key: str) -> Dict[str, str]:
        return {
            "apikey": api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": self.contract_address,
            "sourceCode": self.source_code,
            "codeformat": "solidity-single-file",
            "contractname": self.contract_name,
            "compilerversion": self.compiler_version,
            "optimizationUsed": "1" if self.optimizer_enabled else "0",
            "runs": str(self.optimizer_runs),
            # Etherscan's own spelling
            "constructorArguements": strip_hex_prefix(self.constructor_args),
            "evmversion": "" if self.evm_version == "default" else self.evm_version,
            "licenseType": str(self.license_type),
        }


class ExplorerVerifier:
    """Etherscan-compatible verification client"""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        poll_interval: float = 5.0,
        max_attempts: int = 20,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize verifier

        Args:
            api_url: Explorer API endpoint, e.g. https://api.etherscan.io/api
            api_key: Explorer API key
            poll_interval: Seconds between status checks
            max_attempts: Status checks before giving up
            timeout: Request timeout (seconds)
            session: Pre-built session, owned by the caller
        """
        self.api_url = api_url
        self.api_key = api_key
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session and self.session:
            await self.session.close()
            self.session = None

    async def _request(self, method: str, **kwargs) -> Dict[str, Any]:
        if not self.session:
            raise RuntimeError("Verifier not initialized. Use 'async with' statement.")
        try:
            async with self.session.request(method, self.api_url, **kwargs) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise VerificationError(f"Explorer API returned {resp.status}: {text}")
                return await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise VerificationError(f"Explorer API request failed: {e}", cause=e)

    async def submit(self, request: VerificationRequest) -> Optional[str]:
        """
        Submit source for verification.

        Returns:
            GUID to poll, or None when the contract is already verified
        """
        LOG.info(f"Submitting {request.contract_name}@{request.contract_address} for verification...")
        data = await self._request("POST", data=request.to_form(self.api_key))
        result = str(data.get("result", ""))

        if str(data.get("status")) == "1":
            LOG.info(f"Verification submitted, guid {result}")
            return result
        if ALREADY_VERIFIED_MARKER in result.lower():
            LOG.info(f"{request.contract_address} is already verified")
            return None
        raise VerificationError(
            f"Explorer rejected verification request: {result or data.get('message')}",
            details={"response": data}
        )

    async def check_status(self, guid: str) -> bool:
        """True once verified, False while pending"""
        data = await self._request(
            "GET",
            params={"apikey": self.api_key, "module": "contract", "action": "checkverifystatus", "guid": guid}
        )
        result = str(data.get("result", ""))
        lowered = result.lower()

        if str(data.get("status")) == "1" or PASS_MARKER in lowered or ALREADY_VERIFIED_MARKER in lowered:
            return True
        if any(marker in lowered for marker in PENDING_MARKERS):
            return False
        raise VerificationError(f"Verification failed: {result}", details={"guid": guid, "response": data})

    async def verify(self, request: VerificationRequest) -> bool:
        """
        Submit and wait for a verdict.

        Raises:
            VerificationError: Rejected, failed, or still pending after max_attempts
        """
        guid = await self.submit(request)
        if guid is None:
            return True

        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            if await self.check_status(guid):
                LOG.info(f"{request.contract_address} verified after {attempt} status checks")
                return True
            LOG.debug(f"Verification pending ({attempt}/{self.max_attempts})")

        raise VerificationError(
            f"Verification still pending after {self.max_attempts} status checks",
            details={"guid": guid}
        )

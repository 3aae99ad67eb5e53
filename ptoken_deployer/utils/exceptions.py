"""
Exception hierarchy for the pToken deployer.

Every error raised by the tool derives from PTokenError so the CLI boundary
can catch one type and print a single failure line.
"""

from typing import Any, Dict, Optional


class ErrorCodes:
    """Numeric codes attached to PTokenError subclasses"""
    VALIDATION_FAILED = 1001
    ENCODING_FAILED = 1002
    INSUFFICIENT_BALANCE = 1003
    SUBMISSION_FAILED = 2001
    TRANSACTION_REVERTED = 2002
    RECEIPT_TIMEOUT = 2003
    CONFIG_NOT_FOUND = 3001
    CONFIG_VALIDATION_FAILED = 3002
    ARTIFACT_INVALID = 3003
    VERIFICATION_FAILED = 4001
    FLATTEN_FAILED = 4002


class PTokenError(Exception):
    """Base exception class for the pToken deployer"""

    default_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.code = code if code is not None else self.default_code
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.code is not None:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(PTokenError):
    """Malformed user input, caught before any network call"""
    default_code = ErrorCodes.VALIDATION_FAILED


class EncodingError(PTokenError):
    """Signature or argument mismatch while ABI packing"""
    default_code = ErrorCodes.ENCODING_FAILED

    def __init__(self, message: str, signature: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if signature:
            self.details["signature"] = signature


class InsufficientBalanceError(PTokenError):
    """Token balance is lower than the requested amount"""
    default_code = ErrorCodes.INSUFFICIENT_BALANCE

    def __init__(self, message: str, balance: int = None, amount: int = None, **kwargs):
        super().__init__(message, **kwargs)
        self.balance = balance
        self.amount = amount
        self.details.update({"balance": balance, "amount": amount})


class SubmissionError(PTokenError):
    """Transaction could not be broadcast or confirmed"""
    default_code = ErrorCodes.SUBMISSION_FAILED

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        from_address: Optional[str] = None,
        to_address: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.tx_hash = tx_hash
        for key, value in (("tx_hash", tx_hash), ("from_address", from_address), ("to_address", to_address)):
            if value is not None:
                self.details[key] = value


class RevertedError(PTokenError):
    """Transaction execution reverted on chain"""
    default_code = ErrorCodes.TRANSACTION_REVERTED

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.reason = reason
        self.tx_hash = tx_hash
        if reason is not None:
            self.details["reason"] = reason
        if tx_hash is not None:
            self.details["tx_hash"] = tx_hash


class ConfigurationError(PTokenError):
    """Configuration file missing or invalid"""
    default_code = ErrorCodes.CONFIG_VALIDATION_FAILED

    def __init__(self, message: str, config_file: Optional[str] = None, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if config_file:
            self.details["config_file"] = config_file
        if field:
            self.details["field"] = field


class ArtifactError(PTokenError):
    """Compiled contract artifact missing or malformed"""
    default_code = ErrorCodes.ARTIFACT_INVALID

    def __init__(self, message: str, artifact_path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if artifact_path:
            self.details["artifact_path"] = artifact_path


class VerificationError(PTokenError):
    """Block explorer rejected or never confirmed a verification request"""
    default_code = ErrorCodes.VERIFICATION_FAILED


class FlattenError(PTokenError):
    """Solidity sources could not be flattened"""
    default_code = ErrorCodes.FLATTEN_FAILED

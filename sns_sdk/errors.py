"""
Exception classes for the SNS SDK.

All exceptions inherit from SnsError and carry a stable code, a message and
optional details. Signature checks never raise; they return False.
"""

from typing import Optional


class SnsError(Exception):
    """Base exception for all SNS SDK errors."""

    code = "SNS_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# ---------------- derivation ----------------
class SeedTooLongError(SnsError):
    code = "SEED_TOO_LONG"


class NoValidAddressFoundError(SnsError):
    code = "NO_VALID_ADDRESS_FOUND"


class MalformedDomainError(SnsError):
    code = "MALFORMED_DOMAIN"


# ---------------- record content ----------------
class InvalidRecordContentError(SnsError):
    """Raised when content does not match the grammar of its record type."""

    code = "INVALID_RECORD_CONTENT"


class InvalidRecordInputError(InvalidRecordContentError):
    code = "INVALID_RECORD_INPUT"


class InvalidEvmAddressError(InvalidRecordContentError):
    code = "INVALID_EVM_ADDRESS"


class InvalidInjectiveAddressError(InvalidRecordContentError):
    code = "INVALID_INJECTIVE_ADDRESS"


class InvalidARecordError(InvalidRecordContentError):
    code = "INVALID_A_RECORD"


class InvalidAAAARecordError(InvalidRecordContentError):
    code = "INVALID_AAAA_RECORD"


class UnsupportedRecordError(SnsError):
    code = "UNSUPPORTED_RECORD"


class InvalidSignatureError(SnsError):
    """Raised when a signature is required to serialize a record and fails to verify."""

    code = "INVALID_SIGNATURE"


# ---------------- stored data ----------------
class InvalidRecordDataError(SnsError):
    """Raised when stored bytes match neither the fixed size nor a legacy encoding."""

    code = "INVALID_RECORD_DATA"


class RecordMalformedError(SnsError):
    code = "RECORD_MALFORMED"


class InvalidValidationError(SnsError):
    code = "INVALID_VALIDATION"


class InvalidRoAError(SnsError):
    code = "INVALID_ROA"


class AccountDataError(SnsError):
    """Raised when account bytes are too short for their layout."""

    code = "ACCOUNT_DATA"


# ---------------- missing data ----------------
class AccountDoesNotExistError(SnsError):
    code = "ACCOUNT_DOES_NOT_EXIST"


class DomainDoesNotExistError(SnsError):
    code = "DOMAIN_DOES_NOT_EXIST"


class NoRecordDataError(SnsError):
    code = "NO_RECORD_DATA"


# ---------------- resolution ----------------
class PdaOwnerNotAllowedError(SnsError):
    code = "PDA_OWNER_NOT_ALLOWED"


class CouldNotFindNftOwnerError(SnsError):
    """Raised when a domain is tokenized but no wallet holds its NFT."""

    code = "COULD_NOT_FIND_NFT_OWNER"


class MissingVerifierError(SnsError):
    code = "MISSING_VERIFIER"


class InvalidDomainError(SnsError):
    """Raised when a domain name breaks the registration grammar."""

    code = "INVALID_DOMAIN"

    def __init__(self, domain: str, reason: str) -> None:
        self.domain = domain
        self.reason = reason
        super().__init__(
            f'Domain "{domain}" is invalid: {reason}',
            {"domain": domain, "reason": reason},
        )


# ---------------- environment ----------------
class RpcError(SnsError):
    """Raised when the RPC transport fails."""

    code = "RPC_ERROR"


class ConfigurationError(SnsError):
    code = "CONFIGURATION_ERROR"

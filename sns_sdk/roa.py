"""
Right of Association checks.

Signature checks answer True/False and never raise: an invalid proof is an
expected outcome for callers to branch on.
"""

from enum import Enum
from typing import Optional, Union

from solders.pubkey import Pubkey
from solders.signature import Signature
from web3 import Web3

from sns_sdk.constants import GUARDIAN, ROA_MESSAGE_PREFIX
from sns_sdk.records import ETH_ROA_RECORDS, GUARDIAN_RECORDS, SELF_SIGNED_RECORDS, Record
from sns_sdk.secp256k1 import recover_public_key
from sns_sdk.states import RecordState, Validation


class RecordStatus(Enum):
    """Verification outcome of a v2 record."""

    UNVERIFIED = "unverified"
    VALID = "valid"
    INVALID = "invalid"
    STALE = "stale"


# ---------------- Ed25519 ----------------
def check_sol_record(message: bytes, signature: bytes, signer: Union[Pubkey, bytes]) -> bool:
    signature = bytes(signature)
    if len(signature) != 64:
        return False
    if not isinstance(signer, Pubkey):
        signer = bytes(signer)
        if len(signer) != 32:
            return False
        signer = Pubkey.from_bytes(signer)
    return Signature.from_bytes(signature).verify(signer, bytes(message))


verify_sol_record_signature = check_sol_record


# ---------------- secp256k1 ----------------
def get_roa_message(domain: str, record: Union[Record, str]) -> str:
    return f"{ROA_MESSAGE_PREFIX}{record}.{domain}"


def verify_ethereum_roa(
    domain: str,
    record: Union[Record, str],
    signature: bytes,
    expected_pubkey: bytes,
) -> bool:
    """
    Check that ``signature`` (r | s | v, v in {27, 28}) over
    ``keccak256("SNS ROA: {record}.{domain}")`` was made by the key
    ``expected_pubkey`` (64 bytes, uncompressed without the 0x04 prefix).
    """
    signature = bytes(signature)
    if len(signature) != 65 or len(expected_pubkey) != 64:
        return False
    v = signature[64]
    if v not in (27, 28):
        return False

    msg_hash = bytes(Web3.keccak(text=get_roa_message(domain, record)))
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    recovered = recover_public_key(msg_hash, r, s, v - 27)
    return recovered is not None and recovered == bytes(expected_pubkey)


# ---------------- record v2 ----------------
def verify_staleness(domain_owner: Pubkey, state: RecordState) -> bool:
    """True when the record was validated by the current domain owner."""
    return (
        state.header.staleness_validation is Validation.SOLANA
        and state.get_staleness_id() == bytes(domain_owner)
    )


def verify_roa(record: Record, state: RecordState, verifier: bytes) -> bool:
    expected = Validation.ETHEREUM if record in ETH_ROA_RECORDS else Validation.SOLANA
    return state.header.roa_validation is expected and state.get_roa_id() == bytes(verifier)


def get_default_verifier(record: Record, state: RecordState) -> Optional[bytes]:
    if record in SELF_SIGNED_RECORDS:
        return state.get_content()
    if record in GUARDIAN_RECORDS:
        return bytes(GUARDIAN)
    return None


def get_record_status(
    record: Record,
    state: RecordState,
    domain_owner: Pubkey,
    verifier: Optional[bytes] = None,
) -> RecordStatus:
    if not verify_staleness(domain_owner, state):
        return RecordStatus.STALE
    if verifier is None:
        verifier = get_default_verifier(record, state)
    if verifier is None:
        return RecordStatus.UNVERIFIED
    if verify_roa(record, state, verifier):
        return RecordStatus.VALID
    return RecordStatus.INVALID

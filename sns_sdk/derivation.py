"""
Name hashing and program-derived address derivation.

Every account of the name service lives at a PDA of the name program whose
seeds are ``[sha256(prefix + name), class or zeros, parent or zeros]``.
Domains, subdomains and records differ only in the prefix byte of the name and
in which parent/class keys they are derived under.
"""

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from solders.pubkey import Pubkey

from sns_sdk.constants import (
    CENTRAL_STATE_SNS_RECORDS,
    FAVOURITE_DOMAIN_SEED,
    HASH_PREFIX,
    MAX_SEED_LEN,
    MAX_SEEDS,
    NAME_OFFERS_ID,
    NAME_PROGRAM_ID,
    NAME_TOKENIZER_ID,
    NFT_RECORD_SEED,
    PDA_MARKER,
    REVERSE_LOOKUP_CLASS,
    ROOT_DOMAIN_ACCOUNT,
    SOL_SUFFIX,
    TOKENIZED_MINT_SEED,
)
from sns_sdk.errors import MalformedDomainError, NoValidAddressFoundError, SeedTooLongError
from sns_sdk.records import Record, RecordVersion


@dataclass(frozen=True)
class DomainKeyResult:
    pubkey: Pubkey
    hashed: bytes
    is_sub: bool
    parent: Optional[Pubkey] = None
    is_sub_record: bool = False


def hash_name(name: str) -> bytes:
    return hashlib.sha256((HASH_PREFIX + name).encode("utf-8")).digest()


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """
    Find the PDA for ``seeds`` under ``program_id``.

    Bumps are tried from 255 down to 0 and the first hash that is not a valid
    ed25519 point wins, so the result always carries the highest passing bump.
    """
    # the bump counts as a seed
    if len(seeds) + 1 > MAX_SEEDS:
        raise SeedTooLongError(
            f"At most {MAX_SEEDS - 1} seeds are allowed, got {len(seeds)}",
            {"seeds": len(seeds)},
        )
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise SeedTooLongError(
                f"Seed of {len(seed)} bytes exceeds {MAX_SEED_LEN} bytes",
                {"length": len(seed)},
            )

    prefix = b"".join(bytes(seed) for seed in seeds)
    suffix = bytes(program_id) + PDA_MARKER
    for bump in range(255, -1, -1):
        candidate = Pubkey.from_bytes(hashlib.sha256(prefix + bytes([bump]) + suffix).digest())
        if not candidate.is_on_curve():
            return candidate, bump

    raise NoValidAddressFoundError(
        f"No off-curve address found for program {program_id}",
        {"program_id": str(program_id)},
    )


def derive_address(
    hashed: bytes,
    parent: Optional[Pubkey] = None,
    class_address: Optional[Pubkey] = None,
) -> Pubkey:
    # Seed order is (hash, class, parent)
    seeds = [
        hashed,
        bytes(class_address) if class_address else bytes(32),
        bytes(parent) if parent else bytes(32),
    ]
    key, _ = find_program_address(seeds, NAME_PROGRAM_ID)
    return key


def derive(
    name: str,
    parent: Optional[Pubkey] = ROOT_DOMAIN_ACCOUNT,
    class_address: Optional[Pubkey] = None,
) -> Tuple[Pubkey, bytes]:
    hashed = hash_name(name)
    return derive_address(hashed, parent, class_address), hashed


def _as_version(record: Union[RecordVersion, int, None]) -> Optional[RecordVersion]:
    if record is None:
        return None
    return RecordVersion(record)


def get_domain_key(domain: str, record: Union[RecordVersion, int, None] = None) -> DomainKeyResult:
    """
    Derive the account key of a domain, subdomain or record.

    ``domain`` may carry a trailing ``.sol``. ``record`` marks the first label
    as a record name of that version:

    * ``bonfida``             -> domain under the .sol TLD
    * ``dex.bonfida``         -> subdomain (prefix ``\\x00``) or record (``\\x01``/``\\x02``)
    * ``SOL.dex.bonfida``     -> record of a subdomain, only with ``record`` set
    """
    version = _as_version(record)
    if domain.endswith(SOL_SUFFIX):
        domain = domain[: -len(SOL_SUFFIX)]

    record_class = CENTRAL_STATE_SNS_RECORDS if version is RecordVersion.V2 else None
    labels = domain.split(".")

    if len(labels) == 1:
        pubkey, hashed = derive(domain)
        return DomainKeyResult(pubkey=pubkey, hashed=hashed, is_sub=False)

    if len(labels) == 2:
        parent_key, _ = derive(labels[1])
        prefix = chr(version.value if version else 0)
        pubkey, hashed = derive(prefix + labels[0], parent_key, record_class)
        return DomainKeyResult(pubkey=pubkey, hashed=hashed, is_sub=True, parent=parent_key)

    if len(labels) == 3 and version is not None:
        parent_key, _ = derive(labels[2])
        sub_key, _ = derive("\x00" + labels[1], parent_key)
        pubkey, hashed = derive(chr(version.value) + labels[0], sub_key, record_class)
        return DomainKeyResult(
            pubkey=pubkey, hashed=hashed, is_sub=True, parent=sub_key, is_sub_record=True
        )

    raise MalformedDomainError(
        f"The domain is malformed: {domain}",
        {"domain": domain, "labels": len(labels), "record_version": version and version.value},
    )


resolve_domain_key = get_domain_key


def get_domain_keys(
    domains: Iterable[str],
    record: Union[RecordVersion, int, None] = None,
    max_workers: Optional[int] = None,
) -> List[DomainKeyResult]:
    """Derive many keys at once; results keep the order of ``domains``."""
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda domain: get_domain_key(domain, record), domains))


# ---------------- records ----------------
def get_record_v1_key(domain: str, record: Record) -> Pubkey:
    return get_domain_key(f"{record.value}.{domain}", RecordVersion.V1).pubkey


def get_record_v2_key(domain: str, record: Record) -> Pubkey:
    domain_key = get_domain_key(domain).pubkey
    hashed = hash_name("\x02" + record.value)
    return derive_address(hashed, domain_key, CENTRAL_STATE_SNS_RECORDS)


# ---------------- reverse lookups ----------------
def get_reverse_key_from_domain_key(domain_key: Pubkey, parent: Optional[Pubkey] = None) -> Pubkey:
    hashed = hash_name(str(domain_key))
    return derive_address(hashed, parent, REVERSE_LOOKUP_CLASS)


def get_reverse_key(domain: str, is_sub: bool = False) -> Pubkey:
    result = get_domain_key(domain)
    return get_reverse_key_from_domain_key(result.pubkey, result.parent if is_sub else None)


# ---------------- tokenized domains and favourites ----------------
def get_nft_record_key(domain_key: Pubkey) -> Pubkey:
    """Tokenizer account tracking whether ``domain_key`` is wrapped in an NFT."""
    return find_program_address([NFT_RECORD_SEED, bytes(domain_key)], NAME_TOKENIZER_ID)[0]


def get_domain_mint(domain_key: Pubkey) -> Pubkey:
    return find_program_address([TOKENIZED_MINT_SEED, bytes(domain_key)], NAME_TOKENIZER_ID)[0]


def get_primary_domain_key(wallet: Pubkey) -> Pubkey:
    return find_program_address([FAVOURITE_DOMAIN_SEED, bytes(wallet)], NAME_OFFERS_ID)[0]

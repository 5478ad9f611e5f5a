"""
Read-only views over name service account bytes.

Layouts::

    registry  parent(32) | owner(32) | class(32) | data
    record v2 registry header | staleness val u16 | roa val u16 | len u32 |
              staleness id | roa id | content
    reverse   registry header | len u32 | utf-8 name
    nft record  tag u8 | nonce u8 | name account(32) | owner(32) | mint(32)
    favourite   tag u8 | name account(32)
    token       mint(32) | owner(32) | amount u64 | ...
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from construct import Bytes, ConstructError, GreedyBytes, Int8ul, Int16ul, Int32ul, Int64ul, PascalString, Struct
from solders.pubkey import Pubkey

from sns_sdk.constants import RECORD_HEADER_LEN, REGISTRY_HEADER_LEN
from sns_sdk.errors import AccountDataError, InvalidValidationError

REGISTRY_LAYOUT = Struct(
    "parent_name" / Bytes(32),
    "owner" / Bytes(32),
    "class_address" / Bytes(32),
    "data" / GreedyBytes,
)

RECORD_HEADER_LAYOUT = Struct(
    "staleness_validation" / Int16ul,
    "roa_validation" / Int16ul,
    "content_length" / Int32ul,
)

REVERSE_LAYOUT = PascalString(Int32ul, "utf8")

NFT_RECORD_LAYOUT = Struct(
    "tag" / Int8ul,
    "nonce" / Int8ul,
    "name_account" / Bytes(32),
    "owner" / Bytes(32),
    "nft_mint" / Bytes(32),
)

PRIMARY_DOMAIN_LAYOUT = Struct(
    "tag" / Int8ul,
    "name_account" / Bytes(32),
)

TOKEN_ACCOUNT_LAYOUT = Struct(
    "mint" / Bytes(32),
    "owner" / Bytes(32),
    "amount" / Int64ul,
)


class Validation(IntEnum):
    """How the staleness or RoA id of a v2 record was validated."""

    NONE = 0
    SOLANA = 1
    ETHEREUM = 2
    UNVERIFIED_SOLANA = 3

    @property
    def length(self) -> int:
        return _VALIDATION_LENGTHS[self]


_VALIDATION_LENGTHS = {
    Validation.NONE: 0,
    Validation.SOLANA: 32,
    Validation.ETHEREUM: 20,
    Validation.UNVERIFIED_SOLANA: 32,
}


def _validation(value: int) -> Validation:
    try:
        return Validation(value)
    except ValueError:
        raise InvalidValidationError(f"Unknown validation type {value}", {"value": value}) from None


@dataclass(frozen=True)
class RegistryState:
    parent_name: Pubkey
    owner: Pubkey
    class_address: Pubkey
    data: bytes

    HEADER_LEN = REGISTRY_HEADER_LEN

    @classmethod
    def deserialize(cls, data: bytes) -> "RegistryState":
        try:
            parsed = REGISTRY_LAYOUT.parse(bytes(data))
        except ConstructError as exc:
            raise AccountDataError(
                f"Registry account needs {REGISTRY_HEADER_LEN} bytes, got {len(data)}",
                {"length": len(data)},
            ) from exc
        return cls(
            parent_name=Pubkey.from_bytes(parsed.parent_name),
            owner=Pubkey.from_bytes(parsed.owner),
            class_address=Pubkey.from_bytes(parsed.class_address),
            data=parsed.data,
        )


@dataclass(frozen=True)
class RecordHeader:
    staleness_validation: Validation
    roa_validation: Validation
    content_length: int

    LEN = RECORD_HEADER_LEN

    @classmethod
    def deserialize(cls, data: bytes) -> "RecordHeader":
        try:
            parsed = RECORD_HEADER_LAYOUT.parse(bytes(data))
        except ConstructError as exc:
            raise AccountDataError(
                f"Record header needs {RECORD_HEADER_LEN} bytes, got {len(data)}",
                {"length": len(data)},
            ) from exc
        return cls(
            staleness_validation=_validation(parsed.staleness_validation),
            roa_validation=_validation(parsed.roa_validation),
            content_length=parsed.content_length,
        )


@dataclass(frozen=True)
class RecordState:
    header: RecordHeader
    data: bytes

    @classmethod
    def deserialize(cls, data: bytes) -> "RecordState":
        """Parse a full record v2 account, registry header included."""
        offset = REGISTRY_HEADER_LEN
        header = RecordHeader.deserialize(data[offset:offset + RECORD_HEADER_LEN])
        return cls(header=header, data=bytes(data[offset + RECORD_HEADER_LEN:]))

    def get_staleness_id(self) -> bytes:
        return self.data[: self.header.staleness_validation.length]

    def get_roa_id(self) -> bytes:
        start = self.header.staleness_validation.length
        return self.data[start:start + self.header.roa_validation.length]

    def get_content(self) -> bytes:
        start = self.header.staleness_validation.length + self.header.roa_validation.length
        return self.data[start:start + self.header.content_length]


def deserialize_reverse(data: Optional[Union[bytes, bytearray]], trim_first_nul: bool = False) -> Optional[str]:
    """Decode the name stored in a reverse lookup account's data region."""
    if not data:
        return None
    try:
        name = REVERSE_LAYOUT.parse(bytes(data))
    except (ConstructError, UnicodeDecodeError) as exc:
        raise AccountDataError("Reverse lookup data is malformed", {"length": len(data)}) from exc
    if trim_first_nul and name.startswith("\x00"):
        return name[1:]
    return name


def _parse(layout: Struct, data: bytes, what: str):
    try:
        return layout.parse(bytes(data))
    except ConstructError as exc:
        raise AccountDataError(
            f"{what} account needs {layout.sizeof()} bytes, got {len(data)}",
            {"length": len(data)},
        ) from exc


class NftRecordTag(IntEnum):
    UNINITIALIZED = 0
    CENTRAL_STATE = 1
    ACTIVE_RECORD = 2
    INACTIVE_RECORD = 3


@dataclass(frozen=True)
class NftRecord:
    """Tokenizer state of a domain. Only an active record means the NFT is live."""

    tag: int
    nonce: int
    name_account: Pubkey
    owner: Pubkey
    nft_mint: Pubkey

    @classmethod
    def deserialize(cls, data: bytes) -> "NftRecord":
        parsed = _parse(NFT_RECORD_LAYOUT, data, "NFT record")
        return cls(
            tag=parsed.tag,
            nonce=parsed.nonce,
            name_account=Pubkey.from_bytes(parsed.name_account),
            owner=Pubkey.from_bytes(parsed.owner),
            nft_mint=Pubkey.from_bytes(parsed.nft_mint),
        )

    @property
    def is_active(self) -> bool:
        return self.tag == NftRecordTag.ACTIVE_RECORD


@dataclass(frozen=True)
class PrimaryDomainState:
    tag: int
    name_account: Pubkey

    @classmethod
    def deserialize(cls, data: bytes) -> "PrimaryDomainState":
        parsed = _parse(PRIMARY_DOMAIN_LAYOUT, data, "Primary domain")
        return cls(tag=parsed.tag, name_account=Pubkey.from_bytes(parsed.name_account))


@dataclass(frozen=True)
class TokenAccount:
    mint: Pubkey
    owner: Pubkey
    amount: int

    @classmethod
    def deserialize(cls, data: bytes) -> "TokenAccount":
        parsed = _parse(TOKEN_ACCOUNT_LAYOUT, data, "Token")
        return cls(mint=Pubkey.from_bytes(parsed.mint), owner=Pubkey.from_bytes(parsed.owner), amount=parsed.amount)

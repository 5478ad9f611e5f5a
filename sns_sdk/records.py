"""
Record tags and the fixed mapping from each tag to its encoding.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Optional


class Record(Enum):
    """Record tags as stored on-chain."""

    IPFS = "IPFS"
    ARWV = "ARWV"
    SOL = "SOL"
    ETH = "ETH"
    BTC = "BTC"
    LTC = "LTC"
    DOGE = "DOGE"
    EMAIL = "email"
    URL = "url"
    DISCORD = "discord"
    GITHUB = "github"
    REDDIT = "reddit"
    TWITTER = "twitter"
    TELEGRAM = "telegram"
    PIC = "pic"
    SHDW = "SHDW"
    POINT = "POINT"
    BSC = "BSC"
    INJ = "INJ"
    BACKPACK = "backpack"
    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    TXT = "TXT"
    BACKGROUND = "background"
    BASE = "BASE"
    IPNS = "IPNS"

    def __str__(self) -> str:
        return self.value


class RecordVersion(IntEnum):
    """Record generation; the value is the name prefix byte."""

    V1 = 1
    V2 = 2


class Encoding(Enum):
    """Encoding families for record content."""

    SOLANA = "solana"
    EVM = "evm"
    BECH32 = "bech32"
    BASE58 = "base58"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    UTF8 = "utf8"


@dataclass(frozen=True)
class RecordSpec:
    encoding: Encoding
    # None for dynamic length
    size: Optional[int] = None


RECORD_SPECS = MappingProxyType({
    Record.SOL: RecordSpec(Encoding.SOLANA, 32),
    Record.ETH: RecordSpec(Encoding.EVM, 20),
    Record.BSC: RecordSpec(Encoding.EVM, 20),
    Record.BASE: RecordSpec(Encoding.EVM, 20),
    Record.INJ: RecordSpec(Encoding.BECH32, 20),
    Record.BTC: RecordSpec(Encoding.BASE58, 25),
    Record.LTC: RecordSpec(Encoding.BASE58, 25),
    Record.DOGE: RecordSpec(Encoding.BASE58, 25),
    Record.IPFS: RecordSpec(Encoding.BASE58, 34),
    Record.ARWV: RecordSpec(Encoding.BASE58, 32),
    Record.BACKGROUND: RecordSpec(Encoding.BASE58, 32),
    Record.A: RecordSpec(Encoding.IPV4, 4),
    Record.AAAA: RecordSpec(Encoding.IPV6, 16),
    Record.EMAIL: RecordSpec(Encoding.UTF8),
    Record.URL: RecordSpec(Encoding.UTF8),
    Record.DISCORD: RecordSpec(Encoding.UTF8),
    Record.GITHUB: RecordSpec(Encoding.UTF8),
    Record.REDDIT: RecordSpec(Encoding.UTF8),
    Record.TWITTER: RecordSpec(Encoding.UTF8),
    Record.TELEGRAM: RecordSpec(Encoding.UTF8),
    Record.PIC: RecordSpec(Encoding.UTF8),
    Record.SHDW: RecordSpec(Encoding.UTF8),
    Record.POINT: RecordSpec(Encoding.UTF8),
    Record.BACKPACK: RecordSpec(Encoding.UTF8),
    Record.CNAME: RecordSpec(Encoding.UTF8),
    Record.TXT: RecordSpec(Encoding.UTF8),
    Record.IPNS: RecordSpec(Encoding.UTF8),
})

# Key + Ed25519 signature
SOL_RECORD_V1_SIZE = 96

GUARDIAN_RECORDS = frozenset({Record.URL, Record.CNAME})
ETH_ROA_RECORDS = frozenset({Record.ETH, Record.BSC, Record.BASE, Record.INJ})
SELF_SIGNED_RECORDS = frozenset({Record.ETH, Record.BSC, Record.BASE, Record.INJ, Record.SOL})
PUNYCODE_RECORDS = frozenset({Record.CNAME, Record.TXT})
UTF8_ENCODED_RECORDS = frozenset(
    record for record, spec in RECORD_SPECS.items() if spec.encoding is Encoding.UTF8
)


def get_record_size(record: Record, version: RecordVersion = RecordVersion.V1) -> Optional[int]:
    """Stored byte length of a record, or None when the length is dynamic."""
    if record is Record.SOL and version is RecordVersion.V1:
        return SOL_RECORD_V1_SIZE
    return RECORD_SPECS[record].size

"""
Record content codec.

Each record tag maps to one encoding family (see ``records.RECORD_SPECS``);
this module turns user-facing strings into stored bytes and back.

Reading v1 records keeps a legacy path: older clients stored every record as
UTF-8 text, so when the stored length (up to the last non-zero byte) is not
the fixed size of a binary record, the text is accepted only if it is itself
a valid value for that record type.
"""

import ipaddress
import re
from typing import Optional, Union

import base58
import bech32
from solders.pubkey import Pubkey

from sns_sdk.errors import (
    InvalidAAAARecordError,
    InvalidARecordError,
    InvalidEvmAddressError,
    InvalidInjectiveAddressError,
    InvalidRecordDataError,
    InvalidRecordInputError,
    InvalidSignatureError,
    UnsupportedRecordError,
)
from sns_sdk.records import PUNYCODE_RECORDS, RECORD_SPECS, Encoding, Record, get_record_size
from sns_sdk.roa import check_sol_record
from sns_sdk.states import RegistryState

INJECTIVE_HRP = "inj"
PUNYCODE_PREFIX = "xn--"
EVM_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


# ============================================================
# Punycode
# ============================================================
def encode_punycode(text: str) -> str:
    """Punycode every non-ASCII dot-separated label independently."""
    labels = []
    for label in text.split("."):
        if label.isascii():
            labels.append(label)
        else:
            labels.append(PUNYCODE_PREFIX + label.encode("punycode").decode("ascii"))
    return ".".join(labels)


def decode_punycode(text: str) -> str:
    labels = []
    for label in text.split("."):
        if label.startswith(PUNYCODE_PREFIX):
            try:
                label = label[len(PUNYCODE_PREFIX):].encode("ascii").decode("punycode")
            except UnicodeError:
                # not valid punycode, keep the label as stored
                pass
        labels.append(label)
    return ".".join(labels)


# ============================================================
# IP addresses
# ============================================================
def parse_ipv4(content: str) -> bytes:
    try:
        return ipaddress.IPv4Address(content).packed
    except ValueError as exc:
        raise InvalidARecordError(f"The record content must be a valid IPv4 address: {content!r}") from exc


def format_ipv4(data: bytes) -> str:
    return ".".join(str(octet) for octet in data)


def parse_ipv6(content: str) -> bytes:
    if "%" in content:
        raise InvalidAAAARecordError(f"Scoped IPv6 addresses are not allowed: {content!r}")
    try:
        return ipaddress.IPv6Address(content).packed
    except ValueError as exc:
        raise InvalidAAAARecordError(f"The record content must be a valid IPv6 address: {content!r}") from exc


def format_ipv6(data: bytes) -> str:
    """Render 16 bytes as hex groups, folding the longest zero run (first on ties, length >= 2)."""
    groups = [int.from_bytes(data[i:i + 2], "big") for i in range(0, 16, 2)]

    best_start, best_len = -1, 0
    run_start, run_len = -1, 0
    for i, group in enumerate(groups):
        if group:
            run_start, run_len = -1, 0
            continue
        if run_start < 0:
            run_start = i
        run_len += 1
        if run_len > best_len:
            best_start, best_len = run_start, run_len

    hexed = [format(group, "x") for group in groups]
    if best_len < 2:
        return ":".join(hexed)
    head = ":".join(hexed[:best_start])
    tail = ":".join(hexed[best_start + best_len:])
    return f"{head}::{tail}"


# ============================================================
# Family encoders
# ============================================================
def _encode_evm(content: str) -> bytes:
    if not EVM_ADDRESS_PATTERN.fullmatch(content):
        raise InvalidEvmAddressError(f"The record content must start with 0x and hold 40 hex chars: {content!r}")
    return bytes.fromhex(content[2:])


def _encode_injective(content: str) -> bytes:
    if not content.startswith(INJECTIVE_HRP):
        raise InvalidInjectiveAddressError(f"The record content must start with {INJECTIVE_HRP}: {content!r}")
    hrp, words = bech32.bech32_decode(content)
    payload = bech32.convertbits(words, 5, 8, False) if words is not None else None
    if hrp != INJECTIVE_HRP or payload is None or len(payload) != 20:
        raise InvalidInjectiveAddressError(f"The record content is not a valid Injective address: {content!r}")
    return bytes(payload)


def _encode_base58(content: str, size: int) -> bytes:
    try:
        decoded = base58.b58decode(content)
    except ValueError as exc:
        raise InvalidRecordInputError(f"The record content is not valid base58: {content!r}") from exc
    if len(decoded) != size:
        raise InvalidRecordInputError(
            f"The record content must decode to {size} bytes, got {len(decoded)}",
            {"expected": size, "actual": len(decoded)},
        )
    return decoded


def _encode(content: str, record: Record) -> bytes:
    spec = RECORD_SPECS[record]
    encoding = spec.encoding

    if encoding is Encoding.UTF8:
        if record in PUNYCODE_RECORDS:
            content = encode_punycode(content)
        return content.encode("utf-8")
    if encoding is Encoding.EVM:
        return _encode_evm(content)
    if encoding is Encoding.BECH32:
        return _encode_injective(content)
    if encoding is Encoding.IPV4:
        return parse_ipv4(content)
    if encoding is Encoding.IPV6:
        return parse_ipv6(content)
    # SOLANA and BASE58
    return _encode_base58(content, spec.size)


# ============================================================
# Family decoders
# ============================================================
def _malformed(record: Record, domain: Optional[str]) -> InvalidRecordDataError:
    return InvalidRecordDataError(
        f"The record data is malformed for the {record.value} record of {domain or 'unknown domain'}",
        {"record": record.value, "domain": domain},
    )


def _decode_utf8(data: bytes, record: Record, domain: Optional[str]) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _malformed(record, domain) from exc
    if record in PUNYCODE_RECORDS:
        return decode_punycode(text)
    return text


def _decode_binary(data: bytes, record: Record) -> str:
    encoding = RECORD_SPECS[record].encoding

    if encoding is Encoding.EVM:
        return "0x" + data.hex()
    if encoding is Encoding.BECH32:
        return bech32.bech32_encode(INJECTIVE_HRP, bech32.convertbits(data, 8, 5))
    if encoding is Encoding.IPV4:
        return format_ipv4(data)
    if encoding is Encoding.IPV6:
        return format_ipv6(data)
    return base58.b58encode(data).decode("ascii")


def _is_legacy_value(text: str, record: Record) -> bool:
    spec = RECORD_SPECS[record]
    encoding = spec.encoding

    if encoding is Encoding.BECH32:
        hrp, words = bech32.bech32_decode(text)
        payload = bech32.convertbits(words, 5, 8, False) if words is not None else None
        return hrp == INJECTIVE_HRP and payload is not None and len(payload) == 20
    if encoding is Encoding.EVM:
        return EVM_ADDRESS_PATTERN.fullmatch(text) is not None
    if encoding is Encoding.IPV4:
        try:
            ipaddress.IPv4Address(text)
        except ValueError:
            return False
        return True
    if encoding is Encoding.IPV6:
        try:
            ipaddress.IPv6Address(text)
        except ValueError:
            return False
        return True
    if encoding is Encoding.BASE58:
        try:
            return len(base58.b58decode(text)) == spec.size
        except ValueError:
            return False
    return False


def _decode_legacy(data: bytes, record: Record, domain: Optional[str]) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _malformed(record, domain) from exc
    if _is_legacy_value(text, record):
        return text
    raise _malformed(record, domain)


def _content_end(data: bytes) -> int:
    """Index just past the last non-zero byte."""
    return len(data.rstrip(b"\x00"))


# ============================================================
# SOL records
# ============================================================
def get_sol_record_message(content: Union[bytes, Pubkey], record_key: Pubkey) -> bytes:
    """Message the domain owner signs for a SOL record: hex(content key | record key)."""
    return (bytes(content) + bytes(record_key)).hex().encode("ascii")


def serialize_sol_record(
    content: Union[str, Pubkey],
    record_key: Pubkey,
    signer: Pubkey,
    signature: bytes,
) -> bytes:
    if isinstance(content, str):
        try:
            content = Pubkey.from_string(content)
        except ValueError as exc:
            raise InvalidRecordInputError(f"The record content is not a Solana address: {content!r}") from exc

    message = get_sol_record_message(content, record_key)
    if not check_sol_record(message, signature, signer):
        raise InvalidSignatureError(
            "The SOL record signature is invalid",
            {"record_key": str(record_key), "signer": str(signer)},
        )
    return bytes(content) + bytes(signature)


# ============================================================
# Public API
# ============================================================
def serialize_record(content: str, record: Record, space: Optional[int] = None) -> bytes:
    """
    Serialize ``content`` for a v1 record account.

    When ``space`` is given the bytes are right-padded with zeros to the
    allocated length.
    """
    if record is Record.SOL:
        raise UnsupportedRecordError("Use serialize_sol_record for SOL records")

    payload = _encode(content, record)
    if space is None:
        return payload
    if len(payload) > space:
        raise InvalidRecordInputError(
            f"The {record.value} record needs {len(payload)} bytes but only {space} are allocated",
            {"needed": len(payload), "space": space},
        )
    return payload + bytes(space - len(payload))


def deserialize_record(
    registry: Union[RegistryState, bytes, None],
    record: Record,
    record_key: Pubkey,
    domain: Optional[str] = None,
) -> Optional[str]:
    """
    Decode a v1 record account.

    ``registry`` is either the parsed account or its raw bytes. Returns None
    when the account is missing or its content region is empty.
    """
    if registry is None:
        return None
    if not isinstance(registry, RegistryState):
        registry = RegistryState.deserialize(registry)

    data = registry.data
    idx = _content_end(data)
    if idx == 0:
        return None

    size = get_record_size(record)
    if size is None:
        return _decode_utf8(data[:idx], record, domain)

    if record is Record.SOL:
        message = get_sol_record_message(data[:32], record_key)
        if check_sol_record(message, data[32:96], registry.owner):
            return base58.b58encode(data[:32]).decode("ascii")

    if idx != size:
        return _decode_legacy(data[:idx], record, domain)

    if record is Record.SOL:
        # a full-size SOL record whose signature does not verify
        raise _malformed(record, domain)

    return _decode_binary(data[:size], record)


def serialize_record_v2_content(content: str, record: Record) -> bytes:
    return _encode(content, record)


def deserialize_record_v2_content(content: bytes, record: Record, domain: Optional[str] = None) -> str:
    size = RECORD_SPECS[record].size
    if size is None:
        return _decode_utf8(content, record, domain)
    if len(content) == size:
        return _decode_binary(content, record)
    return _decode_legacy(content, record, domain)

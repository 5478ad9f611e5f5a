import base58
import bech32
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from sns_sdk.codec import (
    decode_punycode,
    deserialize_record,
    deserialize_record_v2_content,
    encode_punycode,
    format_ipv6,
    get_sol_record_message,
    serialize_record,
    serialize_record_v2_content,
    serialize_sol_record,
)
from sns_sdk.errors import (
    InvalidAAAARecordError,
    InvalidARecordError,
    InvalidEvmAddressError,
    InvalidInjectiveAddressError,
    InvalidRecordContentError,
    InvalidRecordDataError,
    InvalidRecordInputError,
    InvalidSignatureError,
    UnsupportedRecordError,
)
from sns_sdk.records import RECORD_SPECS, UTF8_ENCODED_RECORDS, Record
from sns_sdk.states import RegistryState

RECORD_KEY = Pubkey.new_unique()
BTC_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
IPFS_CID = base58.b58encode(b"\x12\x20" + bytes(range(1, 33))).decode()
FIXED_KEY = str(Pubkey.from_bytes(bytes(range(1, 33))))


def account(content: bytes, owner: Pubkey = None) -> bytes:
    """Registry header followed by ``content``."""
    return bytes(32) + (bytes(owner) if owner else bytes(32)) + bytes(32) + content


def inj_address(payload: bytes = bytes(range(20))) -> str:
    return bech32.bech32_encode("inj", bech32.convertbits(payload, 8, 5))


def roundtrip(content, record, space=None):
    data = serialize_record(content, record, space)
    return deserialize_record(account(data), record, RECORD_KEY, "bonfida")


# ---------------- fixed binary ----------------
def test_ipv4():
    assert serialize_record("192.168.1.1", Record.A) == bytes([192, 168, 1, 1])
    assert roundtrip("192.168.1.1", Record.A) == "192.168.1.1"


@pytest.mark.parametrize("content", ["192.168.1", "1.2.3.4.5", "256.1.1.1", "a.b.c.d", ""])
def test_ipv4_invalid(content):
    with pytest.raises(InvalidARecordError):
        serialize_record(content, Record.A)


def test_ipv6():
    data = serialize_record("2001:db8::1", Record.AAAA)
    assert data == bytes.fromhex("20010db8000000000000000000000001")
    assert roundtrip("2001:db8::1", Record.AAAA) == "2001:db8::1"


@pytest.mark.parametrize("raw,expected", [
    ("2001:0db8:0000:0000:0001:0000:0000:0001", "2001:db8::1:0:0:1"),
    ("2001:db8:0:1:1:1:1:1", "2001:db8:0:1:1:1:1:1"),
    ("1:0:1:0:1:0:1:0", "1:0:1:0:1:0:1:0"),
    ("1:0:0:1:0:0:0:1", "1:0:0:1::1"),
    ("::", "::"),
    ("::1", "::1"),
    ("fe80::", "fe80::"),
    ("FE80:0:0:0:ABCD:0:0:0", "fe80::abcd:0:0:0"),
])
def test_ipv6_compression(raw, expected):
    data = serialize_record(raw, Record.AAAA)
    assert format_ipv6(data) == expected


@pytest.mark.parametrize("content", ["2001:db8::1::1", "1:2:3:4:5:6:7:8:9", "12345::", "fe80::1%eth0", "hello"])
def test_ipv6_invalid(content):
    with pytest.raises(InvalidAAAARecordError):
        serialize_record(content, Record.AAAA)


@pytest.mark.parametrize("record", [Record.ETH, Record.BSC, Record.BASE])
def test_evm(record):
    content = "0x" + "a" * 40
    assert serialize_record(content, record) == bytes([0xAA] * 20)
    assert roundtrip(content, record) == content


def test_evm_is_lowercased():
    assert roundtrip("0x" + "AB" * 20, Record.ETH) == "0x" + "ab" * 20


@pytest.mark.parametrize("content", [
    "0x123",
    "ab" * 20,
    "0x" + "g" * 40,
    "0X" + "a" * 40,
    # fromhex would skip the spaces and yield 19 bytes
    "0x" + "aa" * 19 + "  ",
])
def test_evm_invalid(content):
    with pytest.raises(InvalidEvmAddressError):
        serialize_record(content, Record.ETH)


def test_injective():
    address = inj_address()
    assert serialize_record(address, Record.INJ) == bytes(range(20))
    assert roundtrip(address, Record.INJ) == address


@pytest.mark.parametrize("content", [
    bech32.bech32_encode("cosmos", bech32.convertbits(bytes(20), 8, 5)),
    bech32.bech32_encode("inj", bech32.convertbits(bytes(32), 8, 5)),
    "inj1invalid",
])
def test_injective_invalid(content):
    with pytest.raises(InvalidInjectiveAddressError):
        serialize_record(content, Record.INJ)


@pytest.mark.parametrize("record,content", [
    (Record.BTC, BTC_ADDRESS),
    (Record.IPFS, IPFS_CID),
    (Record.BACKGROUND, FIXED_KEY),
    (Record.ARWV, FIXED_KEY),
])
def test_base58(record, content):
    assert len(serialize_record(content, record)) == RECORD_SPECS[record].size
    assert roundtrip(content, record) == content


def test_base58_invalid():
    with pytest.raises(InvalidRecordInputError):
        serialize_record("0OIl" * 8, Record.BTC)
    with pytest.raises(InvalidRecordInputError):
        serialize_record(str(Pubkey.new_unique()), Record.BTC)


def test_invalid_content_shares_a_base_class():
    for content, record in [("x", Record.A), ("x", Record.AAAA), ("x", Record.ETH), ("x", Record.INJ), ("x", Record.BTC)]:
        with pytest.raises(InvalidRecordContentError):
            serialize_record(content, record)


@settings(max_examples=50)
@given(st.binary(min_size=20, max_size=20).filter(lambda b: b[-1] != 0))
def test_evm_roundtrip_property(payload):
    content = "0x" + payload.hex()
    assert roundtrip(content, Record.ETH) == content


@settings(max_examples=50)
@given(st.binary(min_size=16, max_size=16).filter(lambda b: b[-1] != 0))
def test_ipv6_roundtrip_property(payload):
    rendered = format_ipv6(payload)
    assert serialize_record(rendered, Record.AAAA) == payload
    assert roundtrip(rendered, Record.AAAA) == rendered


# ---------------- strings ----------------
def test_utf8_with_padding():
    data = serialize_record("bonfida@example.com", Record.EMAIL, space=64)
    assert len(data) == 64
    assert deserialize_record(account(data), Record.EMAIL, RECORD_KEY) == "bonfida@example.com"


def test_padding_too_small():
    with pytest.raises(InvalidRecordInputError):
        serialize_record("bonfida", Record.TWITTER, space=3)


def test_cname_punycode():
    assert serialize_record("mañana.com", Record.CNAME) == b"xn--maana-pta.com"
    assert roundtrip("mañana.com", Record.CNAME) == "mañana.com"


def test_punycode_is_per_label():
    assert encode_punycode("ü.example.ñ") == "xn--tda.example.xn--ida"
    assert decode_punycode("xn--tda.example.xn--ida") == "ü.example.ñ"


def test_punycode_keeps_undecodable_labels():
    assert decode_punycode("xn--a-b-c-ééé.com") == "xn--a-b-c-ééé.com"


def test_txt_is_punycoded_but_twitter_is_not():
    assert serialize_record("héllo", Record.TXT).startswith(b"xn--")
    assert serialize_record("héllo", Record.TWITTER) == "héllo".encode("utf-8")


TEXT = st.characters(exclude_characters="\x00.", exclude_categories=("Cs",))


@settings(max_examples=75)
@given(st.lists(st.text(alphabet=TEXT, min_size=1, max_size=12).filter(lambda s: not s.startswith("xn--")), min_size=1, max_size=4))
def test_cname_unicode_roundtrip(labels):
    content = ".".join(labels)
    assert roundtrip(content, Record.CNAME) == content
    assert deserialize_record_v2_content(serialize_record_v2_content(content, Record.TXT), Record.TXT) == content


@settings(max_examples=50)
@given(st.sampled_from(sorted(UTF8_ENCODED_RECORDS - {Record.CNAME, Record.TXT}, key=lambda r: r.value)),
       st.text(alphabet=st.characters(min_codepoint=1, max_codepoint=127), min_size=1, max_size=64))
def test_ascii_roundtrip(record, content):
    assert roundtrip(content, record) == content


# ---------------- empty and legacy ----------------
@pytest.mark.parametrize("record", [Record.TWITTER, Record.ETH, Record.SOL])
def test_empty_record(record):
    assert deserialize_record(account(b""), record, RECORD_KEY) is None
    assert deserialize_record(account(bytes(50)), record, RECORD_KEY) is None
    assert deserialize_record(None, record, RECORD_KEY) is None


@pytest.mark.parametrize("record,content", [
    (Record.ETH, "0x" + "ab" * 20),
    (Record.BSC, "0x" + "AB" * 20),
    (Record.INJ, inj_address()),
    (Record.A, "10.0.0.1"),
    (Record.AAAA, "2001:db8::1"),
    (Record.BTC, BTC_ADDRESS),
    (Record.IPFS, IPFS_CID),
])
def test_legacy_utf8_records(record, content):
    stored = content.encode("utf-8") + bytes(10)
    assert deserialize_record(account(stored), record, RECORD_KEY, "bonfida") == content


def test_legacy_garbage_names_record_and_domain():
    with pytest.raises(InvalidRecordDataError) as exc:
        deserialize_record(account(b"not an address"), Record.ETH, RECORD_KEY, "bonfida")
    assert "ETH" in str(exc.value)
    assert "bonfida" in str(exc.value)
    assert exc.value.details == {"record": "ETH", "domain": "bonfida"}


@pytest.mark.parametrize("stored", ["0x" + "zz" * 20, "0x" + "aa" * 19 + "  "])
def test_legacy_evm_text_must_be_hex(stored):
    with pytest.raises(InvalidRecordDataError):
        deserialize_record(account(stored.encode()), Record.ETH, RECORD_KEY, "bonfida")


def test_binary_ending_in_zero_goes_through_legacy_path():
    data = bytes([0xAA] * 19) + b"\x00"
    with pytest.raises(InvalidRecordDataError):
        deserialize_record(account(data), Record.ETH, RECORD_KEY, "bonfida")


def test_invalid_utf8():
    with pytest.raises(InvalidRecordDataError):
        deserialize_record(account(b"\xff\xfe"), Record.URL, RECORD_KEY, "bonfida")


def test_deserialize_accepts_registry_state():
    registry = RegistryState.deserialize(account(b"bonfida"))
    assert deserialize_record(registry, Record.GITHUB, RECORD_KEY) == "bonfida"


# ---------------- SOL ----------------
def test_serialize_record_rejects_sol():
    with pytest.raises(UnsupportedRecordError):
        serialize_record(str(Pubkey.new_unique()), Record.SOL)


def test_sol_record_roundtrip():
    owner = Keypair()
    content = Pubkey.new_unique()
    signature = owner.sign_message(get_sol_record_message(content, RECORD_KEY))

    data = serialize_sol_record(str(content), RECORD_KEY, owner.pubkey(), bytes(signature))
    assert data == bytes(content) + bytes(signature)
    assert len(data) == 96
    assert deserialize_record(account(data, owner.pubkey()), Record.SOL, RECORD_KEY) == str(content)


def test_sol_record_message_is_hex():
    content = Pubkey.new_unique()
    assert get_sol_record_message(content, RECORD_KEY) == (bytes(content) + bytes(RECORD_KEY)).hex().encode()


def test_sol_record_wrong_signer():
    owner, other = Keypair(), Keypair()
    content = Pubkey.new_unique()
    signature = other.sign_message(get_sol_record_message(content, RECORD_KEY))
    with pytest.raises(InvalidSignatureError):
        serialize_sol_record(content, RECORD_KEY, owner.pubkey(), bytes(signature))


def test_sol_record_after_transfer():
    owner, new_owner = Keypair(), Keypair()
    content = Pubkey.new_unique()
    signature = owner.sign_message(get_sol_record_message(content, RECORD_KEY))
    data = bytes(content) + bytes(signature)
    with pytest.raises(InvalidRecordDataError):
        deserialize_record(account(data, new_owner.pubkey()), Record.SOL, RECORD_KEY, "bonfida")


def test_sol_record_invalid_content():
    with pytest.raises(InvalidRecordInputError):
        serialize_sol_record("not-a-key", RECORD_KEY, Pubkey.new_unique(), bytes(64))


# ---------------- v2 content ----------------
def test_v2_sol_content():
    key = Pubkey.new_unique()
    assert serialize_record_v2_content(str(key), Record.SOL) == bytes(key)
    assert deserialize_record_v2_content(bytes(key), Record.SOL) == str(key)


def test_v2_binary_content_keeps_trailing_zero():
    data = bytes([0xAA] * 19) + b"\x00"
    assert deserialize_record_v2_content(data, Record.ETH) == "0x" + "aa" * 19 + "00"


def test_v2_legacy_content():
    assert deserialize_record_v2_content(b"1.1.1.1", Record.A) == "1.1.1.1"
    with pytest.raises(InvalidRecordDataError):
        deserialize_record_v2_content(b"\x01\x02", Record.SOL, "bonfida")


@pytest.mark.parametrize("record,content", [
    (Record.A, "127.0.0.1"),
    (Record.INJ, inj_address(bytes(range(1, 21)))),
    (Record.URL, "https://sns.id"),
    (Record.DOGE, "DH5yaieqoZN36fDVciNyRueRGvGLR3mr7L"),
])
def test_v2_roundtrip(record, content):
    assert deserialize_record_v2_content(serialize_record_v2_content(content, record), record) == content

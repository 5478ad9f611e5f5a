from solders.pubkey import Pubkey

# ---------------- PROGRAMS ----------------
NAME_PROGRAM_ID = Pubkey.from_string("namesLPneVptA9Z5rqUDD9tMTWEJwofgaYwp8cawRkX")
NAME_TOKENIZER_ID = Pubkey.from_string("nftD3vbNkNqfj2Sd3HZwbpw4BxxKWr4AjGb9X38JeZk")
# Holds the favourite (primary) domain accounts
NAME_OFFERS_ID = Pubkey.from_string("85iDfUvr3HJyLM2zcq5BXSiDvUWfw6cSE1FfNBo8Ap29")

# ---------------- ACCOUNTS ----------------
# The .sol TLD
ROOT_DOMAIN_ACCOUNT = Pubkey.from_string("58PwtjSDuFHuUkYjH9BYnnQKHfwo9reZhC2zMJv9JPkx")
# Class of reverse lookup accounts
REVERSE_LOOKUP_CLASS = Pubkey.from_string("33m47vH6Eav6jr5Ry86XjhRft2jRBLDnDgPSHoquXi2Z")
# Class of record v2 accounts
CENTRAL_STATE_SNS_RECORDS = Pubkey.from_string("2pMnqHvei2N5oDcVGCRdZx48gqti199wr5CsyTTafsbo")
# RoA verifier for url and CNAME records
GUARDIAN = Pubkey.from_string("ExXjtfdQe8JacoqP9Z535WzQKjF4CzW1TTRKRgpxvya3")

# ---------------- DERIVATION ----------------
HASH_PREFIX = "SPL Name Service"
PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LEN = 32
MAX_SEEDS = 16

# parent(32) + owner(32) + class(32)
REGISTRY_HEADER_LEN = 96
# staleness validation(2) + roa validation(2) + content length(4)
RECORD_HEADER_LEN = 8

# Seeds of the tokenizer and favourite domain PDAs
NFT_RECORD_SEED = b"nft_record"
TOKENIZED_MINT_SEED = b"tokenized_name"
FAVOURITE_DOMAIN_SEED = b"favourite_domain"

SOL_SUFFIX = ".sol"
ROA_MESSAGE_PREFIX = "SNS ROA: "

# getMultipleAccounts accepts at most 100 keys per call
MAX_ACCOUNTS_PER_CALL = 100

from sns_sdk._logging import configure_logger, disable_logger
from sns_sdk.client import PrimaryDomain, RecordResult, SnsClient, Subdomain
from sns_sdk.codec import (
    deserialize_record,
    deserialize_record_v2_content,
    serialize_record,
    serialize_record_v2_content,
    serialize_sol_record,
)
from sns_sdk.config import SnsConfig, load_config
from sns_sdk.derivation import (
    DomainKeyResult,
    derive_address,
    find_program_address,
    get_domain_key,
    get_domain_keys,
    get_domain_mint,
    get_nft_record_key,
    get_primary_domain_key,
    get_record_v1_key,
    get_record_v2_key,
    get_reverse_key,
    hash_name,
    resolve_domain_key,
)
from sns_sdk.errors import SnsError
from sns_sdk.records import Record, RecordVersion
from sns_sdk.roa import (
    RecordStatus,
    check_sol_record,
    verify_ethereum_roa,
    verify_roa,
    verify_sol_record_signature,
    verify_staleness,
)
from sns_sdk.rpc import AccountInfo, SolanaRpc
from sns_sdk.states import NftRecord, PrimaryDomainState, RecordState, RegistryState, Validation
from sns_sdk.validation import DomainValidator

__version__ = "0.1.0"

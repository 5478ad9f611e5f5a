"""
High level lookups against the name service.

All network access goes through ``self.rpc`` (see ``sns_sdk.rpc``); the rest
is key derivation and account decoding.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from solders.pubkey import Pubkey

from sns_sdk.codec import deserialize_record, deserialize_record_v2_content, get_sol_record_message
from sns_sdk.config import SnsConfig, load_config
from sns_sdk.constants import NAME_PROGRAM_ID, REVERSE_LOOKUP_CLASS, ROOT_DOMAIN_ACCOUNT
from sns_sdk.derivation import (
    get_domain_key,
    get_domain_mint,
    get_nft_record_key,
    get_primary_domain_key,
    get_record_v1_key,
    get_record_v2_key,
    get_reverse_key_from_domain_key,
)
from sns_sdk.errors import (
    AccountDoesNotExistError,
    CouldNotFindNftOwnerError,
    DomainDoesNotExistError,
    InvalidRoAError,
    InvalidValidationError,
    MissingVerifierError,
    NoRecordDataError,
    PdaOwnerNotAllowedError,
    RecordMalformedError,
)
from sns_sdk.records import Record
from sns_sdk.roa import (
    RecordStatus,
    check_sol_record,
    get_default_verifier,
    get_record_status,
    verify_roa,
    verify_staleness,
)
from sns_sdk.rpc import DataSlice, MemcmpFilter, SolanaRpc
from sns_sdk.states import (
    NftRecord,
    PrimaryDomainState,
    RecordState,
    RegistryState,
    TokenAccount,
    Validation,
    deserialize_reverse,
)

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class RecordResult:
    record: Record
    retrieved_key: Pubkey
    state: RecordState
    deserialized: Optional[str] = None


@dataclass(frozen=True)
class PrimaryDomain:
    domain_key: Pubkey
    # without the .sol suffix; subdomains come back as "sub.parent"
    name: str
    # the wallet no longer owns the domain it marked as primary
    stale: bool


@dataclass(frozen=True)
class Subdomain:
    name: str
    owner: Pubkey


class SnsClient:
    def __init__(self, rpc, max_workers: Optional[int] = None, allow_pda: Union[str, bool] = False):
        self.rpc = rpc
        self.max_workers = max_workers
        self.allow_pda = allow_pda

    @classmethod
    def from_config(cls, config: Optional[SnsConfig] = None) -> "SnsClient":
        config = config or load_config()
        return cls(SolanaRpc.from_config(config), max_workers=config.max_workers, allow_pda=config.allow_pda)

    def _map(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        # executor.map yields in submission order
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(fn, items))

    # ============================================================
    # Domains
    # ============================================================
    def get_domain_registry(self, domain: str) -> RegistryState:
        key = get_domain_key(domain).pubkey
        info = self.rpc.fetch_account(key)
        if not info.exists:
            raise DomainDoesNotExistError(f"The domain {domain} does not exist", {"domain": domain})
        return RegistryState.deserialize(info.data)

    def get_domain_owner(self, domain: str) -> Pubkey:
        return self.get_domain_registry(domain).owner

    def resolve(
        self,
        domain: str,
        allow_pda: Union[str, bool, None] = None,
        program_ids: Sequence[Pubkey] = (),
    ) -> Pubkey:
        """
        Resolve ``domain`` to the wallet it points to.

        Order: the holder of the domain NFT when it is tokenized, a valid SOL
        v2 record, a SOL v1 record signed by the owner, then the owner itself. ``allow_pda`` controls owners that are PDAs:
        ``"any"`` accepts all, ``True`` accepts those owned by one of
        ``program_ids`` and ``False`` rejects them.
        """
        allow_pda = self.allow_pda if allow_pda is None else allow_pda
        domain_key = get_domain_key(domain).pubkey
        sol_v1_key = get_record_v1_key(domain, Record.SOL)
        sol_v2_key = get_record_v2_key(domain, Record.SOL)

        nft_record_key = get_nft_record_key(domain_key)

        registry_info, nft_info, v1_info, v2_info = self.rpc.fetch_accounts(
            [domain_key, nft_record_key, sol_v1_key, sol_v2_key]
        )
        if not registry_info.exists:
            raise DomainDoesNotExistError(f"The domain {domain} does not exist", {"domain": domain})
        owner = RegistryState.deserialize(registry_info.data).owner

        if nft_info.exists and NftRecord.deserialize(nft_info.data).is_active:
            holder = self.get_nft_owner(domain_key)
            if holder is None:
                raise CouldNotFindNftOwnerError(
                    f"The domain {domain} is tokenized but its NFT has no holder",
                    {"domain": domain},
                )
            log.debug("%s resolved from its NFT", domain)
            return holder

        if v2_info.exists:
            resolved = self._resolve_sol_v2(domain, owner, RecordState.deserialize(v2_info.data))
            if resolved is not None:
                log.debug("%s resolved from SOL record v2", domain)
                return resolved

        if v1_info.exists:
            data = RegistryState.deserialize(v1_info.data).data
            message = get_sol_record_message(data[:32], sol_v1_key)
            if check_sol_record(message, data[32:96], owner):
                log.debug("%s resolved from SOL record v1", domain)
                return Pubkey.from_bytes(data[:32])

        return self._check_owner(domain, owner, allow_pda, program_ids)

    def _resolve_sol_v2(self, domain: str, owner: Pubkey, state: RecordState) -> Optional[Pubkey]:
        content = state.get_content()
        if len(content) != 32:
            raise RecordMalformedError(
                f"The SOL record v2 of {domain} holds {len(content)} bytes",
                {"domain": domain, "length": len(content)},
            )
        header = state.header
        if header.staleness_validation is not Validation.SOLANA or header.roa_validation is not Validation.SOLANA:
            raise InvalidValidationError(
                f"The SOL record v2 of {domain} is not Solana validated",
                {"domain": domain},
            )
        # a record left by a previous owner is skipped
        if state.get_staleness_id() != bytes(owner):
            return None
        if state.get_roa_id() != content:
            raise InvalidRoAError(f"The RoA of the SOL record v2 of {domain} is invalid", {"domain": domain})
        return Pubkey.from_bytes(content)

    def _check_owner(self, domain: str, owner: Pubkey, allow_pda, program_ids: Sequence[Pubkey]) -> Pubkey:
        if owner.is_on_curve():
            return owner
        if allow_pda == "any":
            return owner
        if allow_pda is True:
            info = self.rpc.fetch_account(owner)
            if info.exists and info.owner in program_ids:
                return owner
        raise PdaOwnerNotAllowedError(
            f"The owner of {domain} is a PDA that is not allowed",
            {"domain": domain, "owner": str(owner)},
        )

    def get_nft_owner(self, domain_key: Pubkey) -> Optional[Pubkey]:
        """Wallet holding the NFT of a tokenized domain, or None when nobody holds it."""
        holders = self.rpc.get_token_largest_accounts(get_domain_mint(domain_key))
        if not holders:
            return None
        info = self.rpc.fetch_account(holders[0])
        if not info.exists:
            return None
        token = TokenAccount.deserialize(info.data)
        return token.owner if token.amount == 1 else None

    def resolve_batch(self, domains: Iterable[str], **kwargs) -> List[Pubkey]:
        return self._map(lambda domain: self.resolve(domain, **kwargs), domains)

    # ============================================================
    # Records v1
    # ============================================================
    def get_record(self, domain: str, record: Record, deserialize: bool = True):
        """
        Fetch a v1 record. Returns the decoded string, or the raw
        ``RegistryState`` when ``deserialize`` is False.
        """
        key = get_record_v1_key(domain, record)
        info = self.rpc.fetch_account(key)
        if not info.exists:
            raise AccountDoesNotExistError(
                f"The {record.value} record of {domain} does not exist",
                {"domain": domain, "record": record.value},
            )
        registry = RegistryState.deserialize(info.data)
        if not any(registry.data):
            raise NoRecordDataError(
                f"The {record.value} record of {domain} is empty",
                {"domain": domain, "record": record.value},
            )
        if not deserialize:
            return registry
        return deserialize_record(registry, record, key, domain)

    def get_records(self, domain: str, records: Sequence[Record], deserialize: bool = True) -> list:
        """Fetch several v1 records at once; missing ones come back as None."""
        keys = self._map(lambda record: get_record_v1_key(domain, record), records)
        infos = self.rpc.fetch_accounts(keys)

        results = []
        for record, key, info in zip(records, keys, infos):
            if not info.exists:
                results.append(None)
                continue
            registry = RegistryState.deserialize(info.data)
            results.append(deserialize_record(registry, record, key, domain) if deserialize else registry)
        return results

    # ============================================================
    # Records v2
    # ============================================================
    def _record_result(self, domain, record, key, data, deserialize) -> RecordResult:
        state = RecordState.deserialize(data)
        content = deserialize_record_v2_content(state.get_content(), record, domain) if deserialize else None
        return RecordResult(record=record, retrieved_key=key, state=state, deserialized=content)

    def get_record_v2(self, domain: str, record: Record, deserialize: bool = True) -> RecordResult:
        key = get_record_v2_key(domain, record)
        info = self.rpc.fetch_account(key)
        if not info.exists:
            raise AccountDoesNotExistError(
                f"The {record.value} record v2 of {domain} does not exist",
                {"domain": domain, "record": record.value},
            )
        return self._record_result(domain, record, key, info.data, deserialize)

    def get_records_v2(
        self,
        domain: str,
        records: Sequence[Record],
        deserialize: bool = True,
    ) -> List[Optional[RecordResult]]:
        keys = self._map(lambda record: get_record_v2_key(domain, record), records)
        infos = self.rpc.fetch_accounts(keys)
        return [
            self._record_result(domain, record, key, info.data, deserialize) if info.exists else None
            for record, key, info in zip(records, keys, infos)
        ]

    def _fetch_owner_and_record(self, domain: str, record: Record) -> Tuple[Pubkey, RecordState]:
        domain_key = get_domain_key(domain).pubkey
        record_key = get_record_v2_key(domain, record)
        registry_info, record_info = self.rpc.fetch_accounts([domain_key, record_key])
        if not registry_info.exists:
            raise DomainDoesNotExistError(f"The domain {domain} does not exist", {"domain": domain})
        if not record_info.exists:
            raise AccountDoesNotExistError(
                f"The {record.value} record v2 of {domain} does not exist",
                {"domain": domain, "record": record.value},
            )
        owner = RegistryState.deserialize(registry_info.data).owner
        return owner, RecordState.deserialize(record_info.data)

    def verify_record_staleness(self, domain: str, record: Record) -> bool:
        owner, state = self._fetch_owner_and_record(domain, record)
        return verify_staleness(owner, state)

    def verify_record_roa(self, domain: str, record: Record, verifier: Optional[bytes] = None) -> bool:
        state = self.get_record_v2(domain, record, deserialize=False).state
        if verifier is None:
            verifier = get_default_verifier(record, state)
        if verifier is None:
            raise MissingVerifierError(
                f"No default verifier for the {record.value} record, one must be given",
                {"record": record.value},
            )
        return verify_roa(record, state, verifier)

    def get_record_status(self, domain: str, record: Record, verifier: Optional[bytes] = None) -> RecordStatus:
        owner, state = self._fetch_owner_and_record(domain, record)
        return get_record_status(record, state, owner, verifier)

    # ============================================================
    # Reverse lookups
    # ============================================================
    def reverse_lookup(self, domain_key: Pubkey, parent: Optional[Pubkey] = None) -> str:
        reverse_key = get_reverse_key_from_domain_key(domain_key, parent)
        info = self.rpc.fetch_account(reverse_key)
        if not info.exists:
            raise AccountDoesNotExistError(
                f"No reverse lookup for {domain_key}",
                {"domain_key": str(domain_key)},
            )
        registry = RegistryState.deserialize(info.data)
        return deserialize_reverse(registry.data, trim_first_nul=parent is not None)

    def reverse_lookup_batch(self, domain_keys: Sequence[Pubkey]) -> List[Optional[str]]:
        reverse_keys = self._map(get_reverse_key_from_domain_key, domain_keys)
        infos = self.rpc.fetch_accounts(reverse_keys)
        return [
            deserialize_reverse(RegistryState.deserialize(info.data).data) if info.exists else None
            for info in infos
        ]

    # ============================================================
    # Owner enumeration
    # ============================================================
    def get_all_domains(self, owner: Pubkey) -> List[Pubkey]:
        """Keys of every .sol domain held directly by ``owner``."""
        accounts = self.rpc.get_program_accounts(
            NAME_PROGRAM_ID,
            filters=[MemcmpFilter(offset=32, bytes=owner), MemcmpFilter(offset=0, bytes=ROOT_DOMAIN_ACCOUNT)],
            data_slice=DataSlice(offset=0, length=0),
        )
        log.debug("%s owns %d domains", owner, len(accounts))
        return [account.pubkey for account in accounts]

    def get_domain_keys_with_reverses(self, owner: Pubkey) -> List[Tuple[Pubkey, Optional[str]]]:
        keys = self.get_all_domains(owner)
        return list(zip(keys, self.reverse_lookup_batch(keys)))

    # ============================================================
    # Primary domains and subdomains
    # ============================================================
    def get_primary_domain(self, wallet: Pubkey) -> Optional[PrimaryDomain]:
        """
        The domain ``wallet`` marked as its favourite, or None when it has not
        set one. ``stale`` is True when the domain has changed hands since.
        """
        info = self.rpc.fetch_account(get_primary_domain_key(wallet))
        if not info.exists:
            return None
        domain_key = PrimaryDomainState.deserialize(info.data).name_account

        registry_info, nft_info = self.rpc.fetch_accounts([domain_key, get_nft_record_key(domain_key)])
        if not registry_info.exists:
            log.debug("primary domain %s of %s no longer exists", domain_key, wallet)
            return None
        registry = RegistryState.deserialize(registry_info.data)

        owner = registry.owner
        if nft_info.exists and NftRecord.deserialize(nft_info.data).is_active:
            holder = self.get_nft_owner(domain_key)
            if holder is not None:
                owner = holder

        if registry.parent_name == ROOT_DOMAIN_ACCOUNT:
            name = self.reverse_lookup(domain_key)
        else:
            sub = self.reverse_lookup(domain_key, registry.parent_name)
            name = f"{sub}.{self.reverse_lookup(registry.parent_name)}"
        return PrimaryDomain(domain_key=domain_key, name=name, stale=owner != wallet)

    def get_primary_domains(self, wallets: Sequence[Pubkey]) -> List[Optional[PrimaryDomain]]:
        return self._map(self.get_primary_domain, wallets)

    def get_subdomains(self, domain: str) -> List[Subdomain]:
        """
        Subdomains of ``domain`` that have a reverse lookup, with their owners.

        A subdomain cannot have subdomains of its own, so one yields [].
        """
        result = get_domain_key(domain)
        if result.is_sub:
            return []
        parent = result.pubkey

        reverses = self.rpc.get_program_accounts(
            NAME_PROGRAM_ID,
            filters=[MemcmpFilter(offset=0, bytes=parent), MemcmpFilter(offset=64, bytes=REVERSE_LOOKUP_CLASS)],
        )
        # owner only: bytes 32..64 of each child account
        children = self.rpc.get_program_accounts(
            NAME_PROGRAM_ID,
            filters=[MemcmpFilter(offset=0, bytes=parent)],
            data_slice=DataSlice(offset=32, length=32),
        )

        names = {
            account.pubkey: deserialize_reverse(RegistryState.deserialize(account.account.data).data, trim_first_nul=True)
            for account in reverses
        }
        subdomains = []
        for child in children:
            name = names.get(get_reverse_key_from_domain_key(child.pubkey, parent))
            if name is not None:
                subdomains.append(Subdomain(name=name, owner=Pubkey.from_bytes(child.account.data)))
        log.debug("%s has %d subdomains", domain, len(subdomains))
        return subdomains

"""
Account fetching over Solana JSON-RPC.

``SolanaRpc`` is the only place that talks to the network. Anything with the
same methods (``fetch_account``, ``fetch_accounts``, ``get_program_accounts``
and ``get_token_largest_accounts``) can stand in for it.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Union

import base58
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.core import RPCException
from solana.rpc.types import DataSliceOpts, MemcmpOpts
from solders.pubkey import Pubkey

from sns_sdk.constants import MAX_ACCOUNTS_PER_CALL
from sns_sdk.errors import RpcError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountInfo:
    exists: bool
    data: bytes = b""
    # program that owns the account
    owner: Optional[Pubkey] = None


MISSING_ACCOUNT = AccountInfo(exists=False)


@dataclass(frozen=True)
class ProgramAccount:
    pubkey: Pubkey
    account: AccountInfo


@dataclass(frozen=True)
class MemcmpFilter:
    """Bytes at ``offset`` equal ``bytes``."""

    offset: int
    bytes: Union[bytes, str, Pubkey]

    def to_opts(self) -> MemcmpOpts:
        value = self.bytes
        if isinstance(value, Pubkey):
            value = str(value)
        elif isinstance(value, (bytes, bytearray)):
            value = base58.b58encode(bytes(value)).decode("ascii")
        return MemcmpOpts(offset=self.offset, bytes=value)


@dataclass(frozen=True)
class DataSizeFilter:
    """Account data length equals ``size``."""

    size: int


@dataclass(frozen=True)
class DataSlice:
    offset: int
    length: int


Filter = Union[MemcmpFilter, DataSizeFilter]


def _to_account_info(account) -> AccountInfo:
    if account is None:
        return MISSING_ACCOUNT
    return AccountInfo(exists=True, data=bytes(account.data), owner=account.owner)


@contextmanager
def _rpc_call(method: str) -> Iterator[None]:
    try:
        yield
    except (SolanaRpcException, RPCException) as exc:
        raise RpcError(f"RPC call {method} failed: {exc}", {"method": method}) from exc


class SolanaRpc:
    """Adapter from solana-py's ``Client`` to the account fetch interface."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_config(cls, config) -> "SolanaRpc":
        client = Client(config.rpc_url, commitment=config.commitment, timeout=config.timeout)
        return cls(client)

    def fetch_account(self, address: Pubkey) -> AccountInfo:
        log.debug("getAccountInfo %s", address)
        with _rpc_call("getAccountInfo"):
            res = self.client.get_account_info(address)
        return _to_account_info(res.value)

    def fetch_accounts(self, addresses: Sequence[Pubkey]) -> List[AccountInfo]:
        """Fetch many accounts; the result is aligned with ``addresses``."""
        addresses = list(addresses)
        accounts: List[AccountInfo] = []
        for start in range(0, len(addresses), MAX_ACCOUNTS_PER_CALL):
            chunk = addresses[start:start + MAX_ACCOUNTS_PER_CALL]
            log.debug("getMultipleAccounts %d keys", len(chunk))
            with _rpc_call("getMultipleAccounts"):
                res = self.client.get_multiple_accounts(chunk)
            accounts.extend(_to_account_info(account) for account in res.value)
        return accounts

    def get_program_accounts(
        self,
        program_id: Pubkey,
        filters: Sequence[Filter] = (),
        encoding: str = "base64",
        data_slice: Optional[DataSlice] = None,
    ) -> List[ProgramAccount]:
        opts = [f.size if isinstance(f, DataSizeFilter) else f.to_opts() for f in filters]
        slice_opts = DataSliceOpts(offset=data_slice.offset, length=data_slice.length) if data_slice else None

        log.debug("getProgramAccounts %s with %d filters", program_id, len(opts))
        with _rpc_call("getProgramAccounts"):
            res = self.client.get_program_accounts(
                program_id,
                encoding=encoding,
                data_slice=slice_opts,
                filters=opts or None,
            )
        return [ProgramAccount(pubkey=item.pubkey, account=_to_account_info(item.account)) for item in res.value]

    def get_token_largest_accounts(self, mint: Pubkey) -> List[Pubkey]:
        """Token accounts of ``mint``, largest balance first."""
        log.debug("getTokenLargestAccounts %s", mint)
        with _rpc_call("getTokenLargestAccounts"):
            res = self.client.get_token_largest_accounts(mint)
        return [balance.address for balance in res.value]

from types import SimpleNamespace
from unittest.mock import MagicMock

import base58
import httpx
import pytest
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.core import RPCException
from solana.rpc.types import DataSliceOpts, MemcmpOpts
from solders.pubkey import Pubkey

from sns_sdk.config import SnsConfig
from sns_sdk.errors import RpcError
from sns_sdk.rpc import MISSING_ACCOUNT, DataSizeFilter, DataSlice, MemcmpFilter, SolanaRpc


def raw_account(data: bytes, owner: Pubkey = None):
    return SimpleNamespace(data=data, owner=owner or Pubkey.new_unique())


@pytest.fixture
def client():
    return MagicMock()


def test_fetch_account(client):
    key, program = Pubkey.new_unique(), Pubkey.new_unique()
    client.get_account_info.return_value = SimpleNamespace(value=raw_account(b"abc", program))

    info = SolanaRpc(client).fetch_account(key)
    assert info.exists
    assert info.data == b"abc"
    assert info.owner == program
    client.get_account_info.assert_called_once_with(key)


def test_fetch_account_missing(client):
    client.get_account_info.return_value = SimpleNamespace(value=None)
    assert SolanaRpc(client).fetch_account(Pubkey.new_unique()) == MISSING_ACCOUNT


def test_fetch_accounts_chunks_and_keeps_order(client):
    keys = [Pubkey.new_unique() for _ in range(250)]

    def get_multiple_accounts(chunk):
        return SimpleNamespace(value=[raw_account(bytes(k)) if i % 3 else None for i, k in enumerate(chunk)])

    client.get_multiple_accounts.side_effect = get_multiple_accounts
    infos = SolanaRpc(client).fetch_accounts(keys)

    assert [len(c.args[0]) for c in client.get_multiple_accounts.call_args_list] == [100, 100, 50]
    assert len(infos) == 250
    assert infos[1].data == bytes(keys[1])
    assert infos[101].data == bytes(keys[101])
    assert not infos[100].exists


def test_fetch_accounts_empty(client):
    assert SolanaRpc(client).fetch_accounts([]) == []
    client.get_multiple_accounts.assert_not_called()


def test_get_program_accounts(client):
    program, owner, found = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
    client.get_program_accounts.return_value = SimpleNamespace(
        value=[SimpleNamespace(pubkey=found, account=raw_account(b""))]
    )

    accounts = SolanaRpc(client).get_program_accounts(
        program,
        filters=[MemcmpFilter(32, owner), MemcmpFilter(0, b"\x01\x02"), DataSizeFilter(96)],
        data_slice=DataSlice(0, 0),
    )

    assert [a.pubkey for a in accounts] == [found]
    assert accounts[0].account.exists
    client.get_program_accounts.assert_called_once_with(
        program,
        encoding="base64",
        data_slice=DataSliceOpts(offset=0, length=0),
        filters=[
            MemcmpOpts(offset=32, bytes=str(owner)),
            MemcmpOpts(offset=0, bytes=base58.b58encode(b"\x01\x02").decode()),
            96,
        ],
    )


def test_get_program_accounts_without_filters(client):
    client.get_program_accounts.return_value = SimpleNamespace(value=[])
    program = Pubkey.new_unique()
    assert SolanaRpc(client).get_program_accounts(program) == []
    client.get_program_accounts.assert_called_once_with(program, encoding="base64", data_slice=None, filters=None)


def test_rpc_failures_are_wrapped(client):
    # solana-py raises it with the provider, request body and parser as args
    client.get_account_info.side_effect = SolanaRpcException(
        httpx.ConnectError("connection refused"), Client.get_account_info, client, "getAccountInfo"
    )
    with pytest.raises(RpcError) as exc:
        SolanaRpc(client).fetch_account(Pubkey.new_unique())
    assert exc.value.details == {"method": "getAccountInfo"}
    assert isinstance(exc.value.__cause__, SolanaRpcException)


def test_from_config(monkeypatch):
    created = {}

    class FakeClient:
        def __init__(self, url, commitment=None, timeout=None):
            created.update(url=url, commitment=commitment, timeout=timeout)

    monkeypatch.setattr("sns_sdk.rpc.Client", FakeClient)
    rpc = SolanaRpc.from_config(SnsConfig(rpc_url="http://localhost:8899", commitment="finalized", timeout=3))
    assert isinstance(rpc.client, FakeClient)
    assert created == {"url": "http://localhost:8899", "commitment": "finalized", "timeout": 3}


def test_rpc_error_responses_are_wrapped(client):
    client.get_token_largest_accounts.side_effect = RPCException("Invalid param: not a Token mint")
    with pytest.raises(RpcError) as exc:
        SolanaRpc(client).get_token_largest_accounts(Pubkey.new_unique())
    assert exc.value.details == {"method": "getTokenLargestAccounts"}


def test_get_token_largest_accounts(client):
    mint = Pubkey.new_unique()
    holders = [Pubkey.new_unique(), Pubkey.new_unique()]
    client.get_token_largest_accounts.return_value = SimpleNamespace(
        value=[SimpleNamespace(address=holder, amount=None) for holder in holders]
    )
    assert SolanaRpc(client).get_token_largest_accounts(mint) == holders
    client.get_token_largest_accounts.assert_called_once_with(mint)

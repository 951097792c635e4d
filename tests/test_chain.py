"""Tests for the web3-backed eth_call executor (no network: fake w3)."""

import asyncio

import pytest

from accountkit.chain import CHAIN_DEFAULTS, Web3EthCall, resolve_rpc_url
from accountkit.integrity import IntegrityStatus, account_query
from accountkit.query import TransactionRequest


class FakeEth:
    def __init__(self, result: bytes = b"", error: Exception = None):
        self.result = result
        self.error = error
        self.params = []

    def call(self, params):
        self.params.append(params)
        if self.error:
            raise self.error
        return self.result


class FakeWeb3:
    def __init__(self, eth: FakeEth):
        self.eth = eth


class TestResolveRpcUrl:

    def test_default_chain(self, monkeypatch):
        monkeypatch.delenv("ACCOUNTKIT_RPC_URL", raising=False)
        monkeypatch.delenv("ACCOUNTKIT_CHAIN", raising=False)
        monkeypatch.delenv("GNOSIS_RPC_URL", raising=False)
        assert resolve_rpc_url() == CHAIN_DEFAULTS["gnosis"]["rpc"]

    def test_chain_env_override(self, monkeypatch):
        monkeypatch.delenv("ACCOUNTKIT_RPC_URL", raising=False)
        monkeypatch.setenv("ETHEREUM_RPC_URL", "http://eth.local:8545")
        assert resolve_rpc_url("ethereum") == "http://eth.local:8545"

    def test_explicit_url_wins(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTKIT_RPC_URL", "http://localhost:8545")
        assert resolve_rpc_url("ethereum") == "http://localhost:8545"

    def test_unknown_chain(self):
        with pytest.raises(KeyError):
            resolve_rpc_url("solana")


class TestWeb3EthCall:

    def test_sends_hex_calldata(self):
        eth = FakeEth(result=b"\x01\x02")
        executor = Web3EthCall(w3=FakeWeb3(eth))
        request = TransactionRequest(to="0xcA11bde05977b3631167028862bE2a173976CA11", data=b"\x82\xad\x56\xcb")

        raw = asyncio.run(executor(request))

        assert raw == b"\x01\x02"
        assert eth.params == [{"to": request.to, "data": "0x82ad56cb"}]
        assert executor.get_status()["calls"] == 1

    def test_errors_propagate(self):
        executor = Web3EthCall(w3=FakeWeb3(FakeEth(error=TimeoutError("slow rpc"))))
        request = TransactionRequest(to="0xcA11bde05977b3631167028862bE2a173976CA11", data=b"")
        with pytest.raises(TimeoutError):
            asyncio.run(executor(request))

    def test_drives_account_query(self, account, deployments, response):
        eth = FakeEth(result=response.build())
        executor = Web3EthCall(w3=FakeWeb3(eth))

        result = asyncio.run(account_query(account, 180, executor, deployments))

        assert result.status is IntegrityStatus.OK
        assert len(eth.params) == 1
        assert eth.params[0]["to"] == deployments.multicall

    def test_call_count_under_concurrency(self):
        executor = Web3EthCall(w3=FakeWeb3(FakeEth(result=b"\x00")))
        request = TransactionRequest(to="0xcA11bde05977b3631167028862bE2a173976CA11", data=b"")

        async def burst():
            return await asyncio.gather(*(executor(request) for _ in range(50)))

        assert len(asyncio.run(burst())) == 50
        assert executor.get_status()["calls"] == 50

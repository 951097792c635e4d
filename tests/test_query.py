"""Tests for the batched integrity query encoding."""

import pytest
from eth_abi import decode, encode
from eth_utils import keccak

from accountkit.abis import DELAY, MULTICALL, ROLES, SAFE
from accountkit.addresses import predict_delay_address, predict_roles_address
from accountkit.policy import ACCOUNT_POLICY, SPENDING_ALLOWANCE_KEY, InvalidAddress, MalformedResult
from accountkit.query import as_bytes, build_integrity_query


class TestContractInterface:

    def test_aggregate3_selector(self):
        assert MULTICALL.signature("aggregate3") == "aggregate3((address,bool,bytes)[])"
        assert MULTICALL.selector("aggregate3").hex() == "82ad56cb"

    def test_safe_selectors(self):
        assert SAFE.selector("getOwners").hex() == "a0e67e2b"
        assert SAFE.selector("getThreshold").hex() == "e75235b8"

    @pytest.mark.parametrize("interface,name,signature", [
        (ROLES, "setAllowance", "setAllowance(bytes32,uint128,uint128,uint128,uint64,uint64)"),
        (ROLES, "allowances", "allowances(bytes32)"),
        (SAFE, "getModulesPaginated", "getModulesPaginated(address,uint256)"),
        (MULTICALL, "getCurrentBlockTimestamp", "getCurrentBlockTimestamp()"),
    ])
    def test_selector_is_signature_hash(self, interface, name, signature):
        assert interface.signature(name) == signature
        assert interface.selector(name) == keccak(text=signature)[:4]

    def test_unknown_function(self):
        with pytest.raises(KeyError):
            SAFE.selector("transferOwnership")

    def test_modules_paginated_decodes_pair(self):
        modules = ["0x0000000000000000000000000000000000000009"]
        raw = encode(["address[]", "address"], [modules, ACCOUNT_POLICY.MODULES_SENTINEL])
        enabled, next_ = SAFE.decode_function_result("getModulesPaginated", raw)
        assert [m.lower() for m in enabled] == modules
        assert next_.lower() == ACCOUNT_POLICY.MODULES_SENTINEL


class TestBuildIntegrityQuery:

    def test_ten_reads(self, account, deployments):
        query = build_integrity_query(account, 180, deployments)
        assert len(query.calls) == 10
        assert query.aggregator == deployments.multicall

    def test_only_timestamp_read_is_strict(self, account, deployments):
        query = build_integrity_query(account, 180, deployments)
        assert [c.allow_failure for c in query.calls] == [True] * 9 + [False]

    def test_targets(self, account, deployments):
        query = build_integrity_query(account, 180, deployments)
        roles = predict_roles_address(account, deployments)
        delay = predict_delay_address(account, deployments)
        assert [c.target for c in query.calls] == (
            [account] * 3 + [roles] * 2 + [delay] * 4 + [deployments.multicall]
        )

    def test_call_data(self, account, deployments):
        calls = build_integrity_query(account, 180, deployments).calls
        assert calls[0].call_data == SAFE.selector("getOwners")
        assert calls[1].call_data == SAFE.selector("getThreshold")
        assert calls[2].call_data == SAFE.encode_function_data(
            "getModulesPaginated", [ACCOUNT_POLICY.MODULES_SENTINEL, 10]
        )
        assert calls[3].call_data == ROLES.selector("owner")
        assert calls[4].call_data[:4] == ROLES.selector("allowances")
        assert calls[4].call_data[4:] == SPENDING_ALLOWANCE_KEY
        assert calls[5].call_data == DELAY.selector("owner")
        assert calls[6].call_data == DELAY.selector("txCooldown")
        assert calls[7].call_data == DELAY.selector("txNonce")
        assert calls[8].call_data == DELAY.selector("queueNonce")
        assert calls[9].call_data == MULTICALL.selector("getCurrentBlockTimestamp")

    def test_encoded_calldata_round_trips(self, account, deployments):
        query = build_integrity_query(account, 180, deployments)
        data = query.encode()
        assert data[:4].hex() == "82ad56cb"
        (calls,) = decode(["(address,bool,bytes)[]"], data[4:])
        assert [(t.lower(), f, d) for t, f, d in calls] == [
            (c.target.lower(), c.allow_failure, c.call_data) for c in query.calls
        ]

    def test_to_request(self, account, deployments):
        request = build_integrity_query(account, 180, deployments).to_request()
        assert request.to == deployments.multicall
        assert request.value == 0
        params = request.to_rpc_params()
        assert params["data"].startswith("0x82ad56cb")

    def test_pure(self, account, deployments):
        assert build_integrity_query(account, 180, deployments) == \
            build_integrity_query(account, 180, deployments)

    def test_invalid_account(self, deployments):
        with pytest.raises(InvalidAddress):
            build_integrity_query("0x1234", 180, deployments)


class TestDecodeResult:

    def test_decodes_positional_results(self, account, deployments, response):
        query = build_integrity_query(account, 180, deployments)
        results = query.decode_result(response.fail("tx_nonce").build())
        assert len(results) == 10
        assert [r.success for r in results] == [True] * 7 + [False] + [True] * 2

    def test_accepts_hex(self, account, deployments, response):
        query = build_integrity_query(account, 180, deployments)
        raw = response.build()
        assert query.decode_result("0x" + raw.hex()) == query.decode_result(raw)

    def test_length_mismatch(self, account, deployments):
        query = build_integrity_query(account, 180, deployments)
        short = encode(["(bool,bytes)[]"], [[(True, b"")] * 9])
        with pytest.raises(MalformedResult):
            query.decode_result(short)

    def test_as_bytes_rejects_other_types(self):
        with pytest.raises(TypeError):
            as_bytes(12345)

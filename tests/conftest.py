"""Shared fixtures: a registry with a test Bouncer artifact and a fake
Multicall3 response builder for a fully wired account."""

import dataclasses

import pytest
from eth_abi import encode

from accountkit.addresses import (
    predict_account_address,
    predict_bouncer_address,
    predict_delay_address,
    predict_roles_address,
)
from accountkit.deployments import load_deployments
from accountkit.policy import ACCOUNT_POLICY

# Stand-in creation code; only its hash matters for address derivation
TEST_BOUNCER_BYTECODE = bytes.fromhex("6080604052348015600f57600080fd5b50")

OWNER = "0x0000000000000000000000000123456789abcdef"
OTHER_OWNER = "0x00000000000000000000000000000000deadbeef"

BLOCK_TIMESTAMP = 1_700_000_000


class IntegrityResponseBuilder:
    """
    Encodes an aggregate3 response for build_integrity_query(account).
    Defaults describe a freshly configured, healthy account; tests flip
    single fields to produce each fault.
    """

    READS = (
        "owners", "threshold", "modules",
        "roles_owner", "allowance",
        "delay_owner", "cooldown", "tx_nonce", "queue_nonce",
        "block_timestamp",
    )

    def __init__(self, account: str, deployments):
        self.account = account
        self.delay = predict_delay_address(account, deployments)
        self.roles = predict_roles_address(account, deployments)
        self.bouncer = predict_bouncer_address(account, deployments)

        self.owners = [ACCOUNT_POLICY.SENTINEL_OWNER]
        self.threshold = 1
        self.modules = [self.roles, self.delay]
        self.roles_owner = self.bouncer
        # refill, maxRefill, period, balance, timestamp
        self.allowance = (1000, 1000, 86400, 1000, BLOCK_TIMESTAMP)
        self.delay_owner = account
        self.cooldown = ACCOUNT_POLICY.DEFAULT_COOLDOWN_SECONDS
        self.tx_nonce = 0
        self.queue_nonce = 0
        self.block_timestamp = BLOCK_TIMESTAMP
        self.failed: set[str] = set()

    def fail(self, *reads: str) -> "IntegrityResponseBuilder":
        self.failed.update(reads)
        return self

    def _return_data(self) -> dict[str, bytes]:
        return {
            "owners": encode(["address[]"], [self.owners]),
            "threshold": encode(["uint256"], [self.threshold]),
            "modules": encode(
                ["address[]", "address"], [self.modules, ACCOUNT_POLICY.MODULES_SENTINEL]
            ),
            "roles_owner": encode(["address"], [self.roles_owner]),
            "allowance": encode(
                ["uint128", "uint128", "uint64", "uint128", "uint64"], list(self.allowance)
            ),
            "delay_owner": encode(["address"], [self.delay_owner]),
            "cooldown": encode(["uint256"], [self.cooldown]),
            "tx_nonce": encode(["uint256"], [self.tx_nonce]),
            "queue_nonce": encode(["uint256"], [self.queue_nonce]),
            "block_timestamp": encode(["uint256"], [self.block_timestamp]),
        }

    def build(self) -> bytes:
        data = self._return_data()
        results = [
            (False, b"") if name in self.failed else (True, data[name])
            for name in self.READS
        ]
        return encode(["(bool,bytes)[]"], [results])


@pytest.fixture
def deployments():
    return dataclasses.replace(load_deployments(env={}), bouncer_bytecode=TEST_BOUNCER_BYTECODE)


@pytest.fixture
def account(deployments):
    return predict_account_address(OWNER, deployments=deployments)


@pytest.fixture
def response(account, deployments):
    return IntegrityResponseBuilder(account, deployments)

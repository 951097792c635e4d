"""
Integrity Query - one Multicall3 round trip that reads an entire account

Ten reads, in a fixed order the evaluator relies on:
  0 safe.getOwners()            5 delay.owner()
  1 safe.getThreshold()         6 delay.txCooldown()
  2 safe.getModulesPaginated()  7 delay.txNonce()
  3 roles.owner()               8 delay.queueNonce()
  4 roles.allowances(key)       9 multicall.getCurrentBlockTimestamp()

Reads 0-8 tolerate failure (a module that is not deployed yet reports
success=false instead of reverting the batch). The timestamp read does
not: without it no accrual can be computed.
"""

from dataclasses import dataclass
from typing import Optional, Union

from eth_utils import to_bytes

from .abis import DELAY, MULTICALL, ROLES, SAFE
from .addresses import normalize_address, predict_delay_address, predict_roles_address
from .deployments import Deployments, get_deployments
from .policy import ACCOUNT_POLICY, SPENDING_ALLOWANCE_KEY, MalformedResult


@dataclass(frozen=True)
class Call3:
    target: str
    allow_failure: bool
    call_data: bytes


@dataclass(frozen=True)
class CallResult:
    success: bool
    return_data: bytes


@dataclass(frozen=True)
class TransactionRequest:
    """What the caller hands to eth_call. value is always 0 for reads."""
    to: str
    data: bytes
    value: int = 0

    def to_rpc_params(self) -> dict:
        return {"to": self.to, "data": "0x" + self.data.hex()}


@dataclass(frozen=True)
class BatchedQuery:
    aggregator: str
    calls: tuple[Call3, ...]

    def encode(self) -> bytes:
        """aggregate3 calldata, byte-exact with the deployed Multicall3."""
        return MULTICALL.encode_function_data("aggregate3", [
            [(c.target, c.allow_failure, c.call_data) for c in self.calls]
        ])

    def to_request(self) -> TransactionRequest:
        return TransactionRequest(to=self.aggregator, data=self.encode())

    def decode_result(self, result_data: Union[bytes, str]) -> list[CallResult]:
        """
        Decode aggregate3 return data. Results are positional: one per call,
        same order. Any other length is a defect, not a partial result.
        """
        (results,) = MULTICALL.decode_function_result("aggregate3", as_bytes(result_data))
        if len(results) != len(self.calls):
            raise MalformedResult(
                f"Expected {len(self.calls)} results, got {len(results)}"
            )
        return [CallResult(success=bool(ok), return_data=bytes(data)) for ok, data in results]


def as_bytes(data: Union[bytes, bytearray, str]) -> bytes:
    """eth_call results arrive as 0x-hex over JSON-RPC, raw bytes from web3."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        return to_bytes(hexstr=data)
    raise TypeError(f"Expected bytes or hex string, got {type(data).__name__}")


def build_integrity_query(
    account: str,
    cooldown: int = ACCOUNT_POLICY.DEFAULT_COOLDOWN_SECONDS,
    deployments: Optional[Deployments] = None,
) -> BatchedQuery:
    """
    Assemble the batched read for `account`.

    cooldown is not part of the request: it is only compared against
    txCooldown at evaluation time. It is accepted here so both halves of the
    query/evaluate pair share one signature.
    """
    deployments = deployments or get_deployments()
    account = normalize_address(account)
    roles = predict_roles_address(account, deployments)
    delay = predict_delay_address(account, deployments)

    calls = (
        Call3(account, True, SAFE.encode_function_data("getOwners")),
        Call3(account, True, SAFE.encode_function_data("getThreshold")),
        Call3(account, True, SAFE.encode_function_data(
            "getModulesPaginated",
            [ACCOUNT_POLICY.MODULES_SENTINEL, ACCOUNT_POLICY.MODULES_PAGE_SIZE],
        )),
        Call3(roles, True, ROLES.encode_function_data("owner")),
        Call3(roles, True, ROLES.encode_function_data("allowances", [SPENDING_ALLOWANCE_KEY])),
        Call3(delay, True, DELAY.encode_function_data("owner")),
        Call3(delay, True, DELAY.encode_function_data("txCooldown")),
        Call3(delay, True, DELAY.encode_function_data("txNonce")),
        Call3(delay, True, DELAY.encode_function_data("queueNonce")),
        Call3(
            deployments.multicall,
            False,
            MULTICALL.encode_function_data("getCurrentBlockTimestamp"),
        ),
    )
    return BatchedQuery(aggregator=deployments.multicall, calls=calls)

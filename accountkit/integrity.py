"""
Account Integrity - classify an account from one batched read

Checks run in a fixed order and the first failure decides the status:
  1. Safe deployed              → SAFE_NOT_DEPLOYED
  2. Safe 1/1 sentinel owner,
     exactly {delay, roles}     → SAFE_MISCONFIGURED
  3. Roles deployed             → ROLES_NOT_DEPLOYED
  4. Roles owned by Bouncer     → ROLES_MISCONFIGURED
  5. Delay deployed             → DELAY_NOT_DEPLOYED
  6. Delay owned by account,
     cooldown >= expected       → DELAY_MISCONFIGURED
  7. Delay queue empty          → DELAY_QUEUE_NOT_EMPTY
  8. OK (+ accrued allowance)

Policy deviations are statuses, not exceptions. Malformed bytes of any
kind become UNEXPECTED_ERROR: evaluation always returns a status.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from eth_abi import decode
from eth_utils import to_checksum_address

from .abis import MULTICALL, ROLES, SAFE
from .addresses import (
    normalize_address,
    predict_bouncer_address,
    predict_delay_address,
    predict_roles_address,
)
from .allowance import EMPTY_ALLOWANCE, AccrualResult, AllowanceSnapshot, accrue
from .deployments import Deployments, get_deployments
from .policy import ACCOUNT_POLICY
from .query import CallResult, TransactionRequest, build_integrity_query

logger = logging.getLogger("accountkit.integrity")

# Performs eth_call for a request, returns the raw return data
EthCallCallback = Callable[[TransactionRequest], Awaitable[Union[bytes, str]]]


class IntegrityStatus(str, Enum):
    OK = "ok"
    SAFE_NOT_DEPLOYED = "safe_not_deployed"
    SAFE_MISCONFIGURED = "safe_misconfigured"
    ROLES_NOT_DEPLOYED = "roles_not_deployed"
    ROLES_MISCONFIGURED = "roles_misconfigured"
    DELAY_NOT_DEPLOYED = "delay_not_deployed"
    DELAY_MISCONFIGURED = "delay_misconfigured"
    DELAY_QUEUE_NOT_EMPTY = "delay_queue_not_empty"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class AccountQueryResult:
    status: IntegrityStatus
    allowance: AccrualResult = EMPTY_ALLOWANCE

    def to_dict(self) -> dict:
        return {"status": self.status.value, "allowance": self.allowance.to_dict()}


def _decode_address(data: bytes) -> str:
    (value,) = decode(["address"], data)
    return to_checksum_address(value)


def _decode_uint(data: bytes) -> int:
    (value,) = decode(["uint256"], data)
    return value


# ============================================================
# CHECKS
# ============================================================

def _owners_ok(owners_result: bytes, threshold_result: bytes) -> bool:
    if _decode_uint(threshold_result) != ACCOUNT_POLICY.REQUIRED_THRESHOLD:
        return False
    (owners,) = SAFE.decode_function_result("getOwners", owners_result)
    return [to_checksum_address(o) for o in owners] == [ACCOUNT_POLICY.SENTINEL_OWNER]


def _modules_ok(account: str, modules_result: bytes, deployments: Deployments) -> bool:
    enabled, _next = SAFE.decode_function_result("getModulesPaginated", modules_result)
    if len(enabled) != ACCOUNT_POLICY.EXPECTED_MODULE_COUNT:
        return False
    enabled = {to_checksum_address(m) for m in enabled}
    return enabled == {
        predict_delay_address(account, deployments),
        predict_roles_address(account, deployments),
    }


def _roles_ok(account: str, roles_owner_result: bytes, deployments: Deployments) -> bool:
    return _decode_address(roles_owner_result) == predict_bouncer_address(account, deployments)


def _delay_ok(account: str, cooldown: int, owner_result: bytes, cooldown_result: bytes) -> bool:
    return (
        _decode_address(owner_result) == account
        and _decode_uint(cooldown_result) >= cooldown
    )


def _queue_empty(tx_nonce_result: bytes, queue_nonce_result: bytes) -> bool:
    return _decode_uint(tx_nonce_result) == _decode_uint(queue_nonce_result)


def classify(
    account: str,
    cooldown: int,
    results: list[CallResult],
    deployments: Optional[Deployments] = None,
) -> IntegrityStatus:
    """
    Run the ordered checks over decoded read results.
    May raise on malformed return data; evaluate_integrity_result maps that.
    """
    deployments = deployments or get_deployments()
    (
        owners,
        threshold,
        modules,
        roles_owner,
        allowance,
        delay_owner,
        tx_cooldown,
        tx_nonce,
        queue_nonce,
        _block_timestamp,
    ) = results

    if not (owners.success and threshold.success and modules.success):
        return IntegrityStatus.SAFE_NOT_DEPLOYED

    if (
        not _owners_ok(owners.return_data, threshold.return_data)
        or not _modules_ok(account, modules.return_data, deployments)
    ):
        return IntegrityStatus.SAFE_MISCONFIGURED

    if not (roles_owner.success and allowance.success):
        return IntegrityStatus.ROLES_NOT_DEPLOYED

    if not _roles_ok(account, roles_owner.return_data, deployments):
        return IntegrityStatus.ROLES_MISCONFIGURED

    if not (delay_owner.success and tx_cooldown.success and tx_nonce.success and queue_nonce.success):
        return IntegrityStatus.DELAY_NOT_DEPLOYED

    if not _delay_ok(account, cooldown, delay_owner.return_data, tx_cooldown.return_data):
        return IntegrityStatus.DELAY_MISCONFIGURED

    if not _queue_empty(tx_nonce.return_data, queue_nonce.return_data):
        return IntegrityStatus.DELAY_QUEUE_NOT_EMPTY

    return IntegrityStatus.OK


def _evaluate_allowance(allowance: CallResult, block_timestamp: CallResult) -> AccrualResult:
    (timestamp,) = MULTICALL.decode_function_result(
        "getCurrentBlockTimestamp", block_timestamp.return_data
    )
    values = ROLES.decode_function_result("allowances", allowance.return_data)
    return accrue(AllowanceSnapshot.from_call_result(values, timestamp))


# ============================================================
# ENTRYPOINTS
# ============================================================

def evaluate_integrity_result(
    account: str,
    cooldown: int,
    result_data: Union[bytes, str],
    deployments: Optional[Deployments] = None,
) -> AccountQueryResult:
    """
    Decode an aggregate3 response for build_integrity_query(account) and
    classify the account. Never raises.
    """
    try:
        deployments = deployments or get_deployments()
        account = normalize_address(account)
        query = build_integrity_query(account, cooldown, deployments)
        results = query.decode_result(result_data)

        status = classify(account, cooldown, results, deployments)
        if status is not IntegrityStatus.OK:
            logger.debug(f"Integrity {account}: {status.value}")
            return AccountQueryResult(status=status)

        allowance = _evaluate_allowance(results[4], results[9])
        logger.debug(f"Integrity {account}: ok | spendable={allowance.balance}")
        return AccountQueryResult(status=status, allowance=allowance)

    except Exception as e:
        logger.warning(f"Integrity evaluation failed for {account}: {type(e).__name__}: {e}")
        return AccountQueryResult(status=IntegrityStatus.UNEXPECTED_ERROR)


async def account_query(
    account: str,
    cooldown: int,
    do_eth_call: EthCallCallback,
    deployments: Optional[Deployments] = None,
) -> AccountQueryResult:
    """
    Build the batched read, send it with `do_eth_call`, evaluate the answer.

    One request, one await. Retries and cancellation belong to the caller,
    and errors raised by do_eth_call propagate unchanged.

    Usage:
        executor = Web3EthCall()
        result = await account_query(account, 180, executor)
        if result.status is IntegrityStatus.OK:
            print(result.allowance.balance)
    """
    deployments = deployments or get_deployments()
    account = normalize_address(account)

    request = build_integrity_query(account, cooldown, deployments).to_request()
    result_data = await do_eth_call(request)
    return evaluate_integrity_result(account, cooldown, result_data, deployments)

"""
Deployment Calldata - unsigned transactions that create the account's contracts

Each populate_* function returns the TransactionRequest whose execution
lands the contract exactly at the address predicted in addresses.py: same
factory, same initializer, same salt. Nothing here signs or sends.

  populate_account_creation(owner)      → SafeProxyFactory.createProxyWithNonce
  populate_spender_creation(owners, n)  → SafeProxyFactory.createProxyWithNonce
  populate_delay_creation(account)      → ModuleProxyFactory.deployModule
  populate_roles_creation(account)      → ModuleProxyFactory.deployModule
  populate_bouncer_creation(account)    → ERC-2470 singleton factory (salt ++ initcode)
"""

import logging
from typing import Optional, Sequence

from .abis import MODULE_PROXY_FACTORY, PROXY_FACTORY
from .addresses import (
    ZERO_SALT,
    bouncer_creation_bytecode,
    check_threshold,
    delay_initializer,
    normalize_address,
    roles_initializer,
    safe_initializer,
)
from .deployments import Deployments, get_deployments
from .policy import ACCOUNT_CREATION_NONCE, ACCOUNT_POLICY, SPENDER_CREATION_NONCE
from .query import TransactionRequest

logger = logging.getLogger("accountkit.populate")


def _safe_creation(
    owners: Sequence[str],
    threshold: int,
    creation_nonce: int,
    deployments: Deployments,
) -> TransactionRequest:
    owners = [normalize_address(o) for o in owners]
    initializer = safe_initializer(owners, threshold, deployments)
    return TransactionRequest(
        to=deployments.safe_proxy_factory,
        data=PROXY_FACTORY.encode_function_data(
            "createProxyWithNonce",
            [deployments.safe_mastercopy, initializer, creation_nonce],
        ),
    )


def populate_account_creation(
    owner: str,
    creation_nonce: int = ACCOUNT_CREATION_NONCE,
    deployments: Optional[Deployments] = None,
) -> TransactionRequest:
    """
    Deploys the 1/1 Safe for `owner`. The setup call travels inside the
    creation call as the initializer, so the proxy is never left unowned.
    """
    deployments = deployments or get_deployments()
    return _safe_creation([owner], 1, creation_nonce, deployments)


def populate_spender_creation(
    owners: Sequence[str],
    threshold: int,
    creation_nonce: int = SPENDER_CREATION_NONCE,
    deployments: Optional[Deployments] = None,
) -> TransactionRequest:
    check_threshold(owners, threshold)
    deployments = deployments or get_deployments()
    return _safe_creation(owners, threshold, creation_nonce, deployments)


def _module_creation(mastercopy: str, initializer: bytes, deployments: Deployments) -> TransactionRequest:
    return TransactionRequest(
        to=deployments.module_proxy_factory,
        data=MODULE_PROXY_FACTORY.encode_function_data(
            "deployModule",
            [mastercopy, initializer, ACCOUNT_POLICY.MODULE_SALT_NONCE],
        ),
    )


def populate_delay_creation(account: str, deployments: Optional[Deployments] = None) -> TransactionRequest:
    deployments = deployments or get_deployments()
    return _module_creation(deployments.delay_mastercopy, delay_initializer(account), deployments)


def populate_roles_creation(account: str, deployments: Optional[Deployments] = None) -> TransactionRequest:
    deployments = deployments or get_deployments()
    return _module_creation(deployments.roles_mastercopy, roles_initializer(account), deployments)


def populate_bouncer_creation(account: str, deployments: Optional[Deployments] = None) -> TransactionRequest:
    """
    The singleton factory has no ABI: calldata is the 32-byte salt followed
    by the raw creation code.
    """
    deployments = deployments or get_deployments()
    initcode = bouncer_creation_bytecode(account, deployments)
    logger.debug(f"Bouncer creation for {account}: {len(initcode)} bytes of initcode")
    return TransactionRequest(to=deployments.singleton_factory, data=ZERO_SALT + initcode)

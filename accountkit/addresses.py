"""
Address Derivation - predict where account contracts live before deployment

All contracts are deployed through CREATE2 factories:
  address = keccak256(0xff ++ deployer ++ salt ++ keccak256(initcode))[12:]

Derivation graph (pure functions, called in dependency order):
  owner ──► account (Safe proxy)
  account ──► delay   (Zodiac ModuleProxyFactory)
  account ──► roles   (Zodiac ModuleProxyFactory)
  account + roles ──► bouncer (ERC-2470 singleton factory)

No network access. Same inputs → same address, on every chain.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from eth_abi import encode
from eth_utils import (
    is_address,
    is_checksum_address,
    keccak,
    remove_0x_prefix,
    to_checksum_address,
)

from .abis import DELAY, ROLES, SAFE
from .deployments import Deployments, get_deployments
from .policy import (
    ACCOUNT_CREATION_NONCE,
    ACCOUNT_POLICY,
    ADDRESS_ZERO,
    SPENDER_CREATION_NONCE,
    InvalidAddress,
)

# Zodiac ModuleProxyFactory minimal proxy: prefix ++ mastercopy ++ suffix
_MODULE_PROXY_PREFIX = bytes.fromhex("602d8060093d393df3363d3d373d3d3d363d73")
_MODULE_PROXY_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

ZERO_SALT = b"\x00" * 32


class ModuleKind(str, Enum):
    DELAY = "delay"
    ROLES = "roles"
    BOUNCER = "bouncer"
    ALLOWANCE = "allowance"   # shared singleton, not derived


@dataclass(frozen=True)
class PredictedAddresses:
    account: str
    bouncer: str
    delay: str
    roles: str

    def to_dict(self) -> dict:
        return {
            "account": self.account,
            "bouncer": self.bouncer,
            "delay": self.delay,
            "roles": self.roles,
        }


def normalize_address(value) -> str:
    """
    Lowercase, uppercase or correctly checksummed hex → EIP-55 checksummed string.
    Mixed case with a wrong checksum is rejected (likely a typo).
    """
    if not isinstance(value, str) or not is_address(value):
        raise InvalidAddress(f"Invalid address: {value!r}")
    hex_body = remove_0x_prefix(value)
    mixed_case = hex_body != hex_body.lower() and hex_body != hex_body.upper()
    if mixed_case and not is_checksum_address(value):
        raise InvalidAddress(f"Bad checksum: {value!r}")
    return to_checksum_address(value)


def create2_address(deployer: str, salt: bytes, initcode: bytes) -> str:
    """keccak256(0xff ++ deployer ++ salt ++ keccak256(initcode))[12:]"""
    if len(salt) != 32:
        raise ValueError(f"CREATE2 salt must be 32 bytes, got {len(salt)}")
    preimage = (
        b"\xff"
        + bytes.fromhex(normalize_address(deployer)[2:])
        + salt
        + keccak(initcode)
    )
    return to_checksum_address("0x" + keccak(preimage).hex()[-40:])


def _factory_salt(initializer: bytes, salt_nonce: int) -> bytes:
    # Safe and Zodiac factories: keccak256(abi.encodePacked(keccak256(initializer), saltNonce))
    return keccak(keccak(initializer) + salt_nonce.to_bytes(32, "big"))


# ============================================================
# SAFE (ACCOUNT)
# ============================================================

def safe_initializer(
    owners: Sequence[str],
    threshold: int,
    deployments: Optional[Deployments] = None,
) -> bytes:
    """
    Calldata for Safe.setup(). Embedded in the proxy creation call, it
    is what sets owners/threshold/fallback handler on the new proxy.
    """
    deployments = deployments or get_deployments()
    return SAFE.encode_function_data("setup", [
        list(owners),
        threshold,
        ADDRESS_ZERO,                  # to: for setupModules
        b"",                           # data: for setupModules
        deployments.fallback_handler,
        ADDRESS_ZERO,                  # paymentToken
        0,                             # payment
        ADDRESS_ZERO,                  # paymentReceiver
    ])


def _predict_safe_address(
    owners: Sequence[str],
    threshold: int,
    creation_nonce: int,
    deployments: Optional[Deployments] = None,
) -> str:
    deployments = deployments or get_deployments()
    owners = [normalize_address(o) for o in owners]

    salt = _factory_salt(safe_initializer(owners, threshold, deployments), creation_nonce)
    initcode = deployments.proxy_creation_bytecode + encode(
        ["address"], [deployments.safe_mastercopy]
    )
    return create2_address(deployments.safe_proxy_factory, salt, initcode)


def predict_account_address(
    owner: str,
    creation_nonce: int = ACCOUNT_CREATION_NONCE,
    deployments: Optional[Deployments] = None,
) -> str:
    """
    Address of the 1/1 Safe created for `owner`.

    creation_nonce should normally be left at its default: it is what makes
    every caller arrive at the same account for the same owner.
    """
    return _predict_safe_address([owner], 1, creation_nonce, deployments)


def check_threshold(owners: Sequence[str], threshold: int):
    if not owners:
        raise ValueError("Spender Safe needs at least one owner")
    if not 1 <= threshold <= len(owners):
        raise ValueError(f"Threshold {threshold} out of range for {len(owners)} owners")


def predict_spender_address(
    owners: Sequence[str],
    threshold: int,
    creation_nonce: int = SPENDER_CREATION_NONCE,
    deployments: Optional[Deployments] = None,
) -> str:
    """Address of an n-of-m spender Safe (the delegate allowed to spend)."""
    check_threshold(owners, threshold)
    return _predict_safe_address(owners, threshold, creation_nonce, deployments)


# ============================================================
# ZODIAC MODULES
# ============================================================

def _predict_zodiac_module(
    mastercopy: str,
    initializer: bytes,
    deployments: Deployments,
) -> str:
    initcode = _MODULE_PROXY_PREFIX + bytes.fromhex(mastercopy[2:]) + _MODULE_PROXY_SUFFIX
    salt = _factory_salt(initializer, ACCOUNT_POLICY.MODULE_SALT_NONCE)
    return create2_address(deployments.module_proxy_factory, salt, initcode)


def delay_initializer(account: str) -> bytes:
    """setUp(abi.encode(owner, avatar, target, cooldown, expiration)), all bound to the account."""
    account = normalize_address(account)
    init_params = encode(
        ["address", "address", "address", "uint256", "uint256"],
        [account, account, account, 0, ACCOUNT_POLICY.DELAY_EXPIRATION_SECONDS],
    )
    return DELAY.encode_function_data("setUp", [init_params])


def roles_initializer(account: str) -> bytes:
    """setUp(abi.encode(owner, avatar, target)). Ownership moves to the Bouncer after setup."""
    account = normalize_address(account)
    init_params = encode(["address", "address", "address"], [account, account, account])
    return ROLES.encode_function_data("setUp", [init_params])


def predict_delay_address(account: str, deployments: Optional[Deployments] = None) -> str:
    deployments = deployments or get_deployments()
    return _predict_zodiac_module(
        deployments.delay_mastercopy, delay_initializer(account), deployments
    )


def predict_roles_address(account: str, deployments: Optional[Deployments] = None) -> str:
    deployments = deployments or get_deployments()
    return _predict_zodiac_module(
        deployments.roles_mastercopy, roles_initializer(account), deployments
    )


# ============================================================
# BOUNCER
# ============================================================

def bouncer_creation_bytecode(account: str, deployments: Optional[Deployments] = None) -> bytes:
    """
    Bouncer initcode = creationCode + abi.encode(from, to, selector).

    Binds the Bouncer to exactly one account (the only allowed caller) and
    one permission target (Roles.setAllowance on that account's Roles).
    """
    deployments = deployments or get_deployments()
    account = normalize_address(account)
    constructor_args = encode(
        ["address", "address", "bytes4"],
        [
            account,
            predict_roles_address(account, deployments),
            ROLES.selector("setAllowance"),
        ],
    )
    return deployments.require_bouncer_bytecode() + constructor_args


def predict_bouncer_address(account: str, deployments: Optional[Deployments] = None) -> str:
    deployments = deployments or get_deployments()
    return create2_address(
        deployments.singleton_factory,
        ZERO_SALT,
        bouncer_creation_bytecode(account, deployments),
    )


# ============================================================
# ENTRYPOINTS
# ============================================================

def predict_module_address(
    account: str,
    kind: ModuleKind,
    deployments: Optional[Deployments] = None,
) -> str:
    deployments = deployments or get_deployments()
    kind = ModuleKind(kind)
    if kind is ModuleKind.DELAY:
        return predict_delay_address(account, deployments)
    if kind is ModuleKind.ROLES:
        return predict_roles_address(account, deployments)
    if kind is ModuleKind.BOUNCER:
        return predict_bouncer_address(account, deployments)
    normalize_address(account)
    return deployments.allowance_singleton


def predict_addresses(
    owner: str,
    creation_nonce: int = ACCOUNT_CREATION_NONCE,
    deployments: Optional[Deployments] = None,
) -> PredictedAddresses:
    """Every per-account address, starting from the owner EOA."""
    deployments = deployments or get_deployments()
    account = predict_account_address(owner, creation_nonce, deployments)
    return PredictedAddresses(
        account=account,
        bouncer=predict_bouncer_address(account, deployments),
        delay=predict_delay_address(account, deployments),
        roles=predict_roles_address(account, deployments),
    )

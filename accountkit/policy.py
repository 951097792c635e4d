"""
Account Policy - fixed configuration every account must satisfy

An account is a Safe (1/1, placeholder owner) with exactly two modules
enabled: a Zodiac Delay (owned by the account) and a Roles modifier
(owned by the account's Bouncer). These values are what the integrity
check compares on-chain state against.
"""

from dataclasses import dataclass
from typing import Final

from eth_utils import keccak


class AccountKitError(Exception):
    """Base class for every error raised by accountkit."""
    pass


class InvalidAddress(AccountKitError, ValueError):
    """Raised when an address is not 20-byte hex or fails its EIP-55 checksum."""
    pass


class DeploymentRegistryError(AccountKitError):
    """Raised when the deployment registry is incomplete or malformed."""
    pass


class MalformedResult(AccountKitError):
    """Raised when a batched read response does not line up with its query."""
    pass


# ============================================================
# WELL-KNOWN CONSTANTS
# ============================================================

# Salt nonces are derived from fixed labels so every caller predicts the
# same Safe address for the same owner. Changing a label changes every address.
ACCOUNT_CREATION_NONCE: Final[int] = int.from_bytes(keccak(text="accountkit.account.creation"), "big")
SPENDER_CREATION_NONCE: Final[int] = int.from_bytes(keccak(text="accountkit.spender.creation"), "big")

# Key of the single allowance entry the Roles modifier tracks for spending
SPENDING_ALLOWANCE_KEY: Final[bytes] = keccak(text="SPENDING_ALLOWANCE")

ADDRESS_ZERO: Final[str] = "0x" + "0" * 40


@dataclass(frozen=True)
class AccountPolicy:
    """Frozen dataclass = values cannot drift at runtime."""

    # --- SAFE ---
    REQUIRED_THRESHOLD: Final[int] = 1
    # Owner installed at creation, swapped out only by a configured flow
    SENTINEL_OWNER: Final[str] = "0x0000000000000000000000000000000000000002"
    # Head of the Safe module linked list
    MODULES_SENTINEL: Final[str] = "0x0000000000000000000000000000000000000001"
    MODULES_PAGE_SIZE: Final[int] = 10
    EXPECTED_MODULE_COUNT: Final[int] = 2

    # --- DELAY ---
    DEFAULT_COOLDOWN_SECONDS: Final[int] = 180    # 3 min between enqueue and execute
    DELAY_EXPIRATION_SECONDS: Final[int] = 0      # 0 = queued transactions never expire

    # --- MODULE FACTORY ---
    MODULE_SALT_NONCE: Final[int] = 0


ACCOUNT_POLICY = AccountPolicy()

"""
Deployment Registry - canonical contract addresses and creation code

Every contract the account is assembled from was deployed with CREATE2, so
its address is the same on every EVM chain that carries it. Addresses can
be overridden from the environment (e.g. a local devnet with its own
Multicall3). The Bouncer creation bytecode is a compiled artifact and must
be supplied, either inline or as a JSON file:

    ACCOUNTKIT_BOUNCER_BYTECODE=0x6080...
    ACCOUNTKIT_BOUNCER_ARTIFACT=artifacts/Bouncer.json   # {"bytecode": "0x..."}
"""

import os
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from eth_utils import is_hex, to_checksum_address

from .policy import DeploymentRegistryError

logger = logging.getLogger("accountkit.deployments")


# ============================================================
# CANONICAL ADDRESSES
# ============================================================

DEFAULT_ADDRESSES = {
    # Safe v1.3.0
    "safe_proxy_factory": "0xa6B71E26C5e0845f74c812102Ca7114b6a896AB2",
    "safe_mastercopy": "0xd9Db270c1B5E3Bd161E8c8503c55cEABeE709552",
    "fallback_handler": "0xf48f2B2d2a534e402487b3ee7C18c33Aec0Fe5e4",
    # Shared allowance module (not per-account)
    "allowance_singleton": "0xCFbFaC74C26F8647cBDb8c5caf80BB5b32E43134",
    # Zodiac
    "module_proxy_factory": "0x000000000000aDdB49795b0f9bA5BC298cDda236",
    "delay_mastercopy": "0xD62129BF40CD1694b3d9D9847367783a1A4d5cB4",
    "roles_mastercopy": "0x9646fDAD06d3e24444381f44362a3B0eB343D337",
    # ERC-2470 singleton factory (Bouncer deployer)
    "singleton_factory": "0xce0042B868300000d44A59004Da54A005ffdcf9f",
    # Multicall3 (batched reads)
    "multicall": "0xcA11bde05977b3631167028862bE2a173976CA11",
}

# Creation bytecode of GnosisSafeProxy v1.3.0 (constructor takes the singleton)
PROXY_CREATION_BYTECODE = bytes.fromhex(
    "608060405234801561001057600080fd5b506040516101e63803806101e6833981810160"
    "4052602081101561003357600080fd5b8101908080519060200190929190505050600073"
    "ffffffffffffffffffffffffffffffffffffffff168173ffffffffffffffffffffffffff"
    "ffffffffffffff1614156100ca576040517f08c379a00000000000000000000000000000"
    "000000000000000000000000000081526004018080602001828103825260228152602001"
    "806101c46022913960400191505060405180910390fd5b806000806101000a81548173ff"
    "ffffffffffffffffffffffffffffffffffffff021916908373ffffffffffffffffffffff"
    "ffffffffffffffffff1602179055505060ab806101196000396000f3fe608060405273ff"
    "ffffffffffffffffffffffffffffffffffffff600054167fa619486e0000000000000000"
    "000000000000000000000000000000000000000060003514156050578060005260206000"
    "f35b3660008037600080366000845af43d6000803e60008114156070573d6000fd5b3d60"
    "00f3fea2646970667358221220d1429297349653a4918076d650332de1a1068c5f3e07c5"
    "c82360c277770b955264736f6c63430007060033496e76616c69642073696e676c65746f"
    "6e20616464726573732070726f7669646564"
)


@dataclass(frozen=True)
class Deployments:
    """Read-only registry. All addresses are EIP-55 checksummed."""
    safe_proxy_factory: str
    safe_mastercopy: str
    fallback_handler: str
    allowance_singleton: str
    module_proxy_factory: str
    delay_mastercopy: str
    roles_mastercopy: str
    singleton_factory: str
    multicall: str
    proxy_creation_bytecode: bytes = PROXY_CREATION_BYTECODE
    bouncer_bytecode: Optional[bytes] = None

    def require_bouncer_bytecode(self) -> bytes:
        if not self.bouncer_bytecode:
            raise DeploymentRegistryError(
                "Bouncer creation bytecode not configured "
                "(set ACCOUNTKIT_BOUNCER_BYTECODE or ACCOUNTKIT_BOUNCER_ARTIFACT)"
            )
        return self.bouncer_bytecode


def _parse_bytecode(value: str, source: str) -> bytes:
    value = value.strip()
    if not value.startswith("0x") or not is_hex(value) or len(value) % 2:
        raise DeploymentRegistryError(f"Bouncer bytecode from {source} is not 0x-prefixed hex")
    return bytes.fromhex(value[2:])


def load_bouncer_artifact(path: Path) -> bytes:
    """
    Read Bouncer creation bytecode from a compiled artifact.
    Accepts {"bytecode": "0x..."} or {"Bouncer": {"bytecode": "0x..."}}.
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DeploymentRegistryError(f"Cannot read Bouncer artifact {path}: {e}") from e

    if "Bouncer" in data:
        data = data["Bouncer"]
    bytecode = data.get("bytecode") if isinstance(data, dict) else None
    if isinstance(bytecode, dict):
        # hardhat/foundry style: {"bytecode": {"object": "0x..."}}
        bytecode = bytecode.get("object")
    if not isinstance(bytecode, str):
        raise DeploymentRegistryError(f"Unexpected artifact format in {path}: no 'bytecode'")
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return _parse_bytecode(bytecode, str(path))


def load_deployments(env: Optional[Mapping[str, str]] = None) -> Deployments:
    """
    Build the registry from canonical addresses plus environment overrides.

    Overrides: ACCOUNTKIT_<FIELD_NAME_UPPER> for any address, e.g.
    ACCOUNTKIT_MULTICALL=0x...
    """
    env = os.environ if env is None else env

    addresses = {}
    for field_name, default in DEFAULT_ADDRESSES.items():
        env_key = f"ACCOUNTKIT_{field_name.upper()}"
        value = env.get(env_key) or default
        try:
            addresses[field_name] = to_checksum_address(value)
        except ValueError as e:
            raise DeploymentRegistryError(f"{env_key} is not an address: {value!r}") from e
        if env.get(env_key):
            logger.info(f"Registry override: {field_name}={addresses[field_name]}")

    bouncer_bytecode = None
    if env.get("ACCOUNTKIT_BOUNCER_BYTECODE"):
        bouncer_bytecode = _parse_bytecode(env["ACCOUNTKIT_BOUNCER_BYTECODE"], "ACCOUNTKIT_BOUNCER_BYTECODE")
    elif env.get("ACCOUNTKIT_BOUNCER_ARTIFACT"):
        bouncer_bytecode = load_bouncer_artifact(Path(env["ACCOUNTKIT_BOUNCER_ARTIFACT"]))
    else:
        logger.debug("No Bouncer bytecode configured, bouncer prediction unavailable")

    return Deployments(**addresses, bouncer_bytecode=bouncer_bytecode)


@lru_cache(maxsize=1)
def get_deployments() -> Deployments:
    """Process-wide registry, read from the environment once."""
    return load_deployments()

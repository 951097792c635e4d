"""
Contract Interfaces - embedded minimal ABIs

Only the functions accountkit encodes or decodes, no compiled JSON needed.
ContractInterface turns an ABI list into calldata / decoded return values
with eth_abi, so the byte layout is exactly what the deployed contracts use.
"""

from typing import Sequence

from eth_abi import decode, encode
from eth_utils.abi import collapse_if_tuple, function_abi_to_4byte_selector


# ============================================================
# SAFE (v1.3.0)
# ============================================================

SAFE_ABI = [
    # setup(...): the initializer embedded in proxy creation
    {
        "inputs": [
            {"name": "_owners", "type": "address[]"},
            {"name": "_threshold", "type": "uint256"},
            {"name": "to", "type": "address"},
            {"name": "data", "type": "bytes"},
            {"name": "fallbackHandler", "type": "address"},
            {"name": "paymentToken", "type": "address"},
            {"name": "payment", "type": "uint256"},
            {"name": "paymentReceiver", "type": "address"},
        ],
        "name": "setup",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getOwners",
        "outputs": [{"name": "", "type": "address[]"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getThreshold",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    # getModulesPaginated(start, pageSize) → (array, next)
    {
        "inputs": [
            {"name": "start", "type": "address"},
            {"name": "pageSize", "type": "uint256"},
        ],
        "name": "getModulesPaginated",
        "outputs": [
            {"name": "array", "type": "address[]"},
            {"name": "next", "type": "address"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


# ============================================================
# ZODIAC DELAY
# ============================================================

DELAY_ABI = [
    # setUp(bytes): abi.encode(owner, avatar, target, cooldown, expiration)
    {
        "inputs": [{"name": "initializeParams", "type": "bytes"}],
        "name": "setUp",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "txCooldown",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "txNonce",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "queueNonce",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


# ============================================================
# ZODIAC ROLES (v2)
# ============================================================

ROLES_ABI = [
    # setUp(bytes): abi.encode(owner, avatar, target)
    {
        "inputs": [{"name": "initParams", "type": "bytes"}],
        "name": "setUp",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    # allowances(key) → (refill, maxRefill, period, balance, timestamp)
    {
        "inputs": [{"name": "", "type": "bytes32"}],
        "name": "allowances",
        "outputs": [
            {"name": "refill", "type": "uint128"},
            {"name": "maxRefill", "type": "uint128"},
            {"name": "period", "type": "uint64"},
            {"name": "balance", "type": "uint128"},
            {"name": "timestamp", "type": "uint64"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    # setAllowance: the only call the Bouncer forwards
    {
        "inputs": [
            {"name": "key", "type": "bytes32"},
            {"name": "balance", "type": "uint128"},
            {"name": "maxRefill", "type": "uint128"},
            {"name": "refill", "type": "uint128"},
            {"name": "period", "type": "uint64"},
            {"name": "timestamp", "type": "uint64"},
        ],
        "name": "setAllowance",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


# ============================================================
# MULTICALL3
# ============================================================

MULTICALL_ABI = [
    # aggregate3(Call3[]) → Result[]
    {
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "name": "aggregate3",
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "getCurrentBlockTimestamp",
        "outputs": [{"name": "timestamp", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


# ============================================================
# FACTORIES (calldata for deployment transactions)
# ============================================================

PROXY_FACTORY_ABI = [
    # createProxyWithNonce(singleton, initializer, saltNonce) → proxy
    {
        "inputs": [
            {"name": "_singleton", "type": "address"},
            {"name": "initializer", "type": "bytes"},
            {"name": "saltNonce", "type": "uint256"},
        ],
        "name": "createProxyWithNonce",
        "outputs": [{"name": "proxy", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

MODULE_PROXY_FACTORY_ABI = [
    {
        "inputs": [
            {"name": "masterCopy", "type": "address"},
            {"name": "initializer", "type": "bytes"},
            {"name": "saltNonce", "type": "uint256"},
        ],
        "name": "deployModule",
        "outputs": [{"name": "proxy", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class ContractInterface:
    """
    Encodes calls and decodes results for one ABI.

    Usage:
        SAFE = ContractInterface(SAFE_ABI)
        data = SAFE.encode_function_data("getModulesPaginated", [start, 10])
        modules, next_ = SAFE.decode_function_result("getModulesPaginated", raw)
    """

    def __init__(self, abi: list[dict]):
        self._functions = {
            entry["name"]: entry for entry in abi if entry.get("type") == "function"
        }

    def _function(self, name: str) -> dict:
        try:
            return self._functions[name]
        except KeyError:
            raise KeyError(f"Function '{name}' not in ABI") from None

    def input_types(self, name: str) -> list[str]:
        return [collapse_if_tuple(p) for p in self._function(name)["inputs"]]

    def output_types(self, name: str) -> list[str]:
        return [collapse_if_tuple(p) for p in self._function(name)["outputs"]]

    def signature(self, name: str) -> str:
        return f"{name}({','.join(self.input_types(name))})"

    def selector(self, name: str) -> bytes:
        return function_abi_to_4byte_selector(self._function(name))

    def encode_function_data(self, name: str, args: Sequence = ()) -> bytes:
        return self.selector(name) + encode(self.input_types(name), list(args))

    def decode_function_result(self, name: str, data: bytes) -> tuple:
        return decode(self.output_types(name), data)


SAFE = ContractInterface(SAFE_ABI)
DELAY = ContractInterface(DELAY_ABI)
ROLES = ContractInterface(ROLES_ABI)
MULTICALL = ContractInterface(MULTICALL_ABI)
PROXY_FACTORY = ContractInterface(PROXY_FACTORY_ABI)
MODULE_PROXY_FACTORY = ContractInterface(MODULE_PROXY_FACTORY_ABI)

"""
Chain Reader - eth_call executor for integrity queries

The only network I/O in accountkit. Sends one TransactionRequest with
eth_call and returns the raw return data.

Design:
- Sync Web3 calls wrapped in asyncio.run_in_executor() (web3.py async is fragile)
- No retry: a failed call raises, the caller decides what to do
- RPC URL from ACCOUNTKIT_RPC_URL, else the chain default
"""

import os
import asyncio
import logging
import threading
from typing import Optional

from .query import TransactionRequest

logger = logging.getLogger("accountkit.chain")


# ============================================================
# CHAIN DEFAULTS
# ============================================================

CHAIN_DEFAULTS = {
    "gnosis": {
        "rpc": "https://rpc.gnosischain.com",
        "chain_id": 100,
        "explorer": "https://gnosisscan.io",
    },
    "ethereum": {
        "rpc": "https://cloudflare-eth.com",
        "chain_id": 1,
        "explorer": "https://etherscan.io",
    },
}

DEFAULT_CHAIN = "gnosis"


def resolve_rpc_url(chain_id: Optional[str] = None) -> str:
    """ACCOUNTKIT_RPC_URL wins, then <CHAIN>_RPC_URL, then the public default."""
    chain_id = (chain_id or os.getenv("ACCOUNTKIT_CHAIN", DEFAULT_CHAIN)).lower()
    chain_cfg = CHAIN_DEFAULTS.get(chain_id)
    if not chain_cfg:
        raise KeyError(f"Unknown chain: {chain_id}")
    return os.getenv("ACCOUNTKIT_RPC_URL") or os.getenv(f"{chain_id.upper()}_RPC_URL", chain_cfg["rpc"])


class Web3EthCall:
    """
    Awaitable eth_call callback for account_query().

    Usage:
        executor = Web3EthCall()                    # RPC from env / defaults
        executor = Web3EthCall(rpc_url="http://localhost:8545")
        raw = await executor(request)
    """

    def __init__(self, rpc_url: Optional[str] = None, timeout: int = 30, w3=None):
        if w3 is None:
            from web3 import Web3

            rpc_url = rpc_url or resolve_rpc_url()
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self._w3 = w3
        self.rpc_url = rpc_url or ""
        self._call_count = 0
        self._count_lock = threading.Lock()

    def call(self, request: TransactionRequest) -> bytes:
        """Blocking eth_call against the latest block."""
        result = self._w3.eth.call({"to": request.to, "data": "0x" + request.data.hex()})
        with self._count_lock:
            self._call_count += 1
        return bytes(result)

    async def __call__(self, request: TransactionRequest) -> bytes:
        try:
            return await asyncio.get_running_loop().run_in_executor(None, self.call, request)
        except Exception as e:
            logger.warning(f"eth_call to {request.to} failed: {type(e).__name__}: {e}")
            raise

    def get_status(self) -> dict:
        return {"rpc_url": self.rpc_url, "calls": self._call_count}

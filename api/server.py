"""
accountkit API Server - FastAPI Backend

Endpoints:
- GET  /health                          Heartbeat + registry summary
- GET  /predict/{owner}                 Predicted account/module addresses
- GET  /account/{account}/integrity     Batched integrity check + allowance

Read-only. Nothing is signed or sent; the integrity check is one eth_call.
"""

import os
import time
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from accountkit.addresses import normalize_address, predict_addresses
from accountkit.deployments import Deployments, get_deployments
from accountkit.integrity import EthCallCallback, account_query
from accountkit.policy import ACCOUNT_POLICY, AccountKitError, InvalidAddress

logger = logging.getLogger("accountkit.api")


# ============================================================
# MODELS
# ============================================================

class PredictResponse(BaseModel):
    owner: str
    account: str
    bouncer: str
    delay: str
    roles: str


class AllowanceResponse(BaseModel):
    # Decimal strings: uint128 amounts do not fit a JSON number
    balance: str
    refill: str
    max_refill: str
    period: str
    next_refill: Optional[str] = None


class IntegrityResponse(BaseModel):
    account: str
    cooldown: int
    status: str
    allowance: AllowanceResponse
    checked_at: float


# ============================================================
# SERVER FACTORY
# ============================================================

def create_app(
    eth_call: Optional[EthCallCallback] = None,
    deployments: Optional[Deployments] = None,
) -> FastAPI:
    """
    Create the FastAPI app.

    eth_call: async fn(TransactionRequest) -> bytes. Defaults to a
              Web3EthCall built from the environment on first use.
    deployments: registry override (tests, devnets).
    """
    app = FastAPI(
        title="accountkit",
        description="Address prediction and integrity checks for Safe-based accounts.",
        version="0.1.0",
    )

    cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    state = {"eth_call": eth_call, "queries": 0, "errors": 0}

    def _registry() -> Deployments:
        return deployments or get_deployments()

    def _executor() -> EthCallCallback:
        if state["eth_call"] is None:
            from accountkit.chain import Web3EthCall
            state["eth_call"] = Web3EthCall()
        return state["eth_call"]

    # ============================================================
    # ROUTES
    # ============================================================

    @app.get("/health")
    async def health():
        """Heartbeat endpoint."""
        registry = _registry()
        return {
            "ok": True,
            "multicall": registry.multicall,
            "bouncer_configured": registry.bouncer_bytecode is not None,
            "queries": state["queries"],
            "errors": state["errors"],
        }

    @app.get("/predict/{owner}", response_model=PredictResponse)
    async def predict(owner: str):
        """Every address the owner's account will have, before deployment."""
        try:
            owner = normalize_address(owner)
            addresses = predict_addresses(owner, deployments=_registry())
        except InvalidAddress as e:
            raise HTTPException(400, str(e))
        except AccountKitError as e:
            logger.error(f"Prediction unavailable: {e}")
            raise HTTPException(503, str(e))
        return PredictResponse(owner=owner, **addresses.to_dict())

    @app.get("/account/{account}/integrity", response_model=IntegrityResponse)
    async def integrity(
        account: str,
        cooldown: int = Query(ACCOUNT_POLICY.DEFAULT_COOLDOWN_SECONDS, ge=0),
    ):
        """Integrity status and accrued spending allowance."""
        state["queries"] += 1
        try:
            account = normalize_address(account)
            result = await account_query(account, cooldown, _executor(), _registry())
        except InvalidAddress as e:
            raise HTTPException(400, str(e))
        except Exception as e:
            state["errors"] += 1
            logger.error(f"Integrity query failed for {account}: {type(e).__name__}: {e}")
            raise HTTPException(502, "Chain read failed")

        return IntegrityResponse(
            account=account,
            cooldown=cooldown,
            status=result.status.value,
            allowance=AllowanceResponse(**result.allowance.to_dict()),
            checked_at=time.time(),
        )

    return app

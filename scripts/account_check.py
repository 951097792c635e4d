"""
Account Check - predict addresses and run the integrity query for an owner

Usage:
    python scripts/account_check.py --owner 0x...                 # Predict + query
    python scripts/account_check.py --owner 0x... --predict-only  # No RPC needed
    python scripts/account_check.py --account 0x... --cooldown 600
    python scripts/account_check.py --owner 0x... --json

Environment (.env):
    ACCOUNTKIT_RPC_URL           eth_call endpoint (default: Gnosis public RPC)
    ACCOUNTKIT_BOUNCER_ARTIFACT  compiled Bouncer JSON (needed for bouncer checks)
    ACCOUNTKIT_DEFAULT_COOLDOWN  expected delay cooldown in seconds
"""

import os
import sys
import json
import asyncio
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))
load_dotenv(ROOT / ".env")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("accountkit.account_check")

from accountkit.addresses import normalize_address, predict_addresses  # noqa: E402
from accountkit.chain import Web3EthCall  # noqa: E402
from accountkit.integrity import IntegrityStatus, account_query  # noqa: E402
from accountkit.policy import ACCOUNT_POLICY, AccountKitError  # noqa: E402


def main():
    parser = argparse.ArgumentParser(
        description="Predict account addresses and check on-chain integrity",
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--owner", help="Owner EOA (account address is predicted)")
    target.add_argument("--account", help="Account (Safe) address, skip prediction")
    parser.add_argument(
        "--cooldown", type=int,
        default=int(os.getenv("ACCOUNTKIT_DEFAULT_COOLDOWN", ACCOUNT_POLICY.DEFAULT_COOLDOWN_SECONDS)),
        help="Minimum delay cooldown in seconds",
    )
    parser.add_argument("--rpc", default=None, help="RPC URL (overrides ACCOUNTKIT_RPC_URL)")
    parser.add_argument(
        "--predict-only", action="store_true",
        help="Only print predicted addresses (requires --owner)",
    )
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args()
    if args.predict_only and not args.owner:
        parser.error("--predict-only requires --owner")

    output: dict = {}
    try:
        if args.owner:
            predicted = predict_addresses(args.owner)
            account = predicted.account
            output["predicted"] = predicted.to_dict()
        else:
            account = normalize_address(args.account)
    except AccountKitError as e:
        logger.error(str(e))
        sys.exit(1)

    if not args.predict_only:
        executor = Web3EthCall(rpc_url=args.rpc)
        result = asyncio.run(account_query(account, args.cooldown, executor))
        output["integrity"] = {"account": account, "cooldown": args.cooldown, **result.to_dict()}

    if args.json:
        print(json.dumps(output, indent=2))
        return

    logger.info("=" * 60)
    if "predicted" in output:
        for name, addr in output["predicted"].items():
            logger.info(f"  {name.upper():<8} {addr}")
    if "integrity" in output:
        integrity = output["integrity"]
        allowance = integrity["allowance"]
        logger.info(f"  STATUS:   {integrity['status']}")
        if integrity["status"] == IntegrityStatus.OK.value:
            logger.info(f"  Spendable: {allowance['balance']} (refill {allowance['refill']} "
                        f"every {allowance['period']}s, cap {allowance['max_refill']})")
            logger.info(f"  Next refill: {allowance['next_refill'] or 'never'}")
    logger.info("=" * 60)

    if "integrity" in output and output["integrity"]["status"] != IntegrityStatus.OK.value:
        sys.exit(2)


if __name__ == "__main__":
    main()

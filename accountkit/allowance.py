"""
Allowance Accrual - spendable balance of a periodic, capped allowance

The Roles modifier stores an allowance as (refill, maxRefill, period,
balance, timestamp) and only tops it up lazily, when it is next consumed.
To show what can be spent *now* we replay the refills that would have
happened between the last refill and the current block.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AllowanceSnapshot:
    """Raw allowance state plus the block timestamp it was read at."""
    refill: int
    max_refill: int
    period: int
    balance: int
    timestamp: int          # last refill
    block_timestamp: int

    @classmethod
    def from_call_result(cls, values: tuple, block_timestamp: int) -> "AllowanceSnapshot":
        refill, max_refill, period, balance, timestamp = values
        return cls(
            refill=int(refill),
            max_refill=int(max_refill),
            period=int(period),
            balance=int(balance),
            timestamp=int(timestamp),
            block_timestamp=int(block_timestamp),
        )


@dataclass(frozen=True)
class AccrualResult:
    balance: int                 # spendable right now
    refill: int
    max_refill: int
    period: int
    next_refill: Optional[int]   # None = no refill ever scheduled

    def to_dict(self) -> dict:
        # Amounts can exceed 2**53, serialize as strings
        return {
            "balance": str(self.balance),
            "refill": str(self.refill),
            "max_refill": str(self.max_refill),
            "period": str(self.period),
            "next_refill": None if self.next_refill is None else str(self.next_refill),
        }


EMPTY_ALLOWANCE = AccrualResult(balance=0, refill=0, max_refill=0, period=0, next_refill=None)


def _elapsed_intervals(snapshot: AllowanceSnapshot) -> int:
    # Last refill ahead of the block counts as zero intervals, not a negative
    # floor, so next_refill never lands before the stored timestamp
    elapsed = max(snapshot.block_timestamp - snapshot.timestamp, 0)
    return elapsed // snapshot.period


def accrued_balance(snapshot: AllowanceSnapshot) -> int:
    if snapshot.period == 0 or snapshot.block_timestamp < snapshot.timestamp + snapshot.period:
        return snapshot.balance

    if snapshot.balance >= snapshot.max_refill:
        return snapshot.balance

    uncapped = snapshot.balance + snapshot.refill * _elapsed_intervals(snapshot)
    return min(uncapped, snapshot.max_refill)


def next_refill(snapshot: AllowanceSnapshot) -> Optional[int]:
    """Timestamp of the next refill tick, whether or not the cap is already hit."""
    if snapshot.period == 0 or snapshot.refill == 0:
        return None
    return snapshot.timestamp + (_elapsed_intervals(snapshot) + 1) * snapshot.period


def accrue(snapshot: AllowanceSnapshot) -> AccrualResult:
    return AccrualResult(
        balance=accrued_balance(snapshot),
        refill=snapshot.refill,
        max_refill=snapshot.max_refill,
        period=snapshot.period,
        next_refill=next_refill(snapshot),
    )

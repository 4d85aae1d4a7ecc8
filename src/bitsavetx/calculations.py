"""
bitsavetx/calculations.py

Deterministic reward, penalty and reputation calculations.

These mirror the arithmetic applied by the BitSave contract so a client-side
preview can be compared against the ledger result exactly. Everything here is
integer arithmetic on micro-STX with floor division; a rounding difference
from the contract is a bug, not a display detail.

Usage:
    from bitsavetx.calculations import calculate_reward, preview_deposit

    reward = calculate_reward(1_000_000, 10, 4320)   # 100_000
    preview = preview_deposit(5_000_000, 8640, reward_rate=10)
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .config import BLOCKS_PER_MONTH

logger = logging.getLogger("bitsavetx.calculations")


# ============================================================================
# CONSTANTS
# ============================================================================

PERCENT_DENOMINATOR = 100
REPUTATION_DIVISOR = 10_000

# Reputation tiers
#
# | Tier     | Points  |
# |----------|---------|
# | Novice   | 0       |
# | Bronze   | 100     |
# | Silver   | 500     |
# | Gold     | 1000    |
# | Platinum | 5000    |
# | Diamond  | 10000   |

REPUTATION_TIERS = (
    (10_000, "Diamond"),
    (5_000, "Platinum"),
    (1_000, "Gold"),
    (500, "Silver"),
    (100, "Bronze"),
)
DEFAULT_REPUTATION_TIER = "Novice"


# ============================================================================
# INTEGER HELPERS
# ============================================================================

def _require_uint(name: str, value: Any) -> int:
    # bool is an int subclass but never a valid ledger quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} cannot be negative: {value}")
    return value


def safe_div(numerator: int, denominator: int) -> int:
    """
    Floor division that yields 0 for a zero denominator.

    Matches the contract's safe-division helper, which never aborts on a
    zero divisor.
    """
    if denominator == 0:
        return 0
    return numerator // denominator


# ============================================================================
# CORE FORMULAS
# ============================================================================

def calculate_reward(principal: int, rate_percent: int, duration_blocks: int) -> int:
    """
    Reward accrued on a locked deposit.

    Only whole monthly periods (4320 blocks) count; a partial period earns
    nothing.

        reward = principal * rate * (duration // 4320) // 100

    Args:
        principal: Deposit in micro-STX
        rate_percent: Reward rate as an integer percentage
        duration_blocks: Lock duration in blocks

    Returns:
        Reward in micro-STX
    """
    _require_uint("principal", principal)
    _require_uint("rate_percent", rate_percent)
    _require_uint("duration_blocks", duration_blocks)

    periods = safe_div(duration_blocks, BLOCKS_PER_MONTH)
    return safe_div(principal * rate_percent * periods, PERCENT_DENOMINATOR)


def calculate_early_withdrawal_penalty(principal: int, penalty_rate_percent: int) -> int:
    """
    Penalty charged for withdrawing before the lock expires.

        penalty = principal * rate // 100
    """
    _require_uint("principal", principal)
    _require_uint("penalty_rate_percent", penalty_rate_percent)

    return safe_div(principal * penalty_rate_percent, PERCENT_DENOMINATOR)


def calculate_reputation_points(principal: int, duration_blocks: int) -> int:
    """
    Reputation earned by a deposit, scaled by amount and lock length.

        points = principal * duration // 10000
    """
    _require_uint("principal", principal)
    _require_uint("duration_blocks", duration_blocks)

    return safe_div(principal * duration_blocks, REPUTATION_DIVISOR)


# ============================================================================
# REPUTATION TIERS
# ============================================================================

def get_reputation_tier(points: int) -> str:
    """Name of the tier a reputation score falls into."""
    for threshold, name in REPUTATION_TIERS:
        if points >= threshold:
            return name
    return DEFAULT_REPUTATION_TIER


def get_next_tier_threshold(points: int) -> int:
    """
    Points needed for the next tier.

    Returns:
        The next threshold, or 0 once the top tier is reached
    """
    for threshold, _ in reversed(REPUTATION_TIERS):
        if points < threshold:
            return threshold
    return 0


# ============================================================================
# PREVIEWS
# ============================================================================

@dataclass(frozen=True)
class DepositPreview:
    """Expected outcome of a deposit held for its full lock period."""
    amount: int
    lock_blocks: int
    reward_rate: int
    reward: int
    reputation_points: int

    @property
    def total_at_unlock(self) -> int:
        return self.amount + self.reward

    @property
    def reputation_tier(self) -> str:
        return get_reputation_tier(self.reputation_points)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_at_unlock"] = self.total_at_unlock
        data["reputation_tier"] = self.reputation_tier
        return data


@dataclass(frozen=True)
class WithdrawalPreview:
    """Expected payout of a withdrawal."""
    amount: int
    penalty_rate: int
    early: bool
    penalty: int

    @property
    def payout(self) -> int:
        return self.amount - self.penalty

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["payout"] = self.payout
        return data


def preview_deposit(amount: int, lock_blocks: int, reward_rate: int) -> DepositPreview:
    """Compute reward and reputation for a prospective deposit."""
    return DepositPreview(
        amount=amount,
        lock_blocks=lock_blocks,
        reward_rate=reward_rate,
        reward=calculate_reward(amount, reward_rate, lock_blocks),
        reputation_points=calculate_reputation_points(amount, lock_blocks),
    )


def preview_withdrawal(
    amount: int,
    penalty_rate: int,
    early: bool = True,
    unlock_height: Optional[int] = None,
    current_height: Optional[int] = None,
) -> WithdrawalPreview:
    """
    Compute the penalty and payout for a prospective withdrawal.

    When both heights are given they decide whether the withdrawal is early,
    overriding the early flag.
    """
    if unlock_height is not None and current_height is not None:
        early = current_height < unlock_height

    _require_uint("amount", amount)
    _require_uint("penalty_rate", penalty_rate)
    penalty = calculate_early_withdrawal_penalty(amount, penalty_rate) if early else 0

    return WithdrawalPreview(
        amount=amount,
        penalty_rate=penalty_rate,
        early=early,
        penalty=penalty,
    )

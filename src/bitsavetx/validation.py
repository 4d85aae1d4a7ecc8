"""
bitsavetx/validation.py

Client-side checks run before an operation is submitted. The contract
enforces the same limits; catching them here saves the user a failed
transaction fee.
"""

import re
from dataclasses import dataclass, field
from typing import List

from .config import (
    MIN_DEPOSIT,
    MAX_DEPOSIT,
    MAX_AMOUNT,
    MIN_LOCK_PERIOD,
    MAX_LOCK_PERIOD,
)
from .formatters import format_stx

_STACKS_ADDRESS = re.compile(r"^S[TM][0-9A-Z]{38,40}$")


@dataclass
class ValidationResult:
    """Outcome of a validation check."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid


def validate_stacks_address(address: str) -> bool:
    """Check a standard Stacks principal (ST... testnet, SM... mainnet)."""
    return bool(_STACKS_ADDRESS.match(address or ""))


def validate_amount(amount: int) -> bool:
    """Check a generic micro-STX amount is positive and within bounds."""
    return isinstance(amount, int) and not isinstance(amount, bool) and 0 < amount <= MAX_AMOUNT


def validate_deposit(amount: int, lock_blocks: int) -> ValidationResult:
    """
    Check a deposit against the contract's limits.

    Args:
        amount: Deposit in micro-STX
        lock_blocks: Lock period in blocks
    """
    result = ValidationResult()

    if amount < MIN_DEPOSIT:
        result.errors.append(f"Minimum deposit is {format_stx(MIN_DEPOSIT, 0)} STX")
    elif amount > MAX_DEPOSIT:
        result.errors.append(f"Maximum deposit is {format_stx(MAX_DEPOSIT, 0)} STX")

    if lock_blocks < MIN_LOCK_PERIOD:
        result.errors.append("Minimum lock period is 1 day")
    elif lock_blocks > MAX_LOCK_PERIOD:
        result.errors.append("Maximum lock period is 365 days")

    return result


def validate_withdrawal(unlock_height: int, current_height: int) -> ValidationResult:
    """Check the lock has expired at the current block height."""
    result = ValidationResult()
    if current_height < unlock_height:
        result.errors.append("Funds still locked")
    return result


def validate_goal(goal_amount: int, goal_description: str) -> ValidationResult:
    """Check the savings-goal fields of a deposit-with-goal call."""
    result = ValidationResult()
    if goal_amount <= 0:
        result.errors.append("Goal amount must be positive")
    if not goal_description or not goal_description.strip():
        result.errors.append("Goal description is required")
    return result

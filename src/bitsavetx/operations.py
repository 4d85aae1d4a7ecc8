"""
bitsavetx/operations.py

Deposit and withdrawal operations against the BitSave contract.

Signing and broadcasting belong to the wallet, so this module only builds
validated contract-call descriptions and hands them to a caller-supplied
submitter. Each prepared operation is a zero-argument coroutine function,
which is exactly what TransactionTracker.execute() expects, and carries a
preview of its expected outcome.

Usage:
    ops = SavingsOperations(submitter=wallet.submit_contract_call)

    prepared = ops.deposit(amount=5_000_000, lock_blocks=4320)
    print(prepared.preview.reward)
    await tracker.execute(prepared)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Union

from .calculations import (
    DepositPreview,
    WithdrawalPreview,
    preview_deposit,
    preview_withdrawal,
)
from .config import NetworkConfig, DEFAULT_REWARD_RATE, DEFAULT_PENALTY_RATE
from .errors import ValidationError
from .validation import validate_deposit, validate_goal

logger = logging.getLogger("bitsavetx.operations")


POST_CONDITION_DENY = "deny"
POST_CONDITION_ALLOW = "allow"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class ClarityArg:
    """A typed contract-call argument."""
    type: str
    value: Any

    @classmethod
    def uint(cls, value: int) -> "ClarityArg":
        return cls("uint", value)

    @classmethod
    def string_utf8(cls, value: str) -> "ClarityArg":
        return cls("string-utf8", value)

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class ContractCall:
    """A contract function call ready to be signed by a wallet."""
    contract_address: str
    contract_name: str
    function_name: str
    function_args: List[ClarityArg] = field(default_factory=list)
    post_condition_mode: str = POST_CONDITION_DENY

    @property
    def contract_id(self) -> str:
        return f"{self.contract_address}.{self.contract_name}"

    def to_dict(self) -> dict:
        return {
            "contract_address": self.contract_address,
            "contract_name": self.contract_name,
            "function_name": self.function_name,
            "function_args": [arg.to_dict() for arg in self.function_args],
            "post_condition_mode": self.post_condition_mode,
        }


Submitter = Callable[[ContractCall], Awaitable[Any]]
Preview = Union[DepositPreview, WithdrawalPreview]


@dataclass
class PreparedOperation:
    """A contract call bound to a submitter, with its expected outcome."""
    call: ContractCall
    submitter: Submitter
    preview: Optional[Preview] = None

    async def __call__(self) -> Any:
        logger.info(f"Submitting {self.call.contract_id}::{self.call.function_name}")
        return await self.submitter(self.call)


# ============================================================================
# OPERATIONS
# ============================================================================

class SavingsOperations:
    """
    Builds BitSave contract calls.

    Rates are the contract's current reward and penalty percentages; they
    only affect previews, never the call itself.
    """

    def __init__(
        self,
        submitter: Submitter,
        network: Optional[NetworkConfig] = None,
        reward_rate: int = DEFAULT_REWARD_RATE,
        penalty_rate: int = DEFAULT_PENALTY_RATE,
    ):
        self.submitter = submitter
        self.network = network or NetworkConfig()
        self.reward_rate = reward_rate
        self.penalty_rate = penalty_rate

    def _call(self, function_name: str, args: List[ClarityArg]) -> ContractCall:
        return ContractCall(
            contract_address=self.network.contract_address,
            contract_name=self.network.contract_name,
            function_name=function_name,
            function_args=args,
        )

    def deposit_call(self, amount: int, lock_blocks: int) -> ContractCall:
        """
        Build a deposit call.

        Raises:
            ValidationError: If amount or lock period is out of range
        """
        result = validate_deposit(amount, lock_blocks)
        if not result.is_valid:
            raise ValidationError(result.errors)
        return self._call("deposit", [ClarityArg.uint(amount), ClarityArg.uint(lock_blocks)])

    def deposit_with_goal_call(
        self,
        amount: int,
        lock_blocks: int,
        goal_amount: int,
        goal_description: str,
    ) -> ContractCall:
        """Build a deposit-with-goal call."""
        errors = validate_deposit(amount, lock_blocks).errors
        errors += validate_goal(goal_amount, goal_description).errors
        if errors:
            raise ValidationError(errors)
        return self._call(
            "deposit-with-goal",
            [
                ClarityArg.uint(amount),
                ClarityArg.uint(lock_blocks),
                ClarityArg.uint(goal_amount),
                ClarityArg.string_utf8(goal_description),
            ],
        )

    def withdraw_call(self) -> ContractCall:
        """Build a withdraw call."""
        return self._call("withdraw", [])

    def deposit(self, amount: int, lock_blocks: int) -> PreparedOperation:
        """Prepare a deposit with its reward/reputation preview."""
        return PreparedOperation(
            call=self.deposit_call(amount, lock_blocks),
            submitter=self.submitter,
            preview=preview_deposit(amount, lock_blocks, self.reward_rate),
        )

    def deposit_with_goal(
        self,
        amount: int,
        lock_blocks: int,
        goal_amount: int,
        goal_description: str,
    ) -> PreparedOperation:
        """Prepare a deposit-with-goal with its reward/reputation preview."""
        return PreparedOperation(
            call=self.deposit_with_goal_call(amount, lock_blocks, goal_amount, goal_description),
            submitter=self.submitter,
            preview=preview_deposit(amount, lock_blocks, self.reward_rate),
        )

    def withdraw(
        self,
        amount: Optional[int] = None,
        unlock_height: Optional[int] = None,
        current_height: Optional[int] = None,
    ) -> PreparedOperation:
        """
        Prepare a withdrawal.

        With the deposited amount known a penalty preview is attached; the
        withdrawal counts as early unless both heights show the lock has
        expired.
        """
        preview = None
        if amount is not None:
            preview = preview_withdrawal(
                amount,
                self.penalty_rate,
                early=True,
                unlock_height=unlock_height,
                current_height=current_height,
            )
        return PreparedOperation(
            call=self.withdraw_call(),
            submitter=self.submitter,
            preview=preview,
        )

"""
bitsavetx - Transaction tracking and outcome previews for BitSave savings

Built on asyncio + aiohttp with:
- TransactionTracker: submission, confirmation polling, timeout and
  stale-session handling for one operation at a time
- Integer reward/penalty/reputation calculations matching the contract
- HiroClient for reading transaction status from the Stacks API
- SavingsOperations for validated deposit/withdraw contract calls

Usage:
    from bitsavetx import HiroClient, SavingsOperations, TransactionTracker

    async with HiroClient() as client:
        tracker = TransactionTracker(client)
        ops = SavingsOperations(submitter=wallet.submit_contract_call)

        prepared = ops.deposit(amount=5_000_000, lock_blocks=4320)
        print(prepared.preview.reward)

        await tracker.execute(prepared)
        state = await tracker.wait()

Preview Usage:
    from bitsavetx import calculate_reward

    calculate_reward(1_000_000, 10, 4320)   # 100_000 micro-STX
"""

from .calculations import (
    calculate_reward,
    calculate_early_withdrawal_penalty,
    calculate_reputation_points,
    safe_div,
    preview_deposit,
    preview_withdrawal,
    get_reputation_tier,
    get_next_tier_threshold,
    DepositPreview,
    WithdrawalPreview,
)
from .config import TrackerConfig, NetworkConfig
from .errors import (
    BitSaveError,
    LedgerReadError,
    ValidationError,
    ContractError,
    CONTRACT_ERRORS,
    get_error_message,
    extract_error_code,
)
from .ledger import (
    HiroClient,
    LedgerTxStatus,
    StatusReader,
    StatusReading,
)
from .operations import (
    SavingsOperations,
    ContractCall,
    PreparedOperation,
)
from .tracker import (
    TransactionTracker,
    TransactionState,
    TransactionStatus,
    OperationResult,
)

__version__ = "1.0.0"
__all__ = [
    # Tracking
    "TransactionTracker",
    "TransactionState",
    "TransactionStatus",
    "OperationResult",
    # Calculations
    "calculate_reward",
    "calculate_early_withdrawal_penalty",
    "calculate_reputation_points",
    "safe_div",
    "preview_deposit",
    "preview_withdrawal",
    "get_reputation_tier",
    "get_next_tier_threshold",
    "DepositPreview",
    "WithdrawalPreview",
    # Ledger
    "HiroClient",
    "LedgerTxStatus",
    "StatusReader",
    "StatusReading",
    # Operations
    "SavingsOperations",
    "ContractCall",
    "PreparedOperation",
    # Config
    "TrackerConfig",
    "NetworkConfig",
    # Errors
    "BitSaveError",
    "LedgerReadError",
    "ValidationError",
    "ContractError",
    "CONTRACT_ERRORS",
    "get_error_message",
    "extract_error_code",
]

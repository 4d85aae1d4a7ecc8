"""
bitsavetx/ledger - Read access to the Stacks ledger.

Provides transaction status reads for confirmation polling, plus chain
height and balance queries.
"""

from .client import (
    POST_CONDITION_MESSAGE,
    HiroClient,
    LedgerTxStatus,
    StatusReader,
    StatusReading,
    decode_clarity_uint,
    parse_transaction_status,
)

__all__ = [
    "POST_CONDITION_MESSAGE",
    "HiroClient",
    "LedgerTxStatus",
    "StatusReader",
    "StatusReading",
    "decode_clarity_uint",
    "parse_transaction_status",
]

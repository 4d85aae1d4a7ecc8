"""
bitsavetx/errors.py

Exception types and the BitSave contract error table.

The contract reports failures as small unsigned integers, e.g. a rejected
withdrawal settles with a result of "(err u103)". CONTRACT_ERRORS maps those
codes to readable reasons; the table is a stable contract with the deployed
contract and must not be renumbered.
"""

import re
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger("bitsavetx.errors")


CONTRACT_ERRORS: Dict[int, str] = {
    100: "No amount provided",
    101: "Already deposited",
    102: "Already withdrawn",
    103: "Lock period still active",
    104: "No deposit found",
    105: "Not authorized",
    106: "Contract paused",
    107: "Below minimum deposit",
    108: "Exceeds maximum deposit",
    109: "Cooldown period active",
    110: "Invalid lock period",
    111: "Goal not reached",
    112: "Invalid referrer",
}

# Matches Clarity reprs like "(err u103)" or "(err 103)"
_ERR_REPR = re.compile(r"\(err\s+u?(\d+)\)")


class BitSaveError(Exception):
    """Base exception for bitsavetx."""
    pass


class LedgerReadError(BitSaveError):
    """Raised when the ledger status/read API cannot be queried."""
    pass


class ValidationError(BitSaveError, ValueError):
    """Raised when operation parameters fail client-side validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ContractError(BitSaveError):
    """A failure reported by the contract as a numeric error code."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(get_error_message(code))


def get_error_message(code: int) -> str:
    """
    Look up the reason for a contract error code.

    Unknown codes never raise; they produce "Unknown error (<code>)".
    """
    return CONTRACT_ERRORS.get(code, f"Unknown error ({code})")


def extract_error_code(value: Any) -> Optional[int]:
    """
    Pull a contract error code out of a ledger result.

    Accepts a Clarity repr string ("(err u103)"), a bare integer, or the
    nested {"value": {"value": 103}} shape returned by decoded results.

    Returns:
        The error code, or None if the value carries no code
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        match = _ERR_REPR.search(value)
        return int(match.group(1)) if match else None
    if isinstance(value, dict):
        inner = value.get("value")
        if isinstance(inner, dict):
            inner = inner.get("value")
        try:
            return int(inner) if inner is not None else None
        except (TypeError, ValueError):
            logger.debug(f"No error code in {value!r}")
            return None
    return None


def describe_result(repr_value: Optional[str]) -> Optional[str]:
    """
    Turn a transaction result repr into a failure description.

    "(err u106)" becomes "Contract paused"; any other non-empty repr is
    returned as-is.
    """
    if not repr_value:
        return None
    code = extract_error_code(repr_value)
    if code is not None:
        return get_error_message(code)
    return repr_value

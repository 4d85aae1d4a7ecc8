"""
bitsavetx/tracker.py

Transaction lifecycle tracking with asynchronous confirmation polling.

A TransactionTracker drives one operation at a time through

    IDLE -> PENDING -> SUCCESS | ERROR

Submission happens once. Confirmation is polled in a background task: one
status read every poll_interval seconds, up to max_attempts reads, after
which the transaction is reported as timed out. Timeout, rejection, read
failure and submission failure all end in ERROR and differ only in the
error message.

Every execute()/track_transaction()/reset() starts a new session. A poll
loop belonging to an older session is cancelled and, should it still get
to run, checks its session before touching state, so a late result can
never overwrite a newer one.

Usage:
    from bitsavetx import TransactionTracker, HiroClient

    async with HiroClient() as client:
        tracker = TransactionTracker(client, on_change=render)
        await tracker.execute(submit_deposit)
        state = await tracker.wait()

    # Resume tracking a known transaction
    tracker.track_transaction("0x8f3c...")
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from .config import TrackerConfig
from .ledger.client import LedgerTxStatus, StatusReader

logger = logging.getLogger("bitsavetx.tracker")

TIMEOUT_MESSAGE = "Transaction timeout"
FAILURE_MESSAGE = "Transaction failed"
CANCELLED_MESSAGE = "Transaction cancelled"
READ_FAILURE_MESSAGE = "Failed to read transaction status"

_TX_ID_KEYS = ("tx_id", "txId", "txid", "transactionId")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class TransactionStatus(Enum):
    """Lifecycle status of a tracked transaction."""
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.SUCCESS, TransactionStatus.ERROR)


@dataclass
class TransactionState:
    """The observable (status, tx_id, error) triple."""
    status: TransactionStatus = TransactionStatus.IDLE
    tx_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def copy(self) -> "TransactionState":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "tx_id": self.tx_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class OperationResult:
    """What a submission action hands back."""
    tx_id: Optional[str] = None
    raw: Any = field(default=None, compare=False)


def extract_tx_id(result: Any) -> Optional[str]:
    """
    Find the transaction id in a submission result.

    Accepts an OperationResult (or any object with a tx_id attribute), a
    mapping keyed by tx_id/txId/txid/transactionId, a bare id string, or
    None for a submission that completed without an id.
    """
    if result is None:
        return None
    if isinstance(result, str):
        return result or None
    if isinstance(result, dict):
        for key in _TX_ID_KEYS:
            if result.get(key):
                return str(result[key])
        return None
    tx_id = getattr(result, "tx_id", None)
    return str(tx_id) if tx_id else None


Operation = Callable[[], Awaitable[Any]]
StateCallback = Callable[[TransactionState], None]


# ============================================================================
# TRACKER
# ============================================================================

class TransactionTracker:
    """
    Tracks a single ledger write from submission to a terminal outcome.

    Each instance owns its own state; create one per operation surface
    rather than sharing a global tracker.
    """

    def __init__(
        self,
        reader: StatusReader,
        config: Optional[TrackerConfig] = None,
        on_change: Optional[StateCallback] = None,
    ):
        """
        Args:
            reader: Source of transaction status reads
            config: Polling parameters. Defaults to 5s x 60 attempts.
            on_change: Called with a state snapshot after every transition
        """
        self._reader = reader
        self.config = config or TrackerConfig()
        self.on_change = on_change

        self._state = TransactionState()
        self._session = 0
        self._attempts = 0
        self._poll_task: Optional[asyncio.Task] = None

    # ========================================================================
    # OBSERVABLE STATE
    # ========================================================================

    @property
    def state(self) -> TransactionState:
        """Snapshot of the current state."""
        return self._state.copy()

    @property
    def status(self) -> TransactionStatus:
        return self._state.status

    @property
    def tx_id(self) -> Optional[str]:
        return self._state.tx_id

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def poll_attempts(self) -> int:
        """Completed pending reads in the current session."""
        return self._attempts

    @property
    def session(self) -> int:
        return self._session

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ========================================================================
    # SESSIONS AND TRANSITIONS
    # ========================================================================

    def _new_session(self) -> int:
        self._session += 1
        self._attempts = 0
        self._cancel_poll()
        return self._session

    def _cancel_poll(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is not None and not task.done():
            task.cancel()

    def _is_current(self, session: int) -> bool:
        return session == self._session

    def _transition(
        self,
        session: int,
        status: TransactionStatus,
        tx_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Apply a state change on behalf of a session.

        Returns:
            False if the session has been superseded and nothing changed
        """
        if not self._is_current(session):
            logger.debug(f"Ignoring {status.value} from stale session {session}")
            return False

        old_status = self._state.status
        self._state = TransactionState(
            status=status,
            tx_id=tx_id,
            error=error if status is TransactionStatus.ERROR else None,
        )
        if old_status != status:
            logger.info(f"Transaction {tx_id or '-'}: {old_status.value} -> {status.value}")
        self._notify()
        return True

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self.state)
        except Exception as e:
            logger.warning(f"on_change callback error: {e}")

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def execute(self, operation: Operation) -> Any:
        """
        Submit an operation and start tracking it.

        The operation is awaited exactly once. If it returns a transaction
        id, confirmation polling starts in the background; if it returns
        without one the transaction is marked successful immediately.

        Args:
            operation: Zero-argument coroutine function performing the write

        Returns:
            Whatever the operation returned

        Raises:
            Exception: Whatever the operation raised, after recording ERROR
            asyncio.CancelledError: If the caller is cancelled mid-submission,
                after recording ERROR
        """
        session = self._new_session()
        self._transition(session, TransactionStatus.PENDING)

        try:
            result = await operation()
        except asyncio.CancelledError:
            logger.warning("Submission cancelled")
            self._transition(session, TransactionStatus.ERROR, error=CANCELLED_MESSAGE)
            raise
        except Exception as e:
            message = str(e) or FAILURE_MESSAGE
            logger.warning(f"Submission failed: {message}")
            self._transition(session, TransactionStatus.ERROR, error=message)
            raise

        tx_id = extract_tx_id(result)
        if tx_id:
            logger.info(f"Submitted transaction {tx_id}")
            if self._transition(session, TransactionStatus.PENDING, tx_id=tx_id):
                self._start_polling(session, tx_id)
        else:
            self._transition(session, TransactionStatus.SUCCESS)

        return result

    def track_transaction(self, tx_id: str) -> asyncio.Task:
        """
        Poll an already-submitted transaction without resubmitting it.

        Must be called from within a running event loop.

        Returns:
            The background polling task

        Raises:
            ValueError: If tx_id is empty
            RuntimeError: If no event loop is running; state is left untouched
        """
        if not tx_id:
            raise ValueError("tx_id is required")
        asyncio.get_running_loop()

        session = self._new_session()
        self._transition(session, TransactionStatus.PENDING, tx_id=tx_id)
        return self._start_polling(session, tx_id)

    def reset(self) -> None:
        """Return to IDLE and abandon the current session."""
        session = self._new_session()
        self._transition(session, TransactionStatus.IDLE)

    async def wait(self) -> TransactionState:
        """
        Wait for the current polling task to finish.

        Returns:
            Snapshot of the state once polling has stopped
        """
        task = self._poll_task
        if task is not None and not task.done():
            await asyncio.wait([task])
        return self.state

    async def aclose(self) -> None:
        """Stop polling. State is left as it is."""
        task = self._poll_task
        self._cancel_poll()
        if task is not None and not task.done():
            await asyncio.wait([task])

    async def __aenter__(self) -> "TransactionTracker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ========================================================================
    # POLLING
    # ========================================================================

    def _start_polling(self, session: int, tx_id: str) -> asyncio.Task:
        task = asyncio.create_task(self._poll(session, tx_id))
        self._poll_task = task
        return task

    def _deadline_passed(self, started: float) -> bool:
        max_wait = self.config.max_wait_seconds
        return max_wait is not None and time.monotonic() - started >= max_wait

    async def _poll(self, session: int, tx_id: str) -> None:
        """Poll the ledger until a verdict, the attempt budget, or a new session."""
        started = time.monotonic()
        attempts = 0

        while self._is_current(session):
            await asyncio.sleep(self.config.poll_interval)
            if not self._is_current(session):
                return

            if self._deadline_passed(started):
                logger.warning(f"Transaction {tx_id} exceeded {self.config.max_wait_seconds}s")
                self._transition(session, TransactionStatus.ERROR, tx_id=tx_id, error=TIMEOUT_MESSAGE)
                return

            try:
                reading = await self._reader.get_transaction_status(tx_id)
            except Exception as e:
                logger.error(f"Status read failed for {tx_id}: {e}")
                self._transition(
                    session,
                    TransactionStatus.ERROR,
                    tx_id=tx_id,
                    error=str(e) or READ_FAILURE_MESSAGE,
                )
                return

            if not self._is_current(session):
                return

            if reading.status is LedgerTxStatus.SUCCESS:
                self._transition(session, TransactionStatus.SUCCESS, tx_id=tx_id)
                return

            if reading.status.is_rejected:
                logger.warning(f"Transaction {tx_id} rejected ({reading.status.value}): {reading.detail}")
                self._transition(
                    session,
                    TransactionStatus.ERROR,
                    tx_id=tx_id,
                    error=reading.detail or FAILURE_MESSAGE,
                )
                return

            attempts += 1
            self._attempts = attempts
            logger.debug(f"Transaction {tx_id} still {reading.status.value} ({attempts}/{self.config.max_attempts})")

            if attempts >= self.config.max_attempts:
                logger.warning(f"Transaction {tx_id} timed out after {attempts} attempts")
                self._transition(session, TransactionStatus.ERROR, tx_id=tx_id, error=TIMEOUT_MESSAGE)
                return

"""Session orchestrator -- drives one computation from submission to a verified plan.

State machine for a single request:

    CREATED -> SUBMITTED -> AWAITING_COMPLETION -> RESULT_READY -> VERIFIED
                                     |
                                     +-> FAILED      (network reported failure)
                                     +-> TIMED_OUT   (deadline passed, no answer)
                                     +-> CANCELLED   (caller gave up)
    any step                         --> REJECTED    (invalid input, rejected
                                                      submission, failed verification)

Each step:
  1. VALIDATE & ENCODE: no network call happens for invalid input
  2. SUBMIT: encrypt and queue the computation
  3. AWAIT: poll with exponential backoff until COMPLETED/FAILED or deadline
  4. COLLECT: fetch ciphertext + receipt, decrypt, verify, decode
  5. RECORD: store the receipt for audit and replay detection

The deadline starts at submission and bounds every network call, so a network
that never answers still ends the session in TIMED_OUT. cancel() interrupts
any call in flight before the result is ready.

Only transient network errors during polling are retried. The engine and the
verifier are deterministic, so retrying them would reproduce the same outcome.
A plan is returned only after every receipt check passed.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from cipherplan.config import SessionSettings
from cipherplan.encoding.codec import decode_plan, encode_input
from cipherplan.exceptions import (
    CipherPlanError,
    ComputationFailedError,
    ErrorKind,
    NetworkUnavailableError,
    SessionCancelledError,
    SessionTimedOutError,
)
from cipherplan.logging import get_logger
from cipherplan.models import ComputationInput, ComputationStatus, VerifiedResult
from cipherplan.session.backoff import ExponentialBackoff

if TYPE_CHECKING:
    from cipherplan.network.cipher import PayloadCipher
    from cipherplan.network.client import ComputationNetwork
    from cipherplan.receipts.store import ReceiptStore
    from cipherplan.receipts.verifier import ReceiptVerifier

logger = get_logger(__name__)

T = TypeVar("T")


class SessionState(str, Enum):
    """Lifecycle state of a single computation session."""

    CREATED = "created"
    SUBMITTED = "submitted"
    AWAITING_COMPLETION = "awaiting_completion"
    RESULT_READY = "result_ready"
    VERIFIED = "verified"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


TERMINAL_STATES: frozenset[SessionState] = frozenset(
    {
        SessionState.VERIFIED,
        SessionState.FAILED,
        SessionState.TIMED_OUT,
        SessionState.CANCELLED,
        SessionState.REJECTED,
    }
)

#: Terminal state for each error kind; every other kind ends in REJECTED.
_STATE_FOR_ERROR: dict[ErrorKind, SessionState] = {
    ErrorKind.COMPUTATION_FAILED: SessionState.FAILED,
    ErrorKind.TIMED_OUT: SessionState.TIMED_OUT,
    ErrorKind.CANCELLED: SessionState.CANCELLED,
}


class SessionOrchestrator:
    """Drives a single computation request. Create one instance per request.

    Instances share nothing mutable with each other; the verifier (read-only
    key) and the receipt store (internally locked) may be shared.

    Args:
        network: Confidential-computation network client.
        cipher: Client-side payload cipher.
        verifier: Receipt verifier bound to the network public key.
        settings: Poll backoff and deadline policy.
        receipt_store: Optional audit store; receipts are recorded after
            verification and replays are rejected.
        clock: Wall-clock source (seconds) for submission time.
        monotonic: Monotonic clock for the polling deadline.
    """

    def __init__(
        self,
        network: ComputationNetwork,
        cipher: PayloadCipher,
        verifier: ReceiptVerifier,
        settings: SessionSettings,
        receipt_store: ReceiptStore | None = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._network = network
        self._cipher = cipher
        self._verifier = verifier
        self._settings = settings
        self._receipt_store = receipt_store
        self._clock = clock
        self._monotonic = monotonic
        self._backoff = ExponentialBackoff.from_settings(settings)
        self._state = SessionState.CREATED
        self._computation_id: str | None = None
        self._cancel_event = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def computation_id(self) -> str | None:
        """Network-assigned id, set once the submission is acknowledged."""
        return self._computation_id

    def cancel(self) -> bool:
        """Stop the session. Effective only before the result is ready.

        The computation is not retracted from the network; if it completes
        server-side the result is simply never collected.

        Returns:
            True if the cancellation will take effect.
        """
        if self._state in TERMINAL_STATES or self._state is SessionState.RESULT_READY:
            logger.debug("session_cancel_ignored", state=self._state.value)
            return False
        self._cancel_event.set()
        logger.info("session_cancel_requested", computation_id=self._computation_id)
        return True

    async def run(self, computation_input: ComputationInput) -> VerifiedResult:
        """Run the full session and return the verified plan.

        Raises:
            CipherPlanError: subclass for the terminal condition (invalid input,
                rejected submission, failure, timeout, cancellation, or the
                specific receipt check that failed).
        """
        if self._state is not SessionState.CREATED:
            raise RuntimeError("SessionOrchestrator instances run exactly once")

        with structlog.contextvars.bound_contextvars(
            circuit_id=computation_input.circuit_id.value
        ):
            try:
                return await self._run(computation_input)
            except CipherPlanError as exc:
                self._state = _STATE_FOR_ERROR.get(exc.kind, SessionState.REJECTED)
                logger.warning(
                    "session_ended",
                    computation_id=self._computation_id,
                    state=self._state.value,
                    error_kind=exc.kind.value,
                    retryable=exc.retryable,
                    error=str(exc),
                )
                raise
            except asyncio.CancelledError:
                self._state = SessionState.CANCELLED
                logger.info("session_task_cancelled", computation_id=self._computation_id)
                raise

    async def _run(self, computation_input: ComputationInput) -> VerifiedResult:
        encoded = encode_input(computation_input)

        if self._cancel_event.is_set():
            raise SessionCancelledError("cancelled before submission")

        deadline = self._monotonic() + self._settings.deadline_seconds
        submitted_at = int(self._clock())
        computation_id = await self._guarded(
            "submit",
            deadline,
            self._network.submit,
            computation_input.circuit_id,
            self._cipher.encrypt(encoded),
        )
        self._computation_id = computation_id
        self._state = SessionState.SUBMITTED

        with structlog.contextvars.bound_contextvars(computation_id=computation_id):
            logger.info("computation_submitted")

            status = await self._await_completion(computation_id, deadline)
            if status == ComputationStatus.FAILED:
                raise ComputationFailedError(
                    f"network reported computation {computation_id} as failed"
                )
            self._state = SessionState.RESULT_READY

            result = await self._collect(
                computation_input, computation_id, submitted_at, deadline
            )
            self._state = SessionState.VERIFIED
            logger.info(
                "session_verified",
                receipt_id=result.receipt.receipt_id.hex(),
                num_slices=result.plan.num_slices,
                risk_level=result.plan.risk_level,
            )
            return result

    async def _guarded(
        self,
        step: str,
        deadline: float,
        call: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """Await one network call, bounded by the deadline and by cancel().

        A call that never answers cannot hold the session past its deadline.
        The abandoned call is cancelled; the computation itself is not
        retracted from the network.

        Raises:
            SessionTimedOutError: deadline reached before the call returned.
            SessionCancelledError: cancel() was called while waiting.
        """
        remaining = deadline - self._monotonic()
        if remaining <= 0:
            raise SessionTimedOutError(
                f"deadline of {self._settings.deadline_seconds}s passed before {step}"
            )

        call_task = asyncio.ensure_future(call(*args))
        cancel_task = asyncio.ensure_future(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {call_task, cancel_task},
                timeout=remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            call_task.cancel()
            cancel_task.cancel()

        if cancel_task in done:
            raise SessionCancelledError(f"cancelled during {step}")
        if call_task in done:
            return call_task.result()

        logger.warning("network_call_timed_out", step=step, waited=round(remaining, 3))
        raise SessionTimedOutError(
            f"{step} did not answer within the {self._settings.deadline_seconds}s deadline"
        )

    async def _await_completion(self, computation_id: str, deadline: float) -> ComputationStatus:
        """Poll until COMPLETED or FAILED, backing off between attempts.

        Raises:
            SessionTimedOutError: deadline passed while still pending.
            SessionCancelledError: cancel() was called.
        """
        self._state = SessionState.AWAITING_COMPLETION
        delays = self._backoff.delays()
        attempt = 0

        while True:
            if self._cancel_event.is_set():
                raise SessionCancelledError(
                    f"cancelled while awaiting computation {computation_id}"
                )

            attempt += 1
            try:
                status = await self._guarded(
                    "poll_status", deadline, self._network.poll_status, computation_id
                )
            except NetworkUnavailableError as exc:
                logger.warning("poll_transient_error", attempt=attempt, error=str(exc))
            else:
                if status != ComputationStatus.PENDING:
                    logger.info("computation_finished", status=status, attempts=attempt)
                    return status

            remaining = deadline - self._monotonic()
            if remaining <= 0:
                raise SessionTimedOutError(
                    f"computation {computation_id} not complete after "
                    f"{self._settings.deadline_seconds}s ({attempt} polls)"
                )

            delay = min(next(delays), remaining)
            logger.debug("computation_pending", attempt=attempt, delay=round(delay, 3))
            await self._sleep_unless_cancelled(delay)

    async def _sleep_unless_cancelled(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=delay)
        except TimeoutError:
            pass

    async def _collect(
        self,
        computation_input: ComputationInput,
        computation_id: str,
        submitted_at: int,
        deadline: float,
    ) -> VerifiedResult:
        """Fetch, decrypt, verify, decode and record. Nothing is returned unverified."""
        ciphertext, receipt = await self._guarded(
            "fetch_result", deadline, self._network.fetch_result, computation_id
        )
        plaintext = self._cipher.decrypt(ciphertext)

        self._verifier.verify(receipt, plaintext, computation_id, submitted_at)
        plan = decode_plan(computation_input.circuit_id, plaintext)

        if self._receipt_store is not None:
            await self._receipt_store.record(receipt)

        return VerifiedResult(computation_id=computation_id, plan=plan, receipt=receipt)

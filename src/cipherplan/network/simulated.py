"""In-process simulated computation network.

Runs the real strategy engine on the decrypted input and issues genuine
signed receipts through a ReceiptAuthority, so a session against it exercises
the full submit -> poll -> fetch -> decrypt -> verify path without a cluster.

Poll responses can be scripted (including transient errors) and results can
be rewritten by a hook, which is how tests model a misbehaving network.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from uuid import uuid4

from nacl.signing import VerifyKey

from cipherplan.encoding.codec import decode_input, encode_plan
from cipherplan.exceptions import (
    CipherPlanError,
    NotReadyError,
    SubmissionRejectedError,
)
from cipherplan.logging import get_logger
from cipherplan.models import CircuitId, ComputationReceipt, ComputationStatus
from cipherplan.network.cipher import PayloadCipher
from cipherplan.network.client import ComputationNetwork
from cipherplan.receipts.builder import ReceiptAuthority
from cipherplan.strategy.engine import RULESETS, derive

logger = get_logger(__name__)

PollStep = ComputationStatus | Exception
ResultHook = Callable[[str, bytes, ComputationReceipt], tuple[bytes, ComputationReceipt]]


@dataclass
class _Computation:
    circuit_id: CircuitId
    plan_bytes: bytes
    polls: int = 0
    status: ComputationStatus = ComputationStatus.PENDING
    receipt: ComputationReceipt | None = None


class SimulatedNetwork(ComputationNetwork):
    """Scriptable stand-in for the confidential-computation network.

    Args:
        authority: Signs receipts; its verify key is the network public key.
        cipher: Network-side cipher (decrypts inputs, encrypts outputs).
        polls_until_complete: PENDING responses before a computation finishes.
        poll_script: Explicit sequence of poll outcomes, applied to every
            computation. Exceptions in the script are raised. The last step
            repeats once the script is exhausted. Overrides
            ``polls_until_complete``.
        fail_computations: Finish computations as FAILED instead of COMPLETED.
        result_hook: Rewrites ``(ciphertext, receipt)`` before it is returned.
    """

    def __init__(
        self,
        authority: ReceiptAuthority,
        cipher: PayloadCipher,
        polls_until_complete: int = 0,
        poll_script: Sequence[PollStep] | None = None,
        fail_computations: bool = False,
        result_hook: ResultHook | None = None,
    ) -> None:
        self._authority = authority
        self._cipher = cipher
        self._polls_until_complete = polls_until_complete
        self._poll_script = list(poll_script) if poll_script else None
        self._fail_computations = fail_computations
        self._result_hook = result_hook
        self._computations: dict[str, _Computation] = {}

    async def submit(self, circuit_id: CircuitId, encrypted_input: bytes) -> str:
        if circuit_id not in RULESETS:
            raise SubmissionRejectedError(f"unknown circuit {circuit_id!r}")

        try:
            computation_input = decode_input(self._cipher.decrypt(encrypted_input))
            if computation_input.circuit_id is not circuit_id:
                raise SubmissionRejectedError(
                    f"payload is for {computation_input.circuit_id.value}, "
                    f"submitted as {circuit_id.value}"
                )
            plan_bytes = encode_plan(derive(computation_input))
        except SubmissionRejectedError:
            raise
        except CipherPlanError as exc:
            logger.warning("simulated_submission_rejected", error=str(exc))
            raise SubmissionRejectedError(f"malformed input: {exc}") from exc

        computation_id = f"sim_{uuid4().hex}"
        self._computations[computation_id] = _Computation(circuit_id, plan_bytes)
        logger.info(
            "simulated_computation_queued",
            computation_id=computation_id,
            circuit_id=circuit_id.value,
        )
        return computation_id

    async def poll_status(self, computation_id: str) -> ComputationStatus:
        computation = self._get(computation_id)
        if computation.status is not ComputationStatus.PENDING:
            return computation.status

        step = self._next_step(computation)
        computation.polls += 1
        if isinstance(step, Exception):
            raise step

        if step is not ComputationStatus.PENDING:
            self._finish(computation_id, computation, step)
        return computation.status

    async def fetch_result(self, computation_id: str) -> tuple[bytes, ComputationReceipt]:
        computation = self._get(computation_id)
        receipt = computation.receipt
        if computation.status is not ComputationStatus.COMPLETED or receipt is None:
            raise NotReadyError(
                f"computation {computation_id} is {computation.status.name}"
            )

        ciphertext = self._cipher.encrypt(computation.plan_bytes)
        if self._result_hook is not None:
            ciphertext, receipt = self._result_hook(computation_id, ciphertext, receipt)
        return ciphertext, receipt

    def public_key(self) -> VerifyKey:
        return self._authority.verify_key

    def receipt_for(self, computation_id: str) -> ComputationReceipt | None:
        """Receipt issued for a finished computation (None while pending)."""
        return self._get(computation_id).receipt

    def _get(self, computation_id: str) -> _Computation:
        try:
            return self._computations[computation_id]
        except KeyError:
            raise NotReadyError(f"unknown computation {computation_id}") from None

    def _next_step(self, computation: _Computation) -> PollStep:
        if self._poll_script is not None:
            return self._poll_script[min(computation.polls, len(self._poll_script) - 1)]
        if computation.polls < self._polls_until_complete:
            return ComputationStatus.PENDING
        if self._fail_computations:
            return ComputationStatus.FAILED
        return ComputationStatus.COMPLETED

    def _finish(
        self,
        computation_id: str,
        computation: _Computation,
        status: ComputationStatus,
    ) -> None:
        computation.status = status
        result = computation.plan_bytes if status is ComputationStatus.COMPLETED else b""
        computation.receipt = self._authority.issue(computation_id, result, status)
        logger.info(
            "simulated_computation_finished",
            computation_id=computation_id,
            status=status.name,
            polls=computation.polls,
        )

"""Receipt construction on the network side of the protocol.

The real signing authority lives inside the computation network. This
implementation is what the simulated network uses and what tests use to mint
genuine receipts; its output format is the contract the verifier checks.
"""

import time
from collections.abc import Callable

from nacl.signing import SigningKey, VerifyKey

from cipherplan.logging import get_logger
from cipherplan.models import ComputationReceipt, ComputationStatus, StrategyPlan
from cipherplan.receipts.canonical import (
    compute_receipt_id,
    compute_result_hash,
    signing_message,
)

logger = get_logger(__name__)


class ReceiptAuthority:
    """Ed25519 signing authority that issues computation receipts.

    Args:
        signing_key: The authority's private key.
        clock: Wall-clock source for receipt timestamps (seconds).
    """

    def __init__(
        self,
        signing_key: SigningKey,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signing_key = signing_key
        self._clock = clock

    @classmethod
    def generate(cls, clock: Callable[[], float] = time.time) -> "ReceiptAuthority":
        """Create an authority with a fresh random key pair."""
        return cls(SigningKey.generate(), clock=clock)

    @property
    def verify_key(self) -> VerifyKey:
        """Public key clients verify receipt signatures with."""
        return self._signing_key.verify_key

    def issue(
        self,
        computation_id: str,
        result: bytes | StrategyPlan,
        status: ComputationStatus = ComputationStatus.COMPLETED,
        timestamp: int | None = None,
    ) -> ComputationReceipt:
        """Hash the result, sign ``computation_id || result_hash``, derive the id.

        Args:
            computation_id: Identifier the network assigned at submission.
            result: Canonical plan bytes (or a plan, encoded canonically).
                Use ``b""`` for FAILED/PENDING receipts.
            status: Status the receipt attests to.
            timestamp: Override for the issue time; defaults to ``clock()``.
        """
        result_hash = compute_result_hash(result)
        signature = self._signing_key.sign(
            signing_message(computation_id, result_hash)
        ).signature
        issued_at = int(self._clock()) if timestamp is None else timestamp

        receipt = ComputationReceipt(
            receipt_id=compute_receipt_id(
                computation_id, result_hash, signature, issued_at, status
            ),
            computation_id=computation_id,
            result_hash=result_hash,
            signature=signature,
            timestamp=issued_at,
            status=status,
        )
        logger.debug(
            "receipt_issued",
            computation_id=computation_id,
            receipt_id=receipt.receipt_id.hex(),
            status=status.name,
        )
        return receipt

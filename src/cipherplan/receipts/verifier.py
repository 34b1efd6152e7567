"""Client-side receipt verification.

Checks run in a fixed order and stop at the first failure, raising the
exception for that specific check:

1. computation id matches the one we submitted    -> ComputationMismatchError
2. decrypted result hashes to receipt.result_hash -> ResultTamperedError
3. signature verifies under the network key       -> InvalidSignatureError
4. receipt_id matches the digest of the fields    -> ReceiptIdMismatchError
5. timestamp within [submitted_at, now + skew]    -> StaleOrFutureReceiptError
6. status is COMPLETED                            -> NotReadyError / ComputationFailedError
                                                     (SchemaMismatchError if unknown)

A receipt whose fields cannot be canonically encoded (timestamp outside i64,
unencodable computation id) fails the check that needed the encoding.

Verification is pure: it never retries and never touches the network.
"""

import hmac
import struct
import time
from collections.abc import Callable

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from cipherplan.exceptions import (
    CipherPlanError,
    ComputationFailedError,
    ComputationMismatchError,
    InvalidSignatureError,
    NotReadyError,
    ReceiptIdMismatchError,
    ResultTamperedError,
    SchemaMismatchError,
    StaleOrFutureReceiptError,
)
from cipherplan.logging import get_logger
from cipherplan.models import ComputationReceipt, ComputationStatus, StrategyPlan
from cipherplan.receipts.canonical import (
    compute_result_hash,
    receipt_id_for,
    signing_message,
)

logger = get_logger(__name__)

DEFAULT_SKEW_BOUND = 30


def verify_receipt(
    receipt: ComputationReceipt,
    decrypted_plan: bytes | StrategyPlan,
    expected_computation_id: str,
    network_public_key: VerifyKey,
    *,
    submitted_at: int,
    verified_at: int,
    skew_bound: int = DEFAULT_SKEW_BOUND,
) -> None:
    """Verify ``receipt`` against the decrypted result.

    Args:
        receipt: Receipt returned by the network.
        decrypted_plan: Decrypted output bytes, or a plan to encode canonically.
        expected_computation_id: Id returned by our own submission.
        network_public_key: The network's receipt-signing key.
        submitted_at: Wall-clock seconds when the computation was submitted.
        verified_at: Wall-clock seconds now.
        skew_bound: Seconds a receipt may be dated past ``verified_at``.

    Raises:
        VerificationError: subclass naming the failed integrity check.
        NotReadyError: receipt is still PENDING (retryable).
        ComputationFailedError: receipt attests a FAILED computation.
        SchemaMismatchError: receipt status is not a known ComputationStatus.
    """
    if receipt.computation_id != expected_computation_id:
        raise ComputationMismatchError(
            f"receipt is for {receipt.computation_id!r}, "
            f"expected {expected_computation_id!r}"
        )

    if not hmac.compare_digest(compute_result_hash(decrypted_plan), receipt.result_hash):
        raise ResultTamperedError("decrypted result does not match receipt result_hash")

    try:
        message = signing_message(receipt.computation_id, receipt.result_hash)
        network_public_key.verify(message, receipt.signature)
    except (BadSignatureError, ValueError) as exc:
        raise InvalidSignatureError("receipt signature does not verify") from exc

    try:
        expected_receipt_id = receipt_id_for(receipt)
    except (struct.error, TypeError, ValueError) as exc:
        raise ReceiptIdMismatchError(f"receipt fields cannot be digested: {exc}") from exc
    if not hmac.compare_digest(expected_receipt_id, receipt.receipt_id):
        raise ReceiptIdMismatchError("receipt_id does not match receipt fields")

    if receipt.timestamp < submitted_at:
        raise StaleOrFutureReceiptError(
            f"receipt timestamp {receipt.timestamp} predates submission at {submitted_at}"
        )
    if receipt.timestamp > verified_at + skew_bound:
        raise StaleOrFutureReceiptError(
            f"receipt timestamp {receipt.timestamp} is beyond "
            f"{verified_at} + {skew_bound}s skew"
        )

    # status may arrive as a raw wire int; compare by value
    if receipt.status == ComputationStatus.PENDING:
        raise NotReadyError("receipt status is PENDING")
    if receipt.status == ComputationStatus.FAILED:
        raise ComputationFailedError("receipt attests a failed computation")
    if receipt.status != ComputationStatus.COMPLETED:
        raise SchemaMismatchError(f"receipt status {receipt.status!r} is not a known status")


class ReceiptVerifier:
    """Verifier bound to the network's shared, read-only signing key.

    One instance can serve any number of concurrent sessions.

    Args:
        network_public_key: Ed25519 key the network signs receipts with.
        skew_bound: Seconds of future clock skew tolerated on receipts.
        clock: Wall-clock source for ``verified_at``.
    """

    def __init__(
        self,
        network_public_key: VerifyKey,
        skew_bound: int = DEFAULT_SKEW_BOUND,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._public_key = network_public_key
        self._skew_bound = skew_bound
        self._clock = clock

    @property
    def public_key(self) -> VerifyKey:
        return self._public_key

    def verify(
        self,
        receipt: ComputationReceipt,
        decrypted_plan: bytes | StrategyPlan,
        expected_computation_id: str,
        submitted_at: int,
    ) -> None:
        """Run all checks, logging the failing one before re-raising it."""
        try:
            verify_receipt(
                receipt,
                decrypted_plan,
                expected_computation_id,
                self._public_key,
                submitted_at=submitted_at,
                verified_at=int(self._clock()),
                skew_bound=self._skew_bound,
            )
        except CipherPlanError as exc:
            logger.warning(
                "receipt_verification_failed",
                computation_id=receipt.computation_id,
                error_kind=exc.kind.value,
                error=str(exc),
            )
            raise

        logger.info(
            "receipt_verified",
            computation_id=receipt.computation_id,
            receipt_id=receipt.receipt_id.hex(),
        )

"""Error taxonomy for confidential strategy sessions.

Every failure a caller can observe is a ``CipherPlanError`` subclass carrying
an ``ErrorKind``. Callers branch on ``kind`` (or on ``retryable``) instead of
parsing messages. All exceptions live here to avoid circular imports between
the encoding, receipt and session layers.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error categories surfaced to callers."""

    INVALID_INPUT = "invalid_input"
    SUBMISSION_REJECTED = "submission_rejected"
    NOT_READY = "not_ready"
    COMPUTATION_FAILED = "computation_failed"
    TIMED_OUT = "timed_out"
    SCHEMA_MISMATCH = "schema_mismatch"
    COMPUTATION_MISMATCH = "computation_mismatch"
    RESULT_TAMPERED = "result_tampered"
    INVALID_SIGNATURE = "invalid_signature"
    RECEIPT_ID_MISMATCH = "receipt_id_mismatch"
    STALE_OR_FUTURE_RECEIPT = "stale_or_future_receipt"
    NETWORK_UNAVAILABLE = "network_unavailable"
    CANCELLED = "cancelled"
    RECEIPT_REPLAYED = "receipt_replayed"


#: Kinds a caller (or the polling layer) may retry.
RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.NOT_READY, ErrorKind.NETWORK_UNAVAILABLE}
)


class CipherPlanError(Exception):
    """Base exception for all cipherplan errors."""

    kind: ErrorKind

    @property
    def retryable(self) -> bool:
        """Whether repeating the same request can succeed."""
        return self.kind in RETRYABLE_KINDS

    @property
    def terminal(self) -> bool:
        """Whether the session must be abandoned."""
        return not self.retryable


class InvalidInputError(CipherPlanError):
    """Raised when a ComputationInput field is outside its declared range."""

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"invalid {field}: {reason}")


class SubmissionRejectedError(CipherPlanError):
    """Raised when the network refuses a submission (bad ciphertext, unknown circuit)."""

    kind = ErrorKind.SUBMISSION_REJECTED


class NotReadyError(CipherPlanError):
    """Raised when a receipt or result is still pending."""

    kind = ErrorKind.NOT_READY


class ComputationFailedError(CipherPlanError):
    """Raised when the network reports that a computation failed."""

    kind = ErrorKind.COMPUTATION_FAILED


class SessionTimedOutError(CipherPlanError):
    """Raised when a computation does not complete before the session deadline."""

    kind = ErrorKind.TIMED_OUT


class SchemaMismatchError(CipherPlanError):
    """Raised when bytes do not match the expected circuit layout or version."""

    kind = ErrorKind.SCHEMA_MISMATCH


class NetworkUnavailableError(CipherPlanError):
    """Raised by network clients for transient transport failures."""

    kind = ErrorKind.NETWORK_UNAVAILABLE


class SessionCancelledError(CipherPlanError):
    """Raised when a caller cancels a session before its result is ready."""

    kind = ErrorKind.CANCELLED


class ReceiptReplayedError(CipherPlanError):
    """Raised when a computation id is presented with a second, different receipt."""

    kind = ErrorKind.RECEIPT_REPLAYED


class VerificationError(CipherPlanError):
    """Base for receipt checks. Any of these means the result must be discarded."""


class ComputationMismatchError(VerificationError):
    """Raised when the receipt names a different computation than the one submitted."""

    kind = ErrorKind.COMPUTATION_MISMATCH


class ResultTamperedError(VerificationError):
    """Raised when the decrypted result does not hash to the receipt's result_hash."""

    kind = ErrorKind.RESULT_TAMPERED


class InvalidSignatureError(VerificationError):
    """Raised when the receipt signature does not verify under the network key."""

    kind = ErrorKind.INVALID_SIGNATURE


class ReceiptIdMismatchError(VerificationError):
    """Raised when receipt_id does not match the digest of the other fields."""

    kind = ErrorKind.RECEIPT_ID_MISMATCH


class StaleOrFutureReceiptError(VerificationError):
    """Raised when the receipt timestamp is outside the accepted window."""

    kind = ErrorKind.STALE_OR_FUTURE_RECEIPT

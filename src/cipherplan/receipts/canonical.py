"""Canonical byte forms and digests shared by receipt builders and verifiers.

- result_hash = SHA-256(encode_plan(plan))
- signed message = utf8(computation_id) || result_hash
- receipt_id = SHA-256(domain || lp(computation_id) || lp(result_hash)
                       || lp(signature) || timestamp:i64 || status:u8)

``lp(x)`` is ``len(x):u32 || x``. The length prefixes keep the concatenation
unambiguous for the variable-length computation id.
"""

import hashlib
import struct

from cipherplan.encoding.codec import encode_plan
from cipherplan.models import ComputationReceipt, ComputationStatus, StrategyPlan

RECEIPT_ID_DOMAIN = b"cipherplan/receipt-id/v1"

_LENGTH_PREFIX = struct.Struct("<I")
_TRAILER = struct.Struct("<qB")


def plan_bytes(decrypted_plan: bytes | StrategyPlan) -> bytes:
    """Return the canonical encoding, encoding plan objects if needed."""
    if isinstance(decrypted_plan, StrategyPlan):
        return encode_plan(decrypted_plan)
    return bytes(decrypted_plan)


def compute_result_hash(decrypted_plan: bytes | StrategyPlan) -> bytes:
    return hashlib.sha256(plan_bytes(decrypted_plan)).digest()


def signing_message(computation_id: str, result_hash: bytes) -> bytes:
    return computation_id.encode("utf-8") + result_hash


def compute_receipt_id(
    computation_id: str,
    result_hash: bytes,
    signature: bytes,
    timestamp: int,
    status: ComputationStatus,
) -> bytes:
    digest = hashlib.sha256(RECEIPT_ID_DOMAIN)
    for part in (computation_id.encode("utf-8"), result_hash, signature):
        digest.update(_LENGTH_PREFIX.pack(len(part)))
        digest.update(part)
    digest.update(_TRAILER.pack(timestamp, int(status)))
    return digest.digest()


def receipt_id_for(receipt: ComputationReceipt) -> bytes:
    """Recompute ``receipt_id`` from the receipt's other fields."""
    return compute_receipt_id(
        receipt.computation_id,
        receipt.result_hash,
        receipt.signature,
        receipt.timestamp,
        receipt.status,
    )

"""Receipt protocol -- canonical digests, issuing, verification and audit storage."""

from cipherplan.receipts.builder import ReceiptAuthority
from cipherplan.receipts.canonical import (
    compute_receipt_id,
    compute_result_hash,
    receipt_id_for,
    signing_message,
)
from cipherplan.receipts.database import ReceiptDatabase
from cipherplan.receipts.store import InMemoryReceiptStore, ReceiptStore, SqliteReceiptStore
from cipherplan.receipts.verifier import ReceiptVerifier, verify_receipt

__all__ = [
    "InMemoryReceiptStore",
    "ReceiptAuthority",
    "ReceiptDatabase",
    "ReceiptStore",
    "ReceiptVerifier",
    "SqliteReceiptStore",
    "compute_receipt_id",
    "compute_result_hash",
    "receipt_id_for",
    "signing_message",
    "verify_receipt",
]

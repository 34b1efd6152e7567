"""Receipt audit stores: ``computation_id -> ComputationReceipt``.

The store is the only state the client persists. It backs replay detection:
a computation id may be bound to exactly one receipt. Re-recording the same
receipt is a no-op; presenting a different receipt for a recorded id raises
``ReceiptReplayedError``.
"""

import asyncio
import time
from abc import ABC, abstractmethod

from cipherplan.exceptions import ReceiptReplayedError
from cipherplan.logging import get_logger
from cipherplan.models import ComputationReceipt, ComputationStatus
from cipherplan.receipts.database import ReceiptDatabase

logger = get_logger(__name__)


class ReceiptStore(ABC):
    """Abstract receipt store. Session code depends only on this interface."""

    @abstractmethod
    async def record(self, receipt: ComputationReceipt) -> bool:
        """Store ``receipt`` under its computation id.

        Returns:
            True if newly stored, False if the identical receipt was already there.

        Raises:
            ReceiptReplayedError: if a different receipt is already stored for
                the same computation id.
        """
        ...

    @abstractmethod
    async def get(self, computation_id: str) -> ComputationReceipt | None:
        """Return the stored receipt for ``computation_id``, if any."""
        ...

    @abstractmethod
    async def list_receipts(self) -> list[ComputationReceipt]:
        """Return all stored receipts ordered by timestamp."""
        ...


def _check_replay(existing: ComputationReceipt, receipt: ComputationReceipt) -> None:
    if existing.receipt_id != receipt.receipt_id:
        logger.warning(
            "receipt_replay_detected",
            computation_id=receipt.computation_id,
            stored_receipt_id=existing.receipt_id.hex(),
            presented_receipt_id=receipt.receipt_id.hex(),
        )
        raise ReceiptReplayedError(
            f"computation {receipt.computation_id!r} already has a different receipt"
        )


class InMemoryReceiptStore(ReceiptStore):
    """Process-local receipt store."""

    def __init__(self) -> None:
        self._receipts: dict[str, ComputationReceipt] = {}
        self._lock = asyncio.Lock()

    async def record(self, receipt: ComputationReceipt) -> bool:
        async with self._lock:
            existing = self._receipts.get(receipt.computation_id)
            if existing is not None:
                _check_replay(existing, receipt)
                return False
            self._receipts[receipt.computation_id] = receipt
            logger.debug("receipt_recorded", computation_id=receipt.computation_id)
            return True

    async def get(self, computation_id: str) -> ComputationReceipt | None:
        return self._receipts.get(computation_id)

    async def list_receipts(self) -> list[ComputationReceipt]:
        return sorted(self._receipts.values(), key=lambda r: r.timestamp)


class SqliteReceiptStore(ReceiptStore):
    """Receipt store persisted in SQLite through ReceiptDatabase.

    Binary fields are stored as hex TEXT and restored as bytes on read.

    Usage:
        async with ReceiptDatabase("data/receipts.db") as database:
            store = SqliteReceiptStore(database)
            await store.record(receipt)
    """

    def __init__(self, database: ReceiptDatabase) -> None:
        self._database = database
        self._lock = asyncio.Lock()

    async def record(self, receipt: ComputationReceipt) -> bool:
        async with self._lock:
            existing = await self.get(receipt.computation_id)
            if existing is not None:
                _check_replay(existing, receipt)
                return False

            await self._database.db.execute(
                "INSERT INTO receipts "
                "(computation_id, receipt_id, result_hash, signature, "
                "timestamp, status, recorded_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    receipt.computation_id,
                    receipt.receipt_id.hex(),
                    receipt.result_hash.hex(),
                    receipt.signature.hex(),
                    receipt.timestamp,
                    int(receipt.status),
                    int(time.time()),
                ),
            )
            await self._database.db.commit()
            logger.debug("receipt_recorded", computation_id=receipt.computation_id)
            return True

    async def get(self, computation_id: str) -> ComputationReceipt | None:
        cursor = await self._database.db.execute(
            "SELECT computation_id, receipt_id, result_hash, signature, "
            "timestamp, status FROM receipts WHERE computation_id = ?",
            (computation_id,),
        )
        row = await cursor.fetchone()
        return _row_to_receipt(row) if row is not None else None

    async def list_receipts(self) -> list[ComputationReceipt]:
        cursor = await self._database.db.execute(
            "SELECT computation_id, receipt_id, result_hash, signature, "
            "timestamp, status FROM receipts ORDER BY timestamp ASC"
        )
        rows = await cursor.fetchall()
        return [_row_to_receipt(row) for row in rows]


def _row_to_receipt(row: tuple) -> ComputationReceipt:
    computation_id, receipt_id, result_hash, signature, timestamp, status = row
    return ComputationReceipt(
        receipt_id=bytes.fromhex(receipt_id),
        computation_id=computation_id,
        result_hash=bytes.fromhex(result_hash),
        signature=bytes.fromhex(signature),
        timestamp=timestamp,
        status=ComputationStatus(status),
    )

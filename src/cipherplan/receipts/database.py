"""Async SQLite connection for the receipt audit log.

The schema version lives in ``PRAGMA user_version``. A database written by a
different version is refused instead of being read with the wrong layout.
WAL journaling lets an auditor read while sessions append.
"""

from pathlib import Path
from typing import Self

import aiosqlite

from cipherplan.logging import get_logger

logger = get_logger(__name__)

RECEIPT_SCHEMA_VERSION = 1

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS receipts (
    computation_id TEXT PRIMARY KEY,
    receipt_id TEXT NOT NULL UNIQUE,
    result_hash TEXT NOT NULL,
    signature TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    status INTEGER NOT NULL,
    recorded_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_receipts_timestamp ON receipts(timestamp);
"""

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=FULL",  # receipts are audit records
    "PRAGMA busy_timeout=5000",
)


class ReceiptDatabase:
    """Owns one aiosqlite connection to the receipt log.

    Usage:
        async with ReceiptDatabase("data/receipts.db") as database:
            store = SqliteReceiptStore(database)
            await store.record(receipt)
    """

    def __init__(self, db_path: str = "data/receipts.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """The open connection. Raises RuntimeError before connect()."""
        if self._connection is None:
            raise RuntimeError(f"receipt database {self._db_path} is not connected")
        return self._connection

    async def connect(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        for pragma in _PRAGMAS:
            await self._connection.execute(pragma)

        version = await self._user_version()
        if version == 0:
            await self._connection.executescript(_SCHEMA_SQL)
            await self._connection.execute(f"PRAGMA user_version={RECEIPT_SCHEMA_VERSION}")
            await self._connection.commit()
            logger.info("receipt_schema_created", version=RECEIPT_SCHEMA_VERSION)
        elif version != RECEIPT_SCHEMA_VERSION:
            raise RuntimeError(
                f"receipt database schema v{version} is not supported "
                f"(expected v{RECEIPT_SCHEMA_VERSION})"
            )

        logger.info("receipt_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        if self._connection is None:
            return
        await self._connection.close()
        self._connection = None
        logger.info("receipt_db_closed", db_path=self._db_path)

    async def _user_version(self) -> int:
        cursor = await self.db.execute("PRAGMA user_version")
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()

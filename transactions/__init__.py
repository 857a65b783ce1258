"""Transactions module for storing reported chain transactions.

This module provides functionality for:
- Upserting transactions reported by nodes
- Looking transactions up by hash or id
"""

import logging
from typing import Any, Dict, List, Optional

from config import get_settings
from database import PoolManager, RecordNotFoundError
from .models import (
    BurnPayload,
    MintPayload,
    NotePayload,
    SpendPayload,
    TransactionPayload,
    UpsertTransactionsRequest
)

logger = logging.getLogger(__name__)


class TransactionError(Exception):
    """Base exception for transaction operations."""
    pass


class TransactionNotFoundError(TransactionError, RecordNotFoundError):
    """Raised when a transaction is not found."""
    pass


def standardize_hash(hash: str) -> str:
    """Normalize a hex hash for storage and lookups."""
    return hash.strip().lower()


class TransactionManager(PoolManager):
    """Manager class for handling transaction records."""

    def __init__(self, pool=None, network_version: Optional[int] = None):
        """Initialize the transaction manager.

        Args:
            pool: Optional database pool. If not provided, will get from database module.
            network_version: Network the rows belong to. Defaults to settings.
        """
        super().__init__(pool)
        self._network_version = network_version

    @property
    def network_version(self) -> int:
        if self._network_version is None:
            self._network_version = get_settings()['network_version']
        return self._network_version

    async def upsert_many(
        self,
        transactions: List[TransactionPayload],
        conn=None
    ) -> List[Dict[str, Any]]:
        """Insert or update transactions by hash.

        Args:
            transactions: Reported transactions
            conn: Optional connection to run on (e.g. inside a block transaction)

        Returns:
            The stored transaction rows, in input order
        """
        records = []
        async with self.connection(conn) as conn:
            for transaction in transactions:
                row = await conn.fetchrow(
                    '''
                    INSERT INTO transactions (
                        hash, network_version, fee, expiration, size, notes, spends
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                    ON CONFLICT (hash, network_version) DO UPDATE SET
                        fee = EXCLUDED.fee,
                        expiration = EXCLUDED.expiration,
                        size = EXCLUDED.size,
                        notes = EXCLUDED.notes,
                        spends = EXCLUDED.spends
                    RETURNING *
                    ''',
                    standardize_hash(transaction.hash),
                    self.network_version,
                    transaction.fee,
                    transaction.expiration,
                    transaction.size,
                    [note.model_dump() for note in transaction.notes],
                    [spend.model_dump() for spend in transaction.spends]
                )
                records.append(dict(row))

        logger.debug(f"Upserted {len(records)} transactions")
        return records

    async def find(self, hash: str, conn=None) -> Optional[Dict[str, Any]]:
        """Get a transaction by hash, or None."""
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                'SELECT * FROM transactions WHERE hash = $1 AND network_version = $2',
                standardize_hash(hash),
                self.network_version
            )
        return dict(row) if row else None

    async def find_by_hash_or_throw(self, hash: str, conn=None) -> Dict[str, Any]:
        """Get a transaction by hash.

        Raises:
            TransactionNotFoundError: If no transaction has this hash
        """
        transaction = await self.find(hash, conn)
        if transaction is None:
            raise TransactionNotFoundError(f"Transaction {hash} not found")
        return transaction

    async def find_or_throw(self, transaction_id: int, conn=None) -> Dict[str, Any]:
        """Get a transaction by id.

        Raises:
            TransactionNotFoundError: If no transaction has this id
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                'SELECT * FROM transactions WHERE id = $1',
                transaction_id
            )
        if not row:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return dict(row)


__all__ = [
    'TransactionManager',
    'TransactionError',
    'TransactionNotFoundError',
    'TransactionPayload',
    'UpsertTransactionsRequest',
    'MintPayload',
    'BurnPayload',
    'NotePayload',
    'SpendPayload',
    'standardize_hash'
]

"""Blocks module for managing reported chain blocks.

This module provides functionality for:
- Upserting blocks and linking them to their transactions
- Marking blocks as disconnected from the main chain
- Looking up the chain head and individual blocks
- Listing blocks with cursor pagination
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from config import get_settings
from database import PoolManager, RecordNotFoundError
from database.lib.pagination import paginate
from transactions import standardize_hash
from .models import (
    MAX_SAFE_INTEGER,
    BlockOperation,
    BlockPayload,
    DisconnectBlocksRequest,
    UpsertBlocksRequest
)

logger = logging.getLogger(__name__)

# Largest sequence range a single list call may span
MAX_BLOCKS_TO_RETURN = 1000


class BlockError(Exception):
    """Base exception for block operations."""
    pass


class BlockNotFoundError(BlockError, RecordNotFoundError):
    """Raised when a block is not found."""
    pass


class InvalidBlockRangeError(BlockError):
    """Raised when a sequence range filter is invalid."""
    pass


def _block_from_row(row) -> Dict[str, Any]:
    block = dict(row)
    block['difficulty'] = int(block['difficulty'])
    if block.get('work') is not None:
        block['work'] = int(block['work'])
    return block


class BlockManager(PoolManager):
    """Manager class for handling block records."""

    def __init__(self, pool=None, network_version: Optional[int] = None):
        """Initialize the block manager.

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

    async def upsert(
        self,
        block: BlockPayload,
        time_since_last_block_ms: Optional[int] = None,
        conn=None
    ) -> Dict[str, Any]:
        """Insert or update a block by hash.

        A block is on the main chain exactly when it was reported as CONNECTED.

        Args:
            block: Reported block
            time_since_last_block_ms: Gap to the previous block, when known
            conn: Optional connection to run on

        Returns:
            The stored block row
        """
        previous_block_hash = (
            standardize_hash(block.previous_block_hash)
            if block.previous_block_hash else None
        )

        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                INSERT INTO blocks (
                    hash, sequence, previous_block_hash, main, network_version,
                    timestamp, graffiti, difficulty, work, size,
                    transactions_count, time_since_last_block_ms
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                ON CONFLICT (hash, network_version) DO UPDATE SET
                    sequence = EXCLUDED.sequence,
                    previous_block_hash = EXCLUDED.previous_block_hash,
                    main = EXCLUDED.main,
                    timestamp = EXCLUDED.timestamp,
                    graffiti = EXCLUDED.graffiti,
                    difficulty = EXCLUDED.difficulty,
                    work = EXCLUDED.work,
                    size = EXCLUDED.size,
                    transactions_count = EXCLUDED.transactions_count,
                    time_since_last_block_ms = EXCLUDED.time_since_last_block_ms
                RETURNING *
                ''',
                standardize_hash(block.hash),
                block.sequence,
                previous_block_hash,
                block.type == BlockOperation.CONNECTED,
                self.network_version,
                block.timestamp,
                block.graffiti,
                Decimal(block.difficulty),
                Decimal(block.work) if block.work is not None else None,
                block.size,
                len(block.transactions),
                time_since_last_block_ms
            )
        return _block_from_row(row)

    async def find_by_hash(self, hash: str, conn=None) -> Optional[Dict[str, Any]]:
        """Get a block by hash, or None."""
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                'SELECT * FROM blocks WHERE hash = $1 AND network_version = $2',
                standardize_hash(hash),
                self.network_version
            )
        return _block_from_row(row) if row else None

    async def link_transactions(
        self,
        block: Dict[str, Any],
        indexed_transactions: List[Tuple[Dict[str, Any], int]],
        conn=None
    ) -> None:
        """Record which transactions a block contains and at which index."""
        async with self.connection(conn) as conn:
            await conn.executemany(
                '''
                INSERT INTO blocks_transactions (block_id, transaction_id, index)
                VALUES ($1, $2, $3)
                ON CONFLICT (block_id, transaction_id) DO UPDATE SET
                    index = EXCLUDED.index
                ''',
                [
                    (block['id'], transaction['id'], index)
                    for transaction, index in indexed_transactions
                ]
            )

    async def disconnect_after(self, sequence_gt: int, conn=None) -> int:
        """Mark every block above ``sequence_gt`` as off the main chain.

        Returns:
            Number of blocks updated
        """
        async with self.connection(conn) as conn:
            result = await conn.execute(
                '''
                UPDATE blocks SET main = false
                WHERE sequence > $1 AND network_version = $2 AND main = true
                ''',
                sequence_gt,
                self.network_version
            )
        # Status string looks like 'UPDATE 3'
        count = int(result.split()[-1])
        logger.info(f"Disconnected {count} blocks after sequence {sequence_gt}")
        return count

    async def head(self, conn=None) -> Dict[str, Any]:
        """Get the highest main chain block.

        Raises:
            BlockNotFoundError: If no main chain block exists
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                SELECT * FROM blocks
                WHERE main = true AND network_version = $1
                ORDER BY sequence DESC
                LIMIT 1
                ''',
                self.network_version
            )
        if not row:
            raise BlockNotFoundError("No blocks on the main chain")
        return _block_from_row(row)

    async def find(
        self,
        hash: Optional[str] = None,
        sequence: Optional[int] = None,
        conn=None
    ) -> Optional[Dict[str, Any]]:
        """Get a block by hash, or the main chain block at ``sequence``."""
        if hash is not None:
            return await self.find_by_hash(hash, conn)

        if sequence is None:
            raise BlockError("Either hash or sequence is required")

        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                SELECT * FROM blocks
                WHERE sequence = $1 AND main = true AND network_version = $2
                ''',
                sequence,
                self.network_version
            )
        return _block_from_row(row) if row else None

    async def list(
        self,
        after: Optional[int] = None,
        before: Optional[int] = None,
        limit: Optional[int] = None,
        main: Optional[bool] = None,
        sequence_gte: Optional[int] = None,
        sequence_lt: Optional[int] = None,
        search: Optional[str] = None,
        transaction_id: Optional[int] = None,
        conn=None
    ) -> Dict[str, Any]:
        """List blocks newest first.

        Args:
            search: Match a block hash or graffiti exactly, or a sequence
                when the value is numeric
            transaction_id: Only blocks containing this transaction, on
                the main chain or not. ``main`` is ignored when set.

        Raises:
            InvalidBlockRangeError: If the sequence range is empty or too
                long, or a numeric search is not a safe integer
        """
        where = ['network_version = $1']
        params: List[Any] = [self.network_version]

        if search:
            try:
                sequence = int(search)
            except ValueError:
                sequence = None

            params.append(search)
            graffiti_clause = f'graffiti = ${len(params)}'
            if sequence is None:
                params.append(standardize_hash(search))
                where.append(f'(hash = ${len(params)} OR {graffiti_clause})')
            else:
                if abs(sequence) > MAX_SAFE_INTEGER:
                    raise InvalidBlockRangeError(
                        f"Sequence search value must be at most {MAX_SAFE_INTEGER}."
                    )
                params.append(sequence)
                where.append(f'(sequence = ${len(params)} OR {graffiti_clause})')

        if transaction_id is not None:
            params.append(transaction_id)
            where.append(
                'id IN (SELECT block_id FROM blocks_transactions '
                f'WHERE transaction_id = ${len(params)})'
            )
            main = None

        if sequence_gte is not None and sequence_lt is not None:
            if sequence_gte >= sequence_lt:
                raise InvalidBlockRangeError(
                    "'sequence_gte' must be strictly less than 'sequence_lt'."
                )
            if sequence_lt - sequence_gte > MAX_BLOCKS_TO_RETURN:
                raise InvalidBlockRangeError(
                    f"Range is too long. Max sequence difference is {MAX_BLOCKS_TO_RETURN}."
                )

        if sequence_gte is not None:
            params.append(sequence_gte)
            where.append(f'sequence >= ${len(params)}')
        if sequence_lt is not None:
            params.append(sequence_lt)
            where.append(f'sequence < ${len(params)}')
        if main is not None:
            params.append(main)
            where.append(f'main = ${len(params)}')

        async with self.connection(conn) as conn:
            page = await paginate(
                conn,
                'blocks',
                where=where,
                params=params,
                after=after,
                before=before,
                limit=limit
            )
        page['data'] = [_block_from_row(row) for row in page['data']]
        return page

    async def find_blocks_by_transaction(
        self,
        transaction: Dict[str, Any],
        conn=None
    ) -> List[Dict[str, Any]]:
        """Get every block (main or not) containing a transaction."""
        async with self.connection(conn) as conn:
            rows = await conn.fetch(
                '''
                SELECT b.* FROM blocks b
                JOIN blocks_transactions bt ON bt.block_id = b.id
                WHERE bt.transaction_id = $1
                ORDER BY b.sequence DESC
                ''',
                transaction['id']
            )
        return [_block_from_row(row) for row in rows]

    async def find_main_block_by_transaction(
        self,
        transaction: Dict[str, Any],
        conn=None
    ) -> Optional[Dict[str, Any]]:
        """Get the main chain block containing a transaction, or None."""
        blocks = await self.find_blocks_by_transaction(transaction, conn)
        return next((block for block in blocks if block['main']), None)

    async def find_transactions_by_block(
        self,
        block: Dict[str, Any],
        conn=None
    ) -> List[Dict[str, Any]]:
        """Get a block's transactions in block order."""
        async with self.connection(conn) as conn:
            rows = await conn.fetch(
                '''
                SELECT t.* FROM transactions t
                JOIN blocks_transactions bt ON bt.transaction_id = t.id
                WHERE bt.block_id = $1
                ORDER BY bt.index
                ''',
                block['id']
            )
        return [dict(row) for row in rows]


__all__ = [
    'BlockManager',
    'BlockError',
    'BlockNotFoundError',
    'InvalidBlockRangeError',
    'BlockOperation',
    'BlockPayload',
    'UpsertBlocksRequest',
    'DisconnectBlocksRequest',
    'MAX_BLOCKS_TO_RETURN'
]

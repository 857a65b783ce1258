"""Block ingest.

Stores reported blocks together with their transactions, then queues one
asset description job per transaction so mints and burns follow the block
on or off the main chain.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from blocks import BlockManager, BlockOperation, BlockPayload
from jobs import JobPattern, JobQueue
from transactions import TransactionManager, standardize_hash

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from payloads are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BlocksTransactionsLoader:
    """Loads batches of blocks reported by a node."""

    def __init__(
        self,
        pool=None,
        blocks: BlockManager = None,
        transactions: TransactionManager = None,
        jobs: JobQueue = None
    ):
        self.pool = pool
        self.blocks = blocks or BlockManager(pool)
        self.transactions = transactions or TransactionManager(pool)
        self.jobs = jobs or JobQueue(pool)

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            from database import get_pool
            self.pool = await get_pool()

    async def _time_since_last_block_ms(
        self,
        block: BlockPayload,
        batch: Dict[str, BlockPayload]
    ) -> Optional[int]:
        if block.previous_block_hash is None:
            return None

        previous_hash = standardize_hash(block.previous_block_hash)
        previous = batch.get(previous_hash)
        if previous is not None:
            previous_timestamp = previous.timestamp
        else:
            record = await self.blocks.find_by_hash(previous_hash)
            if record is None:
                return None
            previous_timestamp = record['timestamp']

        return int((_as_utc(block.timestamp) - _as_utc(previous_timestamp)).total_seconds() * 1000)

    async def create_many(self, blocks: List[BlockPayload]) -> List[Dict[str, Any]]:
        """Store blocks and their transactions.

        Each block is written in its own database transaction. Its asset
        description jobs are queued once that transaction has committed.

        Args:
            blocks: Reported blocks, in the order the node sent them

        Returns:
            The stored blocks, each with a ``transactions`` list
        """
        await self.ensure_pool()

        batch = {standardize_hash(block.hash): block for block in blocks}
        records = []

        for block in blocks:
            time_since_last_block_ms = await self._time_since_last_block_ms(block, batch)

            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    record = await self.blocks.upsert(block, time_since_last_block_ms, conn)
                    transactions = await self.transactions.upsert_many(block.transactions, conn)

                    by_hash = {transaction['hash']: transaction for transaction in transactions}
                    indexed_transactions = [
                        (by_hash[standardize_hash(payload.hash)], index)
                        for index, payload in enumerate(block.transactions)
                    ]
                    await self.blocks.link_transactions(record, indexed_transactions, conn)

            records.append({**record, 'transactions': transactions})

            main = block.type == BlockOperation.CONNECTED
            for transaction in block.transactions:
                await self.jobs.add_job(
                    JobPattern.LOAD_ASSET_DESCRIPTIONS,
                    {'main': main, 'transaction': transaction.model_dump(mode='json')}
                )

            logger.debug(
                f"Loaded block {record['hash']} ({block.type.value}) with "
                f"{len(transactions)} transactions"
            )

        logger.info(f"Loaded {len(records)} blocks")
        return records


__all__ = ['BlocksTransactionsLoader']

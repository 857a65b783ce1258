"""Asset description loader.

Keeps every asset's supply consistent with the mints and burns of the
transactions currently on the main chain. Loading a transaction always
retracts whatever was previously recorded for it first, so reprocessing the
same transaction (job retries, reorgs) never double counts.
"""

import logging
from typing import Any, Dict

from asset_descriptions import AssetDescriptionManager, AssetDescriptionType
from assets import AssetManager
from transactions import TransactionManager, TransactionPayload, standardize_hash

logger = logging.getLogger(__name__)

# Reports above this are treated as corrupt and skipped entry by entry
MAX_MINT_OR_BURN_VALUE = 100_000_000_000_000_000


class AssetsLoader:
    """Applies and retracts a transaction's mints and burns."""

    def __init__(
        self,
        pool=None,
        assets: AssetManager = None,
        asset_descriptions: AssetDescriptionManager = None,
        transactions: TransactionManager = None
    ):
        """Initialize the loader.

        Args:
            pool: Optional database pool. If not provided, will get from database module.
            assets: Asset store, defaults to an AssetManager on the same pool
            asset_descriptions: Description store, defaults to an AssetDescriptionManager
            transactions: Transaction store, defaults to a TransactionManager
        """
        self.pool = pool
        self.assets = assets or AssetManager(pool)
        self.asset_descriptions = asset_descriptions or AssetDescriptionManager(pool)
        self.transactions = transactions or TransactionManager(pool)

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            from database import get_pool
            self.pool = await get_pool()

    async def load_descriptions(self, main: bool, transaction: TransactionPayload) -> None:
        """Reconcile one transaction's mints and burns with the ledger.

        Runs in a single database transaction: any error rolls back every
        supply change and description written by this call.

        Args:
            main: True when the transaction's block is on the main chain,
                False when the block was disconnected
            transaction: The reported transaction

        Raises:
            TransactionNotFoundError: If the transaction was never stored
            AssetNotFoundError: If a burn references an asset never minted
        """
        await self.ensure_pool()

        async with self.pool.acquire() as conn:
            async with conn.transaction():
                record = await self.transactions.find_by_hash_or_throw(
                    standardize_hash(transaction.hash),
                    conn
                )

                if main:
                    await self._create_asset_descriptions(transaction, record, conn)
                else:
                    await self._delete_asset_descriptions(record, conn)

    async def _create_asset_descriptions(
        self,
        transaction: TransactionPayload,
        record: Dict[str, Any],
        conn
    ) -> None:
        await self._delete_asset_descriptions(record, conn)

        # Mints before burns so a mint and burn of a new asset in one
        # transaction nets out
        for mint in transaction.mints:
            asset = await self.assets.upsert(
                {
                    'identifier': mint.id,
                    'metadata': mint.metadata,
                    'name': mint.name,
                    'owner': mint.owner
                },
                record,
                conn
            )

            value = int(mint.value)
            if value > MAX_MINT_OR_BURN_VALUE:
                logger.warning(
                    f"Skipping mint of {value} for asset {mint.id} in "
                    f"transaction {record['hash']}: value exceeds {MAX_MINT_OR_BURN_VALUE}"
                )
                continue

            await self.asset_descriptions.create(
                AssetDescriptionType.MINT,
                value,
                asset,
                record,
                conn
            )
            await self.assets.update_supply(asset, value, conn)

        for burn in transaction.burns:
            value = int(burn.value)
            if value > MAX_MINT_OR_BURN_VALUE:
                logger.warning(
                    f"Skipping burn of {value} for asset {burn.id} in "
                    f"transaction {record['hash']}: value exceeds {MAX_MINT_OR_BURN_VALUE}"
                )
                continue

            asset = await self.assets.find_by_identifier_or_throw(burn.id, conn)

            await self.asset_descriptions.create(
                AssetDescriptionType.BURN,
                value,
                asset,
                record,
                conn
            )
            await self.assets.update_supply(asset, -value, conn)

    async def _delete_asset_descriptions(self, record: Dict[str, Any], conn) -> None:
        descriptions = await self.asset_descriptions.find_by_transaction(record, conn)
        if not descriptions:
            return

        logger.debug(f"Deleting and re-processing descriptions for '{record['hash']}'")

        for description in descriptions:
            asset = await self.assets.find_or_throw(description['asset_id'], conn)
            if description['type'] == AssetDescriptionType.MINT:
                delta = -int(description['value'])
            else:
                delta = int(description['value'])
            await self.assets.update_supply(asset, delta, conn)

        await self.asset_descriptions.delete_by_transaction(record, conn)


__all__ = [
    'AssetsLoader',
    'MAX_MINT_OR_BURN_VALUE'
]

"""Assets module for the asset ledger.

Each asset row carries the running ``supply`` for its identifier. Supply is
only ever changed by signed deltas through ``AssetManager.update_supply``.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from database import PoolManager, RecordNotFoundError
from database.lib.pagination import paginate

logger = logging.getLogger(__name__)


class AssetError(Exception):
    """Base exception for asset operations."""
    pass


class AssetNotFoundError(AssetError, RecordNotFoundError):
    """Raised when an asset is not found."""
    pass


def _asset_from_row(row) -> Dict[str, Any]:
    asset = dict(row)
    # NUMERIC comes back as Decimal; supply is always integral
    asset['supply'] = int(asset['supply'])
    return asset


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class AssetManager(PoolManager):
    """Manager class for the asset ledger."""

    async def upsert(
        self,
        options: Dict[str, str],
        transaction: Dict[str, Any],
        conn=None
    ) -> Dict[str, Any]:
        """Create the asset on its first mint, otherwise return it unchanged.

        Args:
            options: ``identifier``, ``metadata``, ``name`` and ``owner``
            transaction: The transaction minting the asset
            conn: Optional connection to run on

        Returns:
            The asset row
        """
        async with self.connection(conn) as conn:
            # The no-op update makes RETURNING yield the existing row too
            row = await conn.fetchrow(
                '''
                INSERT INTO assets (
                    identifier, metadata, name, owner, supply, created_transaction_id
                ) VALUES ($1, $2, $3, $4, 0, $5)
                ON CONFLICT (identifier) DO UPDATE SET
                    identifier = assets.identifier
                RETURNING *
                ''',
                options['identifier'],
                options['metadata'],
                options['name'],
                options['owner'],
                transaction['id']
            )
        return _asset_from_row(row)

    async def find_or_throw(self, asset_id: int, conn=None) -> Dict[str, Any]:
        """Get an asset by id.

        Raises:
            AssetNotFoundError: If no asset has this id
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow('SELECT * FROM assets WHERE id = $1', asset_id)
        if not row:
            raise AssetNotFoundError(f"Asset {asset_id} not found")
        return _asset_from_row(row)

    async def find_by_identifier_or_throw(self, identifier: str, conn=None) -> Dict[str, Any]:
        """Get an asset by identifier.

        Raises:
            AssetNotFoundError: If no asset has this identifier
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                'SELECT * FROM assets WHERE identifier = $1',
                identifier
            )
        if not row:
            raise AssetNotFoundError(f"Asset {identifier} not found")
        return _asset_from_row(row)

    async def update_supply(self, asset: Dict[str, Any], delta: int, conn=None) -> Dict[str, Any]:
        """Add a signed delta to an asset's supply.

        The increment happens in a single statement so concurrent writers
        serialize on the row lock instead of overwriting each other.
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                UPDATE assets
                SET supply = supply + $2
                WHERE id = $1
                RETURNING *
                ''',
                asset['id'],
                Decimal(delta)
            )
        if not row:
            raise AssetNotFoundError(f"Asset {asset['id']} not found")
        return _asset_from_row(row)

    async def list(
        self,
        search: Optional[str] = None,
        after: Optional[int] = None,
        before: Optional[int] = None,
        limit: Optional[int] = None,
        conn=None
    ) -> Dict[str, Any]:
        """List assets newest first, optionally filtered by name.

        Returns:
            Dict with ``data``, ``has_next`` and ``has_previous``
        """
        where, params = [], []
        if search:
            params.append(f'%{escape_like(search)}%')
            where.append(f"name ILIKE ${len(params)} ESCAPE '\\'")

        async with self.connection(conn) as conn:
            page = await paginate(
                conn,
                'assets',
                where=where,
                params=params,
                after=after,
                before=before,
                limit=limit
            )
        page['data'] = [_asset_from_row(row) for row in page['data']]
        return page


__all__ = [
    'AssetManager',
    'AssetError',
    'AssetNotFoundError',
    'escape_like'
]

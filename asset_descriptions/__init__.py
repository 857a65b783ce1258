"""Asset descriptions: one row per mint or burn inside a transaction.

These rows are the audit trail behind each asset's supply. A transaction
owns exactly one set of them at a time.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from database import PoolManager
from database.lib.pagination import paginate

logger = logging.getLogger(__name__)


class AssetDescriptionType(str, Enum):
    MINT = 'MINT'
    BURN = 'BURN'


class AssetDescriptionManager(PoolManager):
    """Manager class for asset description rows."""

    async def create(
        self,
        type: AssetDescriptionType,
        value: int,
        asset: Dict[str, Any],
        transaction: Dict[str, Any],
        conn=None
    ) -> Dict[str, Any]:
        """Record a mint or burn of ``value`` units of ``asset``."""
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                INSERT INTO asset_descriptions (type, value, asset_id, transaction_id)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                ''',
                AssetDescriptionType(type).value,
                value,
                asset['id'],
                transaction['id']
            )
        return dict(row)

    async def find_by_transaction(
        self,
        transaction: Dict[str, Any],
        conn=None
    ) -> List[Dict[str, Any]]:
        """Get every description attached to a transaction, oldest first."""
        async with self.connection(conn) as conn:
            rows = await conn.fetch(
                '''
                SELECT * FROM asset_descriptions
                WHERE transaction_id = $1
                ORDER BY id
                ''',
                transaction['id']
            )
        return [dict(row) for row in rows]

    async def find_by_transaction_with_assets(
        self,
        transaction: Dict[str, Any],
        conn=None
    ) -> List[Dict[str, Any]]:
        """Get a transaction's descriptions paired with their assets.

        Returns:
            List of ``{'asset_description': ..., 'asset': ...}`` dicts
        """
        async with self.connection(conn) as conn:
            rows = await conn.fetch(
                '''
                SELECT
                    d.id, d.type, d.value, d.asset_id, d.transaction_id, d.created_at,
                    a.identifier AS asset_identifier,
                    a.name AS asset_name
                FROM asset_descriptions d
                JOIN assets a ON a.id = d.asset_id
                WHERE d.transaction_id = $1
                ORDER BY d.id
                ''',
                transaction['id']
            )

        results = []
        for row in rows:
            record = dict(row)
            asset = {
                'id': record['asset_id'],
                'identifier': record.pop('asset_identifier'),
                'name': record.pop('asset_name')
            }
            results.append({'asset_description': record, 'asset': asset})
        return results

    async def delete_by_transaction(self, transaction: Dict[str, Any], conn=None) -> None:
        """Delete every description attached to a transaction."""
        async with self.connection(conn) as conn:
            await conn.execute(
                'DELETE FROM asset_descriptions WHERE transaction_id = $1',
                transaction['id']
            )

    async def list(
        self,
        asset_id: int,
        after: Optional[int] = None,
        before: Optional[int] = None,
        limit: Optional[int] = None,
        conn=None
    ) -> Dict[str, Any]:
        """List an asset's descriptions newest first."""
        async with self.connection(conn) as conn:
            return await paginate(
                conn,
                'asset_descriptions',
                where=['asset_id = $1'],
                params=[asset_id],
                after=after,
                before=before,
                limit=limit
            )


__all__ = [
    'AssetDescriptionManager',
    'AssetDescriptionType'
]

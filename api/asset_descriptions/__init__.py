"""Asset descriptions API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from asset_descriptions import AssetDescriptionManager
from assets import AssetManager
from blocks import BlockManager
from transactions import TransactionManager
from ..dependencies import (
    get_asset_description_manager,
    get_asset_manager,
    get_block_manager,
    get_transaction_manager
)
from ..serializers import serialize_asset_description, serialize_list

# Create router
router = APIRouter(
    prefix="/asset_descriptions",
    tags=["AssetDescriptions"]
)


@router.get("")
async def list_asset_descriptions(
    asset: str = Query(..., min_length=1, description="Asset identifier"),
    after: Optional[int] = Query(None, ge=1),
    before: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    assets: AssetManager = Depends(get_asset_manager),
    asset_descriptions: AssetDescriptionManager = Depends(get_asset_description_manager),
    transactions: TransactionManager = Depends(get_transaction_manager),
    blocks: BlockManager = Depends(get_block_manager)
):
    """List an asset's mints and burns, newest first."""
    try:
        record = await assets.find_by_identifier_or_throw(asset)
        page = await asset_descriptions.list(
            record['id'],
            after=after,
            before=before,
            limit=limit
        )

        data = []
        for description in page['data']:
            transaction = await transactions.find_or_throw(description['transaction_id'])
            block = await blocks.find_main_block_by_transaction(transaction)
            # Skip non main chain descriptions
            if block is None:
                continue
            data.append(serialize_asset_description(description, record, transaction, block))
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Asset {asset} not found"
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_list(data, page)

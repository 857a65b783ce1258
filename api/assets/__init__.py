"""Assets API endpoints.

Only assets whose creating transaction sits in a main chain block are
visible.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from assets import AssetManager
from blocks import BlockManager
from transactions import TransactionManager
from ..dependencies import get_asset_manager, get_block_manager, get_transaction_manager
from ..serializers import serialize_asset, serialize_list

# Create router
router = APIRouter(
    prefix="/assets",
    tags=["Assets"]
)


@router.get("/find")
async def find(
    id: str = Query(..., min_length=1, description="Asset identifier"),
    assets: AssetManager = Depends(get_asset_manager),
    transactions: TransactionManager = Depends(get_transaction_manager),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Get an asset by identifier."""
    try:
        asset = await assets.find_by_identifier_or_throw(id)
        transaction = await transactions.find_or_throw(asset['created_transaction_id'])
        block = await blocks.find_main_block_by_transaction(transaction)
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Asset {id} not found"
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    if block is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Asset {id} not found"
        )
    return serialize_asset(asset, transaction, block)


@router.get("")
async def list_assets(
    search: Optional[str] = Query(None),
    after: Optional[int] = Query(None, ge=1),
    before: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    assets: AssetManager = Depends(get_asset_manager),
    transactions: TransactionManager = Depends(get_transaction_manager),
    blocks: BlockManager = Depends(get_block_manager)
):
    """List assets newest first, optionally searching by name."""
    try:
        page = await assets.list(search=search, after=after, before=before, limit=limit)

        data = []
        for asset in page['data']:
            transaction = await transactions.find_or_throw(asset['created_transaction_id'])
            block = await blocks.find_main_block_by_transaction(transaction)
            # Skip assets created off the main chain
            if block is None:
                continue
            data.append(serialize_asset(asset, transaction, block))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_list(data, page)

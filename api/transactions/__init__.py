"""Transactions API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from asset_descriptions import AssetDescriptionManager
from auth import require_api_key
from blocks import BlockManager
from transactions import TransactionManager, UpsertTransactionsRequest
from ..dependencies import (
    get_asset_description_manager,
    get_block_manager,
    get_transaction_manager
)
from ..serializers import serialize_list, serialize_transaction

# Create router
router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"]
)


@router.post("", dependencies=[Depends(require_api_key)])
async def bulk_upsert(
    request: UpsertTransactionsRequest,
    manager: TransactionManager = Depends(get_transaction_manager)
):
    """Store reported transactions."""
    try:
        records = await manager.upsert_many(request.transactions)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    return serialize_list([serialize_transaction(record) for record in records])


@router.get("/find")
async def find(
    hash: str = Query(..., min_length=1),
    with_blocks: bool = Query(False),
    manager: TransactionManager = Depends(get_transaction_manager),
    asset_descriptions: AssetDescriptionManager = Depends(get_asset_description_manager),
    blocks: BlockManager = Depends(get_block_manager)
):
    """Get a transaction by hash with its mints and burns."""
    try:
        transaction = await manager.find(hash)
        if transaction is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Transaction {hash} not found"
            )

        descriptions = await asset_descriptions.find_by_transaction_with_assets(transaction)
        transaction_blocks = (
            await blocks.find_blocks_by_transaction(transaction) if with_blocks else None
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_transaction(transaction, descriptions, transaction_blocks)

"""Blocks API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from auth import require_api_key
from blocks import (
    BlockManager,
    DisconnectBlocksRequest,
    InvalidBlockRangeError,
    UpsertBlocksRequest
)
from blocks_loader import BlocksTransactionsLoader
from ..dependencies import get_block_manager, get_blocks_loader
from ..serializers import serialize_block, serialize_list

# Create router
router = APIRouter(
    prefix="/blocks",
    tags=["Blocks"]
)


""" Protected Endpoints - API Key Required """
@router.post("", dependencies=[Depends(require_api_key)])
async def bulk_upsert(
    request: UpsertBlocksRequest,
    loader: BlocksTransactionsLoader = Depends(get_blocks_loader)
):
    """Store reported blocks and queue their asset description jobs."""
    try:
        records = await loader.create_many(request.blocks)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_list([
        serialize_block(record, record['transactions'])
        for record in records
    ])


@router.post("/disconnect", dependencies=[Depends(require_api_key)])
async def disconnect(
    request: DisconnectBlocksRequest,
    manager: BlockManager = Depends(get_block_manager)
):
    """Mark every block above ``sequence_gt`` as off the main chain."""
    try:
        await manager.disconnect_after(request.sequence_gt)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    return Response(status_code=status.HTTP_200_OK)


""" Public Endpoints - No Authentication Required """
@router.get("/head")
async def head(manager: BlockManager = Depends(get_block_manager)):
    """Get the head of the main chain."""
    try:
        return serialize_block(await manager.head())
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No blocks found"
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/find")
async def find(
    hash: Optional[str] = Query(None),
    sequence: Optional[int] = Query(None, ge=0),
    with_transactions: bool = Query(False),
    manager: BlockManager = Depends(get_block_manager)
):
    """Get a block by 'hash' or main chain 'sequence'."""
    if hash is None and sequence is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Either 'hash' or 'sequence' is required"
        )

    try:
        block = await manager.find(hash=hash, sequence=sequence)
        transactions = None
        if block is not None and with_transactions:
            transactions = await manager.find_transactions_by_block(block)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    if block is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Block not found"
        )
    return serialize_block(block, transactions)


@router.get("")
async def list_blocks(
    after: Optional[int] = Query(None, ge=1),
    before: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    main: Optional[bool] = Query(None),
    sequence_gte: Optional[int] = Query(None, ge=1),
    sequence_lt: Optional[int] = Query(None, ge=1),
    search: Optional[str] = Query(None),
    transaction_id: Optional[int] = Query(None),
    with_transactions: bool = Query(False),
    manager: BlockManager = Depends(get_block_manager)
):
    """Return a paginated list of blocks, newest first."""
    try:
        page = await manager.list(
            after=after,
            before=before,
            limit=limit,
            main=main,
            sequence_gte=sequence_gte,
            sequence_lt=sequence_lt,
            search=search,
            transaction_id=transaction_id
        )
        blocks = []
        for block in page['data']:
            transactions = None
            if with_transactions:
                transactions = await manager.find_transactions_by_block(block)
            blocks.append(serialize_block(block, transactions))
    except InvalidBlockRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    return serialize_list(blocks, page)

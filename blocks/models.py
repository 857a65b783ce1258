"""Request models for reported blocks."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from transactions.models import TransactionPayload

MAX_SAFE_INTEGER = 2 ** 53 - 1


class BlockOperation(str, Enum):
    """How a block relates to the reporting node's chain."""
    CONNECTED = 'CONNECTED'
    DISCONNECTED = 'DISCONNECTED'
    FORK = 'FORK'


class BlockPayload(BaseModel):
    """A block as reported by a node."""
    hash: str
    sequence: int = Field(..., ge=0, le=MAX_SAFE_INTEGER)
    difficulty: int
    work: Optional[int] = None
    type: BlockOperation
    timestamp: datetime
    graffiti: str
    previous_block_hash: Optional[str] = None
    size: int = Field(..., gt=0, le=MAX_SAFE_INTEGER)
    transactions: List[TransactionPayload] = Field(..., min_length=1)


class UpsertBlocksRequest(BaseModel):
    """Request model for bulk block upserts."""
    blocks: List[BlockPayload] = Field(..., min_length=1, max_length=3000)


class DisconnectBlocksRequest(BaseModel):
    """Request model for disconnecting blocks above a sequence."""
    sequence_gt: int = Field(..., ge=1, le=MAX_SAFE_INTEGER)

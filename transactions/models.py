"""Request models for reported transactions."""

from typing import List, Optional

from pydantic import BaseModel, Field

# Mint and burn amounts travel as base-10 strings to keep full precision
INTEGER_STRING = r'^[0-9]+$'


class NotePayload(BaseModel):
    """Output note commitment."""
    commitment: str


class SpendPayload(BaseModel):
    """Spent note nullifier."""
    nullifier: str


class MintPayload(BaseModel):
    """Mint of an asset inside a transaction."""
    id: str
    metadata: str
    name: str
    owner: str
    value: str = Field(..., pattern=INTEGER_STRING)


class BurnPayload(BaseModel):
    """Burn of an asset inside a transaction."""
    id: str
    value: str = Field(..., pattern=INTEGER_STRING)


class TransactionPayload(BaseModel):
    """A transaction as reported by a node."""
    hash: str
    fee: int
    size: int
    expiration: Optional[int] = None
    notes: List[NotePayload] = []
    spends: List[SpendPayload] = []
    mints: List[MintPayload] = []
    burns: List[BurnPayload] = []


class UpsertTransactionsRequest(BaseModel):
    """Request model for bulk transaction upserts."""
    transactions: List[TransactionPayload] = Field(..., min_length=1, max_length=3000)

"""REST API module for the Iron Fish chain index.

This module provides HTTP endpoints for:
- Ingesting blocks and transactions reported by nodes
- Disconnecting blocks on reorgs
- Reading blocks, transactions, assets and asset descriptions
- Health checks
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from database import get_pool

logger = logging.getLogger(__name__)


# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Initializing API...")
    # Database and job worker lifecycles are handled in __main__.py
    yield
    logger.info("Shutting down API...")


# Create FastAPI app
app = FastAPI(
    title="Iron Fish API",
    description="Chain ingest and asset ledger for Iron Fish",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    """Report whether the database is reachable."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval('SELECT 1')
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable"
        )
    return {"status": "ok", "database": "connected"}


# Import and include all routers
from .blocks import router as blocks_router  # noqa: E402
from .transactions import router as transactions_router  # noqa: E402
from .assets import router as assets_router  # noqa: E402
from .asset_descriptions import router as asset_descriptions_router  # noqa: E402

app.include_router(blocks_router)
app.include_router(transactions_router)
app.include_router(assets_router)
app.include_router(asset_descriptions_router)

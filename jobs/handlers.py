"""Job handlers, one per JobPattern."""

from typing import Any, Dict

from pydantic import BaseModel

from assets_loader import AssetsLoader
from transactions.models import TransactionPayload
from . import JobPattern
from .worker import Handler


class LoadDescriptionsOptions(BaseModel):
    """Payload of a LOAD_ASSET_DESCRIPTIONS job."""
    main: bool
    transaction: TransactionPayload


def build_handlers(assets_loader: AssetsLoader) -> Dict[str, Handler]:
    """Map every job pattern to its handler."""

    async def load_asset_descriptions(payload: Dict[str, Any]) -> Dict[str, Any]:
        options = LoadDescriptionsOptions.model_validate(payload)
        await assets_loader.load_descriptions(options.main, options.transaction)
        return {'requeue': False}

    return {
        JobPattern.LOAD_ASSET_DESCRIPTIONS: load_asset_descriptions
    }

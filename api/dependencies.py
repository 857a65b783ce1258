"""Manager providers for route dependencies.

Each provider hands a route a manager bound to the shared pool. Tests swap
them out through ``app.dependency_overrides``.
"""

from asset_descriptions import AssetDescriptionManager
from assets import AssetManager
from blocks import BlockManager
from blocks_loader import BlocksTransactionsLoader
from transactions import TransactionManager


def get_block_manager() -> BlockManager:
    return BlockManager()


def get_transaction_manager() -> TransactionManager:
    return TransactionManager()


def get_asset_manager() -> AssetManager:
    return AssetManager()


def get_asset_description_manager() -> AssetDescriptionManager:
    return AssetDescriptionManager()


def get_blocks_loader() -> BlocksTransactionsLoader:
    return BlocksTransactionsLoader()

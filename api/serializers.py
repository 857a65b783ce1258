"""Shape database rows into API responses."""

from typing import Any, Dict, List, Optional

from asset_descriptions import AssetDescriptionType


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_list(data: List[Any], page: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Wrap items in a list envelope, with paging metadata when given a page."""
    result = {'object': 'list', 'data': data}
    if page is not None:
        result['metadata'] = {
            'has_next': page['has_next'],
            'has_previous': page['has_previous']
        }
    return result


def serialize_block(
    block: Dict[str, Any],
    transactions: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    result = {
        'object': 'block',
        'id': block['id'],
        'hash': block['hash'],
        'sequence': block['sequence'],
        'previous_block_hash': block['previous_block_hash'],
        'main': block['main'],
        'difficulty': int(block['difficulty']),
        'transactions_count': block['transactions_count'],
        'timestamp': _iso(block['timestamp']),
        'graffiti': block['graffiti'],
        'size': block['size'],
        'time_since_last_block_ms': block['time_since_last_block_ms']
    }
    if transactions is not None:
        result['transactions'] = [serialize_transaction(t) for t in transactions]
    return result


def serialize_asset_description(
    description: Dict[str, Any],
    asset: Dict[str, Any],
    transaction: Dict[str, Any],
    block: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    result = {
        'object': 'asset_description',
        'id': description['id'],
        'transaction_hash': transaction['hash'],
        'type': AssetDescriptionType(description['type']).value,
        'value': str(description['value']),
        'asset': {
            'identifier': asset['identifier'],
            'name': asset['name']
        }
    }
    if block is not None:
        result['block_timestamp'] = _iso(block['timestamp'])
    return result


def serialize_transaction(
    transaction: Dict[str, Any],
    asset_descriptions: Optional[List[Dict[str, Any]]] = None,
    blocks: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """Serialize a transaction.

    Args:
        transaction: Transaction row
        asset_descriptions: ``{'asset_description', 'asset'}`` pairs. When
            given, the result carries ``mints`` and ``burns``.
        blocks: Blocks containing the transaction, when requested

    Returns:
        The serialized transaction
    """
    result = {
        'object': 'transaction',
        'id': transaction['id'],
        'hash': transaction['hash'],
        'fee': str(transaction['fee']),
        'size': transaction['size'],
        'notes': transaction['notes'],
        'spends': transaction['spends']
    }
    if transaction.get('expiration') is not None:
        result['expiration'] = transaction['expiration']

    if asset_descriptions is not None:
        result['mints'] = []
        result['burns'] = []
        for pair in asset_descriptions:
            description = pair['asset_description']
            key = 'mints' if description['type'] == AssetDescriptionType.MINT else 'burns'
            result[key].append(
                serialize_asset_description(description, pair['asset'], transaction)
            )

    if blocks is not None:
        result['blocks'] = [serialize_block(block) for block in blocks]
    return result


def serialize_asset(
    asset: Dict[str, Any],
    transaction: Dict[str, Any],
    block: Dict[str, Any]
) -> Dict[str, Any]:
    """Serialize an asset with the transaction and block that created it."""
    return {
        'object': 'asset',
        'id': asset['id'],
        'identifier': asset['identifier'],
        'metadata': asset['metadata'],
        'name': asset['name'],
        'owner': asset['owner'],
        'supply': str(asset['supply']),
        'created_transaction_hash': transaction['hash'],
        'created_transaction_timestamp': _iso(block['timestamp'])
    }


__all__ = [
    'serialize_list',
    'serialize_block',
    'serialize_transaction',
    'serialize_asset',
    'serialize_asset_description'
]

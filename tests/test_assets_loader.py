"""Tests for reconciling mints and burns with asset supply."""

import copy

import pytest

from assets import AssetNotFoundError
from assets_loader import AssetsLoader, MAX_MINT_OR_BURN_VALUE
from transactions import TransactionNotFoundError, TransactionPayload


def make_transaction(hash, mints=(), burns=()):
    """Build a reported transaction with the given mints and burns."""
    return TransactionPayload(
        hash=hash,
        fee=1,
        size=100,
        notes=[{'commitment': 'c0'}],
        spends=[{'nullifier': 'n0'}],
        mints=[
            {
                'id': identifier,
                'metadata': 'metadata',
                'name': name,
                'owner': 'owner',
                'value': str(value)
            }
            for identifier, name, value in mints
        ],
        burns=[{'id': identifier, 'value': str(value)} for identifier, value in burns]
    )


@pytest.fixture
def loader(pool, asset_store, asset_description_store, transaction_store):
    return AssetsLoader(
        pool,
        assets=asset_store,
        asset_descriptions=asset_description_store,
        transactions=transaction_store
    )


def supply(asset_store, identifier):
    return asset_store.by_identifier(identifier)['supply']


def descriptions(db, transaction):
    return [
        (record['type'], record['value'])
        for record in db.state['asset_descriptions'].values()
        if record['transaction_id'] == transaction['id']
    ]


@pytest.mark.asyncio
async def test_mint_creates_asset_and_supply(loader, db, transaction_store, asset_store):
    """A first mint creates the asset with the minted supply."""
    record = transaction_store.add('aa')

    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 10)]))

    asset = asset_store.by_identifier('asset-a')
    assert asset['supply'] == 10
    assert asset['name'] == 'A'
    assert asset['created_transaction_id'] == record['id']
    assert descriptions(db, record) == [('MINT', 10)]


@pytest.mark.asyncio
async def test_reloading_is_idempotent(loader, db, transaction_store):
    """Loading the same transaction twice equals loading it once."""
    transaction_store.add('aa')
    transaction = make_transaction('aa', mints=[('asset-a', 'A', 10)])

    await loader.load_descriptions(True, transaction)
    once = copy.deepcopy(db.state['assets'])
    once_descriptions = [
        (d['type'], d['value'], d['asset_id'])
        for d in db.state['asset_descriptions'].values()
    ]

    await loader.load_descriptions(True, transaction)

    assert db.state['assets'] == once
    assert [
        (d['type'], d['value'], d['asset_id'])
        for d in db.state['asset_descriptions'].values()
    ] == once_descriptions


@pytest.mark.asyncio
async def test_reloading_mixed_mints_and_burns(loader, db, transaction_store, asset_store):
    """Repeated loads of a transaction touching two assets count it once."""
    transaction_store.add('aa')
    record = transaction_store.add('bb')
    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 100)]))
    transaction = make_transaction('bb', mints=[('asset-b', 'B', 2)], burns=[('asset-a', 35)])

    for _ in range(4):
        await loader.load_descriptions(True, transaction)

    assert supply(asset_store, 'asset-a') == 65
    assert supply(asset_store, 'asset-b') == 2
    assert sorted(descriptions(db, record)) == [('BURN', 35), ('MINT', 2)]

    await loader.load_descriptions(False, transaction)

    assert supply(asset_store, 'asset-a') == 100
    assert supply(asset_store, 'asset-b') == 0
    assert descriptions(db, record) == []


@pytest.mark.asyncio
async def test_disconnect_restores_supply(loader, db, transaction_store, asset_store):
    """Loading off the main chain retracts everything the transaction did."""
    transaction_store.add('aa')
    record = transaction_store.add('bb')
    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 50)]))

    transaction = make_transaction('bb', mints=[('asset-a', 'A', 5)], burns=[('asset-a', 20)])
    await loader.load_descriptions(True, transaction)
    assert supply(asset_store, 'asset-a') == 35

    await loader.load_descriptions(False, transaction)

    assert supply(asset_store, 'asset-a') == 50
    assert descriptions(db, record) == []


@pytest.mark.asyncio
async def test_burn_reduces_supply(loader, db, transaction_store, asset_store):
    transaction_store.add('aa')
    record = transaction_store.add('bb')
    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 10)]))

    await loader.load_descriptions(True, make_transaction('bb', burns=[('asset-a', 4)]))

    assert supply(asset_store, 'asset-a') == 6
    assert descriptions(db, record) == [('BURN', 4)]


@pytest.mark.asyncio
async def test_burn_of_unknown_asset_rolls_back(loader, db, transaction_store):
    """A burn of a never minted asset fails and leaves nothing behind."""
    transaction_store.add('aa')
    before = copy.deepcopy(db.state)

    transaction = make_transaction(
        'aa',
        mints=[('asset-b', 'B', 7)],
        burns=[('asset-missing', 1)]
    )
    with pytest.raises(AssetNotFoundError):
        await loader.load_descriptions(True, transaction)

    assert db.state == before


@pytest.mark.asyncio
async def test_mint_over_ceiling_is_skipped(loader, db, transaction_store, asset_store):
    """An oversized mint is dropped while its siblings still apply."""
    record = transaction_store.add('aa')

    transaction = make_transaction(
        'aa',
        mints=[
            ('asset-big', 'Big', 2 * MAX_MINT_OR_BURN_VALUE),
            ('asset-a', 'A', 3)
        ]
    )
    await loader.load_descriptions(True, transaction)

    # The asset row still exists, only the supply change is skipped
    assert supply(asset_store, 'asset-big') == 0
    assert supply(asset_store, 'asset-a') == 3
    assert descriptions(db, record) == [('MINT', 3)]


@pytest.mark.asyncio
async def test_ceiling_value_itself_is_applied(loader, transaction_store, asset_store):
    transaction_store.add('aa')

    await loader.load_descriptions(
        True,
        make_transaction('aa', mints=[('asset-a', 'A', MAX_MINT_OR_BURN_VALUE)])
    )

    assert supply(asset_store, 'asset-a') == MAX_MINT_OR_BURN_VALUE


@pytest.mark.asyncio
async def test_burn_over_ceiling_skips_asset_lookup(loader, db, transaction_store):
    """An oversized burn is skipped before the asset has to exist."""
    record = transaction_store.add('aa')

    await loader.load_descriptions(
        True,
        make_transaction('aa', burns=[('asset-missing', MAX_MINT_OR_BURN_VALUE + 1)])
    )

    assert descriptions(db, record) == []


@pytest.mark.asyncio
async def test_reorg_of_second_mint(loader, db, transaction_store, asset_store):
    """Mint 10 then 2, disconnect the second, supply goes back to 10."""
    first = transaction_store.add('aa')
    second = transaction_store.add('bb')
    mint_two = make_transaction('bb', mints=[('asset-a', 'A', 2)])

    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 10)]))
    await loader.load_descriptions(True, mint_two)
    assert supply(asset_store, 'asset-a') == 12
    assert len(db.state['asset_descriptions']) == 2

    await loader.load_descriptions(False, mint_two)

    assert supply(asset_store, 'asset-a') == 10
    assert descriptions(db, first) == [('MINT', 10)]
    assert descriptions(db, second) == []


@pytest.mark.asyncio
async def test_mint_and_burn_in_one_transaction(loader, db, transaction_store, asset_store):
    """Mints apply before burns, so a new asset can be burned in the same transaction."""
    record = transaction_store.add('aa')

    await loader.load_descriptions(
        True,
        make_transaction('aa', mints=[('asset-a', 'A', 10)], burns=[('asset-a', 10)])
    )

    assert supply(asset_store, 'asset-a') == 0
    assert descriptions(db, record) == [('MINT', 10), ('BURN', 10)]


@pytest.mark.asyncio
async def test_first_mint_keeps_asset_fields(loader, transaction_store, asset_store):
    transaction_store.add('aa')
    transaction_store.add('bb')

    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'First', 1)]))
    await loader.load_descriptions(True, make_transaction('bb', mints=[('asset-a', 'Second', 1)]))

    asset = asset_store.by_identifier('asset-a')
    assert asset['name'] == 'First'
    assert asset['supply'] == 2


@pytest.mark.asyncio
async def test_unknown_transaction_raises(loader, db):
    before = copy.deepcopy(db.state)

    with pytest.raises(TransactionNotFoundError):
        await loader.load_descriptions(True, make_transaction('ff', mints=[('asset-a', 'A', 1)]))

    assert db.state == before


@pytest.mark.asyncio
async def test_disconnect_of_unprocessed_transaction_is_noop(loader, db, transaction_store):
    transaction_store.add('aa')
    before = copy.deepcopy(db.state)

    await loader.load_descriptions(False, make_transaction('aa', mints=[('asset-a', 'A', 1)]))

    assert db.state == before


@pytest.mark.asyncio
async def test_hash_lookup_is_case_insensitive(loader, db, transaction_store, asset_store):
    record = transaction_store.add('abcdef')

    await loader.load_descriptions(True, make_transaction('ABCDEF', mints=[('asset-a', 'A', 1)]))

    assert descriptions(db, record) == [('MINT', 1)]


@pytest.mark.asyncio
async def test_each_load_runs_in_one_transaction(loader, db, transaction_store):
    transaction_store.add('aa')

    await loader.load_descriptions(True, make_transaction('aa', mints=[('asset-a', 'A', 1)]))

    assert db.transactions_opened == 1

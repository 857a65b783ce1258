"""Integration tests against a real PostgreSQL database.

Set IRONFISH_TEST_DB_URL to a disposable database to run them. The schema
is dropped and recreated for every test.
"""

import os
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from asset_descriptions import AssetDescriptionManager
from assets import AssetManager, AssetNotFoundError
from assets_loader import AssetsLoader
from blocks import BlockManager, BlockPayload, InvalidBlockRangeError
from blocks_loader import BlocksTransactionsLoader
from database import close as close_db, get_pool, init_db
from jobs import JobPattern, JobQueue, JobWorker
from jobs.handlers import build_handlers
from transactions import TransactionManager, TransactionPayload

DB_URL = os.environ.get('IRONFISH_TEST_DB_URL')

pytestmark = pytest.mark.skipif(not DB_URL, reason="IRONFISH_TEST_DB_URL not set")


def make_transaction(hash, mints=(), burns=()):
    return TransactionPayload(
        hash=hash,
        fee=1,
        size=10,
        mints=[
            {'id': identifier, 'metadata': '', 'name': identifier, 'owner': 'o', 'value': str(value)}
            for identifier, value in mints
        ],
        burns=[{'id': identifier, 'value': str(value)} for identifier, value in burns]
    )


def make_block(hash, sequence, transactions, type='CONNECTED'):
    return BlockPayload(
        hash=hash,
        sequence=sequence,
        difficulty=1,
        type=type,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        graffiti='g',
        size=10,
        transactions=transactions
    )


@pytest_asyncio.fixture
async def pool():
    """Create a fresh schema and return the pool."""
    await init_db(DB_URL, force_recreate=True)
    yield await get_pool()
    await close_db()


@pytest_asyncio.fixture
async def managers(pool):
    return {
        'blocks': BlockManager(pool, network_version=1),
        'transactions': TransactionManager(pool, network_version=1),
        'assets': AssetManager(pool),
        'asset_descriptions': AssetDescriptionManager(pool),
        'jobs': JobQueue(pool, max_attempts=3)
    }


@pytest_asyncio.fixture
async def loader(pool, managers):
    return AssetsLoader(
        pool,
        assets=managers['assets'],
        asset_descriptions=managers['asset_descriptions'],
        transactions=managers['transactions']
    )


@pytest.mark.asyncio
async def test_supply_follows_reorg(managers, loader):
    """Mint 10 then 2, disconnect the second, supply goes back to 10."""
    first = make_transaction('aa', mints=[('asset-a', 10)])
    second = make_transaction('bb', mints=[('asset-a', 2)])
    await managers['transactions'].upsert_many([first, second])

    await loader.load_descriptions(True, first)
    await loader.load_descriptions(True, second)
    await loader.load_descriptions(True, second)
    asset = await managers['assets'].find_by_identifier_or_throw('asset-a')
    assert asset['supply'] == 12

    await loader.load_descriptions(False, second)

    asset = await managers['assets'].find_by_identifier_or_throw('asset-a')
    assert asset['supply'] == 10
    record = await managers['transactions'].find_by_hash_or_throw('bb')
    assert await managers['asset_descriptions'].find_by_transaction(record) == []


@pytest.mark.asyncio
async def test_failed_load_rolls_back(managers, loader):
    transaction = make_transaction('aa', mints=[('asset-b', 5)], burns=[('asset-missing', 1)])
    await managers['transactions'].upsert_many([transaction])

    with pytest.raises(AssetNotFoundError):
        await loader.load_descriptions(True, transaction)

    with pytest.raises(AssetNotFoundError):
        await managers['assets'].find_by_identifier_or_throw('asset-b')


@pytest.mark.asyncio
async def test_supply_beyond_int64(managers, loader):
    transactions = [
        make_transaction(f'{i:02x}', mints=[('asset-big', 10 ** 17)])
        for i in range(200)
    ]
    await managers['transactions'].upsert_many(transactions)

    for transaction in transactions:
        await loader.load_descriptions(True, transaction)

    asset = await managers['assets'].find_by_identifier_or_throw('asset-big')
    assert asset['supply'] == 200 * 10 ** 17


@pytest.mark.asyncio
async def test_blocks_flow_through_job_queue(pool, managers, loader):
    blocks_loader = BlocksTransactionsLoader(
        pool,
        blocks=managers['blocks'],
        transactions=managers['transactions'],
        jobs=managers['jobs']
    )
    worker = JobWorker(managers['jobs'], build_handlers(loader), poll_interval=0.01)

    await blocks_loader.create_many([
        make_block('b1', 1, [make_transaction('aa', mints=[('asset-a', 7)])])
    ])
    while await worker.run_once():
        pass

    asset = await managers['assets'].find_by_identifier_or_throw('asset-a')
    assert asset['supply'] == 7
    head = await managers['blocks'].head()
    assert head['hash'] == 'b1'

    await blocks_loader.create_many([
        make_block('b1', 1, [make_transaction('aa', mints=[('asset-a', 7)])], type='DISCONNECTED')
    ])
    while await worker.run_once():
        pass

    asset = await managers['assets'].find_by_identifier_or_throw('asset-a')
    assert asset['supply'] == 0


@pytest.mark.asyncio
async def test_job_retries_then_fails(managers):
    calls = []

    async def handler(payload):
        calls.append(payload)
        raise RuntimeError('nope')

    queue = managers['jobs']
    await queue.add_job(JobPattern.LOAD_ASSET_DESCRIPTIONS, {'main': True})
    worker = JobWorker(queue, {JobPattern.LOAD_ASSET_DESCRIPTIONS: handler}, poll_interval=0.01)

    job = await queue.claim()
    assert await worker.run_job(job) == 'retrying'
    # Backoff pushed run_at into the future
    assert await queue.claim() is None


@pytest.mark.asyncio
async def test_disconnect_and_list(managers):
    await managers['transactions'].upsert_many([make_transaction('aa')])
    for sequence in (1, 2, 3):
        await managers['blocks'].upsert(make_block(f'b{sequence}', sequence, [make_transaction('aa')]))

    assert await managers['blocks'].disconnect_after(1) == 2

    page = await managers['blocks'].list(main=True)
    assert [block['sequence'] for block in page['data']] == [1]

    with pytest.raises(InvalidBlockRangeError):
        await managers['blocks'].list(sequence_gte=5, sequence_lt=5)


@pytest.mark.asyncio
async def test_list_filters(managers):
    [transaction] = await managers['transactions'].upsert_many([make_transaction('aa')])
    for sequence in (1, 2):
        block = await managers['blocks'].upsert(make_block(f'b{sequence}', sequence, [make_transaction('aa')]))
        if sequence == 2:
            await managers['blocks'].link_transactions(block, [(transaction, 0)])

    by_hash = await managers['blocks'].list(search='B1')
    by_sequence = await managers['blocks'].list(search='2')
    by_transaction = await managers['blocks'].list(transaction_id=transaction['id'])

    assert [block['hash'] for block in by_hash['data']] == ['b1']
    assert [block['sequence'] for block in by_sequence['data']] == [2]
    assert [block['hash'] for block in by_transaction['data']] == ['b2']

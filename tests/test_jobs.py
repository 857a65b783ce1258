"""Tests for the job worker and handlers."""

import asyncio

import pytest
from pydantic import ValidationError

from jobs import JobPattern, JobWorker
from jobs.handlers import LoadDescriptionsOptions, build_handlers
from fakes import FakeJobQueue

PATTERN = JobPattern.LOAD_ASSET_DESCRIPTIONS.value

TRANSACTION = {
    'hash': 'aa',
    'fee': 1,
    'size': 100,
    'notes': [],
    'spends': [],
    'mints': [{'id': 'asset-a', 'metadata': '', 'name': 'A', 'owner': 'o', 'value': '10'}],
    'burns': []
}


def make_job(id=1, pattern=PATTERN, attempts=0, max_attempts=5, payload=None):
    return {
        'id': id,
        'pattern': pattern,
        'payload': payload if payload is not None else {'main': True, 'transaction': TRANSACTION},
        'attempts': attempts,
        'max_attempts': max_attempts
    }


class RecordingLoader:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    async def load_descriptions(self, main, transaction):
        self.calls.append((main, transaction))
        if self.error:
            raise self.error


@pytest.mark.asyncio
async def test_successful_job_is_completed():
    queue = FakeJobQueue([make_job()])
    loader = RecordingLoader()
    worker = JobWorker(queue, build_handlers(loader), poll_interval=0.01)

    assert await worker.run_once() is True

    assert queue.completed == [1]
    main, transaction = loader.calls[0]
    assert main is True
    assert transaction.hash == 'aa'
    assert transaction.mints[0].value == '10'


@pytest.mark.asyncio
async def test_empty_queue():
    worker = JobWorker(FakeJobQueue(), {}, poll_interval=0.01)
    assert await worker.run_once() is False


@pytest.mark.asyncio
async def test_requeue_adds_fresh_copy():
    queue = FakeJobQueue()

    async def handler(payload):
        return {'requeue': True}

    worker = JobWorker(queue, {PATTERN: handler}, poll_interval=0.01)
    job = make_job(attempts=1)

    assert await worker.run_job(job) == 'requeued'
    assert queue.added[0]['pattern'] == PATTERN
    assert queue.added[0]['payload'] == job['payload']
    assert queue.completed == [1]


@pytest.mark.asyncio
async def test_error_retries_with_backoff():
    queue = FakeJobQueue()
    worker = JobWorker(
        queue,
        build_handlers(RecordingLoader(error=RuntimeError('database went away'))),
        poll_interval=0.01
    )

    assert await worker.run_job(make_job(attempts=3)) == 'retrying'

    assert queue.retried == [{
        'id': 1,
        'error': 'RuntimeError: database went away',
        'delay': 8
    }]
    assert queue.completed == []


@pytest.mark.asyncio
async def test_error_on_last_attempt_fails_job():
    queue = FakeJobQueue()
    worker = JobWorker(
        queue,
        build_handlers(RecordingLoader(error=RuntimeError('boom'))),
        poll_interval=0.01
    )

    assert await worker.run_job(make_job(attempts=5, max_attempts=5)) == 'failed'

    assert queue.failed == [{'id': 1, 'error': 'RuntimeError: boom'}]
    assert queue.retried == []


@pytest.mark.asyncio
async def test_unknown_pattern_fails_immediately():
    queue = FakeJobQueue()
    worker = JobWorker(queue, {}, poll_interval=0.01)

    assert await worker.run_job(make_job(pattern='NOPE', attempts=1)) == 'failed'
    assert queue.failed[0]['id'] == 1


@pytest.mark.asyncio
async def test_invalid_payload_is_retried():
    queue = FakeJobQueue()
    loader = RecordingLoader()
    worker = JobWorker(queue, build_handlers(loader), poll_interval=0.01)

    result = await worker.run_job(make_job(attempts=1, payload={'main': True}))

    assert result == 'retrying'
    assert loader.calls == []
    assert queue.retried[0]['error'].startswith('ValidationError')


def test_load_descriptions_options_requires_transaction():
    with pytest.raises(ValidationError):
        LoadDescriptionsOptions.model_validate({'main': False})


@pytest.mark.asyncio
async def test_start_and_stop():
    queue = FakeJobQueue([make_job(id=1), make_job(id=2)])
    worker = JobWorker(queue, build_handlers(RecordingLoader()), poll_interval=0.01)

    task = asyncio.create_task(worker.start())
    for _ in range(100):
        if len(queue.completed) == 2:
            break
        await asyncio.sleep(0.01)

    worker.stop()
    await asyncio.wait_for(task, timeout=1)

    assert queue.completed == [1, 2]
    assert queue.released == 1

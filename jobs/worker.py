"""Worker loop that claims and runs queued jobs."""

import asyncio
import logging
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional

from config import get_settings

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class JobWorker:
    """Runs jobs from a JobQueue through a table of handlers.

    Handlers take the job payload and return ``{'requeue': bool}``. A
    handler that raises has its job retried with exponential backoff until
    the job runs out of attempts.
    """

    def __init__(
        self,
        queue,
        handlers: Dict[str, Handler],
        poll_interval: Optional[float] = None
    ):
        """Initialize the worker.

        Args:
            queue: JobQueue to claim from
            handlers: Handler per job pattern
            poll_interval: Seconds to sleep when no job is due. Defaults to settings.
        """
        self.queue = queue
        self.handlers = {str(getattr(p, 'value', p)): h for p, h in handlers.items()}
        self.poll_interval = (
            poll_interval if poll_interval is not None
            else get_settings()['job_poll_interval']
        )
        self.running = False

    async def run_job(self, job: Dict[str, Any]) -> str:
        """Run one claimed job and record the outcome.

        Returns:
            One of 'completed', 'requeued', 'retrying' or 'failed'
        """
        handler = self.handlers.get(job['pattern'])
        if handler is None:
            logger.error(f"No handler for job {job['id']} with pattern {job['pattern']}")
            await self.queue.mark_failed(job, f"Unknown job pattern {job['pattern']}")
            return 'failed'

        try:
            response = await handler(job['payload'])
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            if job['attempts'] >= job['max_attempts']:
                logger.error(
                    f"Job {job['id']} ({job['pattern']}) failed after "
                    f"{job['attempts']} attempts: {error}"
                )
                logger.error(traceback.format_exc())
                await self.queue.mark_failed(job, error)
                return 'failed'

            delay = 2 ** job['attempts']
            logger.warning(
                f"Job {job['id']} ({job['pattern']}) attempt {job['attempts']} "
                f"failed, retrying in {delay}s: {error}"
            )
            await self.queue.retry_later(job, error, delay)
            return 'retrying'

        if response and response.get('requeue'):
            await self.queue.add_job(job['pattern'], job['payload'])
            await self.queue.complete(job)
            return 'requeued'

        await self.queue.complete(job)
        return 'completed'

    async def run_once(self) -> bool:
        """Claim and run a single job.

        Returns:
            True if a job was run, False if the queue had nothing due
        """
        job = await self.queue.claim()
        if job is None:
            return False
        await self.run_job(job)
        return True

    async def start(self) -> None:
        """Process jobs until ``stop`` is called."""
        logger.info("Job worker starting up")
        self.running = True
        await self.queue.release_stale()

        while self.running:
            try:
                if await self.run_once():
                    continue
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in job worker loop: {str(e)}")
                logger.error(traceback.format_exc())

            await asyncio.sleep(self.poll_interval)

        logger.info("Job worker stopped")

    def stop(self) -> None:
        """Stop after the current job finishes."""
        logger.info("Stopping job worker...")
        self.running = False

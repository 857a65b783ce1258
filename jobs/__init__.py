"""Background jobs stored in PostgreSQL.

Jobs are rows in the ``jobs`` table. Producers call ``JobQueue.add_job``,
optionally on the connection of an open database transaction so the job
only becomes visible once that transaction commits. A ``JobWorker`` claims
due jobs one at a time with ``FOR UPDATE SKIP LOCKED`` so several workers
can share the table.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from config import get_settings
from database import PoolManager

logger = logging.getLogger(__name__)


class JobPattern(str, Enum):
    """Names the handler a job is dispatched to."""
    LOAD_ASSET_DESCRIPTIONS = 'LOAD_ASSET_DESCRIPTIONS'


class JobStatus(str, Enum):
    PENDING = 'pending'
    RUNNING = 'running'
    FAILED = 'failed'


class JobError(Exception):
    """Base exception for job operations."""
    pass


class UnknownJobPatternError(JobError):
    """Raised when no handler is registered for a job's pattern."""
    pass


class JobQueue(PoolManager):
    """Manager class for the job table."""

    def __init__(self, pool=None, max_attempts: Optional[int] = None):
        """Initialize the queue.

        Args:
            pool: Optional database pool. If not provided, will get from database module.
            max_attempts: Attempts before a job is marked failed. Defaults to settings.
        """
        super().__init__(pool)
        self._max_attempts = max_attempts

    @property
    def max_attempts(self) -> int:
        if self._max_attempts is None:
            self._max_attempts = get_settings()['job_max_attempts']
        return self._max_attempts

    async def add_job(
        self,
        pattern: JobPattern,
        payload: Dict[str, Any],
        conn=None
    ) -> Dict[str, Any]:
        """Enqueue a job that is due immediately.

        Args:
            pattern: Handler to run
            payload: JSON-serializable handler input
            conn: Optional connection to enqueue on

        Returns:
            The job row
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                INSERT INTO jobs (pattern, payload, max_attempts)
                VALUES ($1, $2, $3)
                RETURNING *
                ''',
                JobPattern(pattern).value,
                payload,
                self.max_attempts
            )
        logger.debug(f"Queued job {row['id']} ({row['pattern']})")
        return dict(row)

    async def claim(self, conn=None) -> Optional[Dict[str, Any]]:
        """Lock the oldest due job and count the attempt.

        Returns:
            The claimed job, or None if nothing is due
        """
        async with self.connection(conn) as conn:
            row = await conn.fetchrow(
                '''
                UPDATE jobs
                SET status = 'running',
                    attempts = attempts + 1,
                    locked_at = NOW()
                WHERE id = (
                    SELECT id FROM jobs
                    WHERE status = 'pending' AND run_at <= NOW()
                    ORDER BY id
                    LIMIT 1
                    FOR UPDATE SKIP LOCKED
                )
                RETURNING *
                '''
            )
        return dict(row) if row else None

    async def complete(self, job: Dict[str, Any], conn=None) -> None:
        """Remove a finished job."""
        async with self.connection(conn) as conn:
            await conn.execute('DELETE FROM jobs WHERE id = $1', job['id'])

    async def retry_later(
        self,
        job: Dict[str, Any],
        error: str,
        delay_seconds: float,
        conn=None
    ) -> None:
        """Put a job back in the queue after ``delay_seconds``."""
        async with self.connection(conn) as conn:
            await conn.execute(
                '''
                UPDATE jobs
                SET status = 'pending',
                    last_error = $2,
                    locked_at = NULL,
                    run_at = NOW() + make_interval(secs => $3)
                WHERE id = $1
                ''',
                job['id'],
                error,
                float(delay_seconds)
            )

    async def mark_failed(self, job: Dict[str, Any], error: str, conn=None) -> None:
        """Park a job permanently with its last error."""
        async with self.connection(conn) as conn:
            await conn.execute(
                '''
                UPDATE jobs
                SET status = 'failed', last_error = $2, locked_at = NULL
                WHERE id = $1
                ''',
                job['id'],
                error
            )

    async def release_stale(self, older_than_seconds: float = 300.0, conn=None) -> int:
        """Return jobs left running by a crashed worker to the queue.

        Returns:
            Number of jobs released
        """
        async with self.connection(conn) as conn:
            result = await conn.execute(
                '''
                UPDATE jobs
                SET status = 'pending', locked_at = NULL
                WHERE status = 'running'
                AND locked_at < NOW() - make_interval(secs => $1)
                ''',
                float(older_than_seconds)
            )
        count = int(result.split()[-1])
        if count:
            logger.warning(f"Released {count} stale jobs")
        return count


from .worker import JobWorker  # noqa: E402

__all__ = [
    'JobQueue',
    'JobWorker',
    'JobPattern',
    'JobStatus',
    'JobError',
    'UnknownJobPatternError'
]

"""Command line interface for running the API server and job worker."""
import asyncio
import logging
import signal

import uvicorn

from assets_loader import AssetsLoader
from database import init_db, close as db_close, get_pool
from jobs import JobQueue, JobWorker
from jobs.handlers import build_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global instances
worker = None
server = None
should_exit = False


def handle_shutdown(signum, frame):
    """Handle shutdown signals gracefully."""
    global should_exit
    logger.info("Shutdown signal received. Cleaning up...")
    should_exit = True


async def startup() -> JobWorker:
    """Initialize database and job worker."""
    logger.info("Initializing database...")
    await init_db()
    pool = await get_pool()

    logger.info("Creating job worker...")
    handlers = build_handlers(AssetsLoader(pool))
    return JobWorker(JobQueue(pool), handlers)


class UvicornServer:
    """Wrapper for running uvicorn with proper lifecycle management."""

    def __init__(self, app_path: str = "api:app", host: str = "0.0.0.0", port: int = 8000):
        self.config = uvicorn.Config(
            app_path,
            host=host,
            port=port,
            log_level="info"
        )
        self.server = uvicorn.Server(self.config)

    async def run(self):
        """Run the server in a way that can be stopped."""
        await self.server.serve()

    async def stop(self):
        """Stop the server."""
        self.server.should_exit = True


async def run_api():
    """Run the API server."""
    global server
    server = UvicornServer()
    await server.run()


async def run_worker(worker: JobWorker):
    """Run the job worker."""
    try:
        await worker.start()
    except Exception as e:
        logger.error(f"Job worker error: {e}")
        raise


async def main():
    """Run the API server and job worker."""
    global worker, server, should_exit

    tasks = []
    try:
        # Register signal handlers in main thread
        signal.signal(signal.SIGINT, handle_shutdown)
        signal.signal(signal.SIGTERM, handle_shutdown)

        worker = await startup()

        tasks = [
            asyncio.create_task(run_api(), name="api"),
            asyncio.create_task(run_worker(worker), name="worker")
        ]

        logger.info("All services started")

        # Wait for shutdown signal
        while not should_exit:
            await asyncio.sleep(1)

            # Check if any tasks failed
            for task in tasks:
                if task.done() and not task.cancelled():
                    exc = task.exception()
                    if exc:
                        logger.error(f"Task {task.get_name()} failed with error: {exc}")
                    should_exit = True
                    break

        logger.info("Starting cleanup...")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
    finally:
        if worker:
            worker.stop()

        if server:
            logger.info("Stopping API server...")
            await server.stop()

        # Give both a moment to finish, then cancel what is left
        if tasks:
            done, pending = await asyncio.wait(tasks, timeout=10)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info("Closing database connections...")
        await db_close()

        logger.info("Cleanup complete.")


if __name__ == "__main__":
    asyncio.run(main())

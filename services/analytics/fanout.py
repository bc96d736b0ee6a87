# services/analytics/fanout.py
import asyncio
import logging
from typing import Any, Callable, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import ANALYTICS_MAX_CONCURRENCY
from services.analytics.errors import StorageError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
Job = Callable[[Session], Any]


def run_in_session(session_factory: SessionFactory, job: Job):
    """Run one job on a session of its own; query failures surface as StorageError."""
    db = session_factory()
    try:
        return job(db)
    except SQLAlchemyError as e:
        logger.error(f"Analytics query failed in {getattr(job, '__name__', job)}: {e}")
        raise StorageError(str(e)) from e
    finally:
        db.close()


async def run_job(session_factory: SessionFactory, job: Job):
    return await asyncio.to_thread(run_in_session, session_factory, job)


async def run_concurrently(session_factory: SessionFactory, jobs: Sequence[Job]) -> List[Any]:
    """
    Run independent read jobs in worker threads, at most
    ANALYTICS_MAX_CONCURRENCY at a time. Results come back in job order;
    the first failure propagates.
    """
    sem = asyncio.Semaphore(max(1, ANALYTICS_MAX_CONCURRENCY))

    async def _one(job: Job):
        async with sem:
            return await run_job(session_factory, job)

    return list(await asyncio.gather(*(_one(j) for j in jobs)))

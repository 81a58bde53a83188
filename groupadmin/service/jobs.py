"""
Background execution of bulk assignments, for rosters too large to process
within a request.
"""

import asyncio

from structlog.typing import FilteringBoundLogger

from groupadmin.config.managers import AsyncSessionManager
from groupadmin.core.models import BulkJobData
from groupadmin.core.uuid import UUID, uuid7

from . import bulk as bulk_service


class BulkJobNotFound(Exception):
    pass


class BulkJobQueue:
    """
    Runs bulk assignments as asyncio tasks and keeps their results for
    polling, up to `history` finished jobs. Expected usage:

    queue = BulkJobQueue(manager=manager, concurrency=4)
    job = await queue.enqueue(group_id=group_id, tokens=tokens, log=log)
    ...
    job = queue.get(job.job_id)
    if job.status == "complete":
        outcome = job.outcome
    """

    manager: AsyncSessionManager
    concurrency: int
    history: int

    def __init__(
        self, manager: AsyncSessionManager, concurrency: int = 4, history: int = 1000
    ):
        self.manager = manager
        self.concurrency = concurrency
        self.history = history
        self.jobs: dict[UUID, BulkJobData] = {}
        self.tasks: dict[UUID, asyncio.Task] = {}

    async def enqueue(
        self, group_id: UUID, tokens: list[str], log: FilteringBoundLogger
    ) -> BulkJobData:
        job = BulkJobData(job_id=uuid7(), group_id=group_id, status="pending")
        log = log.bind(job_id=job.job_id, group_id=group_id)

        self.jobs[job.job_id] = job
        self.tasks[job.job_id] = asyncio.create_task(
            self.run(job_id=job.job_id, group_id=group_id, tokens=tokens, log=log)
        )

        await log.ainfo("bulk.job_enqueued", number_of_tokens=len(tokens))

        return job

    async def run(
        self,
        job_id: UUID,
        group_id: UUID,
        tokens: list[str],
        log: FilteringBoundLogger,
    ) -> BulkJobData:
        try:
            outcome = await bulk_service.assign(
                group_id=group_id,
                tokens=tokens,
                manager=self.manager,
                log=log,
                concurrency=self.concurrency,
            )
        except Exception as e:
            job = self.jobs[job_id].model_copy(
                update=dict(status="failed", error=str(e))
            )
            await log.awarning("bulk.job_failed", error=repr(e))
        else:
            job = self.jobs[job_id].model_copy(
                update=dict(status="complete", outcome=outcome)
            )
            await log.ainfo("bulk.job_complete")
        finally:
            self.tasks.pop(job_id, None)

        # Re-inserted so finished jobs are ordered by completion.
        self.jobs.pop(job_id, None)
        self.jobs[job_id] = job
        self.evict()
        return job

    def evict(self):
        """
        Forget the oldest finished jobs beyond the most recent `history`.
        Pending jobs are always kept.
        """
        finished = [x for x, job in self.jobs.items() if job.status != "pending"]

        for job_id in finished[: max(len(finished) - self.history, 0)]:
            del self.jobs[job_id]

    def get(self, job_id: UUID) -> BulkJobData:
        try:
            return self.jobs[job_id]
        except KeyError:
            raise BulkJobNotFound(f"Bulk job {job_id} not found")

    async def wait(self, job_id: UUID) -> BulkJobData:
        """
        Wait for a job to finish, then return it.
        """
        task = self.tasks.get(job_id)

        if task is not None:
            return await task

        return self.get(job_id)

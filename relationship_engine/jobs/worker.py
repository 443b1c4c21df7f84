"""
Generic background worker runner.

Reads the desired job name from CLI args or the WORKER_JOB environment
variable and delegates to the registered job coroutine.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.jobs.enrichment_job import (
    run_contact_enrichment,
)
from relationship_engine.infrastructure.observability.logging import (
    get_logger,
    setup_logging,
    shutdown_logging,
)

logger = get_logger(__name__)

JobCoroutine = Callable[[], Awaitable[None]]

JOB_REGISTRY: dict[str, JobCoroutine] = {
    "contact_enrichment": run_contact_enrichment,
}


def _resolve_job_name() -> str:
    """Pick the target job from CLI args or WORKER_JOB env variable."""
    if len(sys.argv) > 1:
        return sys.argv[1].strip().lower()
    return os.getenv("WORKER_JOB", "contact_enrichment").strip().lower()


async def run_worker(job_name: str | None = None) -> None:
    """Run the requested background job."""
    name = (job_name or _resolve_job_name()).strip().lower()
    if name not in JOB_REGISTRY:
        raise ValueError(
            f"Unknown worker job '{name}'. "
            f"Available jobs: {', '.join(sorted(JOB_REGISTRY.keys()))}"
        )

    logger.info("Starting background worker", job=name)
    await JOB_REGISTRY[name]()


def main() -> None:
    """CLI entrypoint."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_QUEUE_SIZE)
    try:
        asyncio.run(run_worker(_resolve_job_name()))
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()

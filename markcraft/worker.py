"""Temporal worker: registers the logo generation, tournament, and critic activities.

Run locally with:
    python -m markcraft.worker

Requires a reachable Temporal server (local dev server or Temporal Cloud).
"""

from __future__ import annotations

import asyncio
import sys

import structlog
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.worker import Worker

from markcraft.activities.critic import critic_qa
from markcraft.config import settings
from markcraft.logging import configure_logging

logger = structlog.get_logger()


def _load_activities() -> list:
    """Mock or real generation activities, depending on USE_MOCK_ACTIVITIES."""
    if settings.use_mock_activities:
        from markcraft.activities.mock_stubs import (
            generate_logo_concepts_activity,
            select_best_concepts_activity,
        )
    else:
        from markcraft.activities.generate import generate_logo_concepts_activity
        from markcraft.activities.select import select_best_concepts_activity

    return [generate_logo_concepts_activity, select_best_concepts_activity, critic_qa]


ACTIVITIES = _load_activities()


async def create_temporal_client() -> Client:
    """Connect to Temporal; TLS + API key when an API key is configured."""
    if settings.temporal_api_key:
        return await Client.connect(
            target_host=settings.temporal_address,
            namespace=settings.temporal_namespace,
            tls=True,
            api_key=settings.temporal_api_key,
            data_converter=pydantic_data_converter,
        )
    return await Client.connect(
        target_host=settings.temporal_address,
        namespace=settings.temporal_namespace,
        data_converter=pydantic_data_converter,
    )


async def run_worker() -> None:
    logger.info(
        "worker_connecting",
        address=settings.temporal_address,
        namespace=settings.temporal_namespace,
        task_queue=settings.temporal_task_queue,
    )

    try:
        client = await create_temporal_client()
    except Exception:
        logger.exception("worker_connection_failed", address=settings.temporal_address)
        raise

    worker = Worker(
        client,
        task_queue=settings.temporal_task_queue,
        activities=ACTIVITIES,
    )

    if settings.use_mock_activities and settings.environment != "development":
        logger.warning("worker_using_mock_stubs", environment=settings.environment)

    logger.info(
        "worker_started",
        task_queue=settings.temporal_task_queue,
        activity_count=len(ACTIVITIES),
        logo_concurrency=settings.logo_concurrency,
    )
    await worker.run()
    logger.info("worker_stopped")


def main() -> None:
    """Entrypoint for `python -m markcraft.worker`."""
    configure_logging()
    try:
        asyncio.run(run_worker())
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("worker_fatal_error")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Wiring for running the timer engine on a client device.

Two modes:

- local: tasks and focus history in JSON files, elapsed time measured from
  the wall clock;
- synced: the backend is authoritative, the engine counts down locally in
  fixed steps and a periodic resync overwrites the prediction.
"""

import asyncio
import logging
import sys

from tasktimer.adapters.alarms import LoggingAlarmSink
from tasktimer.adapters.json_repository import JsonFileRepository
from tasktimer.adapters.remote import ApiClient, RemoteTaskRepository, TokenStore, UnauthorizedError
from tasktimer.core.settings import Settings, get_settings
from tasktimer.engine.ports import AlarmSink, TimeSource
from tasktimer.engine.service import TaskTimerEngine

logger = logging.getLogger(__name__)


def build_local_engine(
    settings: Settings | None = None,
    alarms: AlarmSink | None = None,
    time_source: TimeSource | None = None,
) -> TaskTimerEngine:
    settings = settings or get_settings()
    repository = JsonFileRepository(settings.local_storage_dir)
    engine = TaskTimerEngine.from_settings(
        repository, alarms or LoggingAlarmSink(), settings, time_source=time_source
    )
    engine.load()
    return engine


def build_synced_engine(
    client: ApiClient,
    settings: Settings | None = None,
    alarms: AlarmSink | None = None,
    time_source: TimeSource | None = None,
) -> tuple[TaskTimerEngine, RemoteTaskRepository]:
    settings = settings or get_settings()
    repository = RemoteTaskRepository(client)
    engine = TaskTimerEngine.from_settings(
        repository,
        alarms or LoggingAlarmSink(),
        settings,
        server_synced=True,
        time_source=time_source,
    )
    engine.load()
    return engine, repository


async def run_engine(engine: TaskTimerEngine, settings: Settings, resync=None) -> None:
    await engine.run(
        tick_interval=settings.tick_interval_seconds,
        rollover_interval=settings.rollover_interval_seconds,
        resync=resync,
        resync_interval=settings.resync_interval_seconds,
    )


def main(argv: list[str] | None = None) -> None:
    """Run the engine loops until interrupted: ``python -m tasktimer.client [local|synced]``."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:     %(name)s - %(message)s")
    argv = sys.argv[1:] if argv is None else argv
    mode = argv[0] if argv else "local"
    settings = get_settings()

    try:
        if mode == "synced":
            client = ApiClient(settings.api_base_url, TokenStore(settings.token_cache_path))
            engine, repository = build_synced_engine(client, settings)
            resync = repository.load_tasks
        else:
            engine = build_local_engine(settings)
            resync = None

        logger.info(f"Running {mode} engine with {len(engine.tasks)} tasks")
        asyncio.run(run_engine(engine, settings, resync))
    except UnauthorizedError:
        logger.error("Session expired or revoked, log in again to keep syncing")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()

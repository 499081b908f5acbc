"""Celery task dispatching the planned commands."""

import asyncio
from typing import Any, Dict

from fleetsync.infrastructure.services.celery_config import (
    SEND_PLANNING_COMMANDS_TASK,
    celery_app,
)
from fleetsync.infrastructure.services.tasks.base import (
    CallbackTask,
    build_command_gateway,
    build_database,
    build_job_lock,
    planning_timezone,
)


@celery_app.task(bind=True, base=CallbackTask, name=SEND_PLANNING_COMMANDS_TASK)
def send_planning_commands(self) -> Dict[str, Any]:
    """Send the commands of the plannings active right now."""
    from fleetsync.application.use_cases.send_planning_commands_use_case import (
        SendPlanningCommandsJob,
    )
    from fleetsync.infrastructure.repositories import (
        DeviceRepository,
        DeviceTagValueRepository,
        LayerRepository,
        MongoUnitOfWork,
        PlanningRepository,
        ScheduleRepository,
    )
    from fleetsync.infrastructure.settings import get_settings

    settings = get_settings()
    database = build_database(settings)
    try:
        # Read-only run: the unit of work is never committed.
        unit_of_work = MongoUnitOfWork(database)
        job = SendPlanningCommandsJob(
            device_repository=DeviceRepository(
                database,
                unit_of_work,
                DeviceTagValueRepository(database, unit_of_work),
            ),
            layer_repository=LayerRepository(database),
            planning_repository=PlanningRepository(database),
            schedule_repository=ScheduleRepository(database),
            command_gateway=build_command_gateway(settings, database),
            job_lock=build_job_lock(settings),
            reference_timezone=planning_timezone(settings),
            roster_page_size=settings.jobs.roster_page_size,
        )
        result = asyncio.run(job.execute(is_cancelled=self.is_revoked))
    finally:
        database.close()
    return result.to_dict()

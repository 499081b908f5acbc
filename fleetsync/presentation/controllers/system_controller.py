"""Operational endpoints of the worker fleet: /health and /info."""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from fleetsync.application.dtos.health_dto import ApplicationInfoDTO, SystemHealthDTO
from fleetsync.application.use_cases.health_use_cases import (
    GetApplicationInfoUseCase,
    GetHealthStatusUseCase,
)
from fleetsync.domain.entities.health import ServiceStatus
from fleetsync.shared import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get(
    "/health",
    response_model=SystemHealthDTO,
    responses={503: {"description": "A dependency is down"}},
)
@inject
async def health(
    response: Response,
    use_case: GetHealthStatusUseCase = Depends(Provide["get_health_status_use_case"]),
) -> SystemHealthDTO:
    """
    Probe MongoDB, RabbitMQ, Redis, IoT Hub and the LoRaWAN function.

    Answers 503 when any of them is down so that container probes fail.
    """
    try:
        report = await use_case.execute()
    except Exception as exc:
        logger.error("system.health.failed", error=str(exc), exc_info=exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Health checks could not be run",
        ) from exc

    if report.status is ServiceStatus.DOWN:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        down = [d.name for d in report.dependencies if d.status is ServiceStatus.DOWN]
        logger.warning("system.health.down", dependencies=down)
    return report


@router.get("/info", response_model=ApplicationInfoDTO)
@inject
async def info(
    request: Request,
    use_case: GetApplicationInfoUseCase = Depends(
        Provide["get_application_info_use_case"]
    ),
) -> ApplicationInfoDTO:
    try:
        return await use_case.execute(getattr(request.app.state, "started_at", None))
    except Exception as exc:
        logger.error("system.info.failed", error=str(exc), exc_info=exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Application info unavailable",
        ) from exc

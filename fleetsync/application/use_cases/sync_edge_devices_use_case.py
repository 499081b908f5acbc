"""Reconciliation of edge devices with the twin registry."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fleetsync.domain.entities.job import SyncReport
from fleetsync.domain.entities.twin import Twin
from fleetsync.domain.gateways.twin_registry_gateway import ITwinRegistryGateway
from fleetsync.domain.ports.job_lock import IJobLock
from fleetsync.domain.repositories import (
    IDeviceTagValueRepository,
    IEdgeDeviceModelRepository,
    IEdgeDeviceRepository,
    IUnitOfWork,
)
from fleetsync.domain.services.twin_mapper import MODEL_ID_TAG, TwinMapper
from fleetsync.shared import get_logger

from .scheduled_job import ScheduledJob
from .sync_devices_use_case import MergeOutcome, enumerate_twins

logger = get_logger(__name__)


class SyncEdgeDevicesJob(ScheduledJob):
    """
    Mirrors the edge device twins into the local store.

    Every twin is enriched with its ``$edgeAgent`` and ``$edgeHub`` module
    twins. A failure on one device is logged and the loop moves on; a failure
    while enumerating aborts the run.
    """

    name = "sync_edge_devices"

    def __init__(
        self,
        twin_registry_gateway: ITwinRegistryGateway,
        edge_device_repository: IEdgeDeviceRepository,
        device_tag_value_repository: IDeviceTagValueRepository,
        edge_device_model_repository: IEdgeDeviceModelRepository,
        unit_of_work: IUnitOfWork,
        job_lock: IJobLock,
        twin_mapper: Optional[TwinMapper] = None,
        page_size: int = 100,
    ):
        super().__init__(job_lock)
        self._twin_registry_gateway = twin_registry_gateway
        self._edge_device_repository = edge_device_repository
        self._tag_repository = device_tag_value_repository
        self._edge_device_model_repository = edge_device_model_repository
        self._unit_of_work = unit_of_work
        self._mapper = twin_mapper or TwinMapper()
        self._page_size = page_size

    async def run(self) -> Dict[str, Any]:
        try:
            report = await self.sync_edge_devices()
        except Exception:
            self._unit_of_work.rollback()
            raise
        return report.as_dict()

    async def sync_edge_devices(self) -> SyncReport:
        enumeration = await enumerate_twins(self._fetch_page, self.name)
        report = SyncReport(
            enumerated=len(enumeration.twins), complete=enumeration.complete
        )

        for twin in enumeration.twins:
            try:
                outcome = await self._sync_edge_device(twin)
            except Exception as exc:
                logger.error(
                    f"{self.name}.device.failed",
                    device_id=twin.device_id,
                    error=str(exc),
                    exc_info=exc,
                )
                report.skipped += 1
                continue
            if outcome is None:
                report.skipped += 1
            elif outcome is MergeOutcome.INSERTED:
                report.inserted += 1
            elif outcome is MergeOutcome.UPDATED:
                report.updated += 1
            else:
                report.unchanged += 1

        if enumeration.complete:
            known_ids = enumeration.device_ids
            for device in await self._edge_device_repository.get_all():
                if device.id not in known_ids:
                    await self._edge_device_repository.delete(device.id)
                    report.deleted += 1
        else:
            logger.warning(f"{self.name}.garbage_collection.skipped")

        await self._unit_of_work.commit()
        return report

    async def _fetch_page(self, token: Optional[str]):
        return await self._twin_registry_gateway.get_edge_devices_page(
            continuation_token=token, page_size=self._page_size
        )

    async def _sync_edge_device(self, twin: Twin) -> Optional[MergeOutcome]:
        model_id = twin.tag(MODEL_ID_TAG)
        if not model_id:
            logger.warning(f"{self.name}.twin.missing_model", device_id=twin.device_id)
            return None
        if await self._edge_device_model_repository.get_by_id(model_id) is None:
            logger.warning(
                f"{self.name}.twin.unknown_model",
                device_id=twin.device_id,
                model_id=model_id,
            )
            return None

        agent_twin = await self._twin_registry_gateway.get_device_twin_with_module(
            twin.device_id
        )
        hub_twin = (
            await self._twin_registry_gateway.get_device_twin_with_edge_hub_module(
                twin.device_id
            )
        )
        incoming = self._mapper.to_edge_device(twin, agent_twin, hub_twin)

        existing = await self._edge_device_repository.get_by_id(
            incoming.id, include_tags=True
        )
        if existing is None:
            await self._tag_repository.replace_for_device(incoming.id, incoming.tags)
            await self._edge_device_repository.insert(incoming)
            return MergeOutcome.INSERTED
        if existing.version >= incoming.version:
            return MergeOutcome.UNCHANGED

        await self._tag_repository.replace_for_device(existing.id, incoming.tags)
        existing.copy_from(incoming)
        await self._edge_device_repository.update(existing)
        return MergeOutcome.UPDATED

"""Reconciliation of plain and LoRaWAN devices with the twin registry."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from fleetsync.domain.entities.device import DeviceModel
from fleetsync.domain.entities.job import SyncReport
from fleetsync.domain.entities.twin import Twin, TwinEnumeration
from fleetsync.domain.gateways.twin_registry_gateway import ITwinRegistryGateway
from fleetsync.domain.ports.job_lock import IJobLock
from fleetsync.domain.repositories import (
    IDeviceModelRepository,
    IDeviceRepository,
    IDeviceTagValueRepository,
    ILorawanDeviceRepository,
    IUnitOfWork,
)
from fleetsync.domain.services.twin_mapper import MODEL_ID_TAG, TwinMapper
from fleetsync.shared import get_logger

from .scheduled_job import ScheduledJob

logger = get_logger(__name__)

LORA_CONCENTRATOR_DEVICE_TYPE = "LoRa Concentrator"


class MergeOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


async def enumerate_twins(fetch_page, job_name: str) -> TwinEnumeration:
    """
    Gather every twin by following continuation tokens.

    Stops once the registry total is reached. An empty or repeated token
    before that also stops the loop and flags the enumeration incomplete.

    Args:
        fetch_page: Coroutine function taking the continuation token
        job_name: Prefix of the log events
    """
    enumeration = TwinEnumeration()
    token: Optional[str] = None
    while True:
        page = await fetch_page(token)
        enumeration.twins.extend(page.items)
        if len(enumeration.twins) >= page.total_items:
            return enumeration
        if not page.next_page or page.next_page == token:
            logger.warning(
                f"{job_name}.enumeration.incomplete",
                fetched=len(enumeration.twins),
                total=page.total_items,
            )
            enumeration.complete = False
            return enumeration
        token = page.next_page


class SyncDevicesJob(ScheduledJob):
    """Mirrors the plain and LoRaWAN device twins into the local store."""

    name = "sync_devices"

    def __init__(
        self,
        twin_registry_gateway: ITwinRegistryGateway,
        device_repository: IDeviceRepository,
        lorawan_device_repository: ILorawanDeviceRepository,
        device_tag_value_repository: IDeviceTagValueRepository,
        device_model_repository: IDeviceModelRepository,
        unit_of_work: IUnitOfWork,
        job_lock: IJobLock,
        twin_mapper: Optional[TwinMapper] = None,
        page_size: int = 100,
        excluded_device_type: str = LORA_CONCENTRATOR_DEVICE_TYPE,
    ):
        super().__init__(job_lock)
        self._twin_registry_gateway = twin_registry_gateway
        self._device_repository = device_repository
        self._lorawan_device_repository = lorawan_device_repository
        self._tag_repository = device_tag_value_repository
        self._device_model_repository = device_model_repository
        self._unit_of_work = unit_of_work
        self._mapper = twin_mapper or TwinMapper()
        self._page_size = page_size
        self._excluded_device_type = excluded_device_type

    async def run(self) -> Dict[str, Any]:
        try:
            report = await self.sync_devices()
        except Exception:
            self._unit_of_work.rollback()
            raise
        return report.as_dict()

    async def sync_devices(self) -> SyncReport:
        enumeration = await enumerate_twins(self._fetch_page, self.name)
        report = SyncReport(
            enumerated=len(enumeration.twins), complete=enumeration.complete
        )

        for twin in enumeration.twins:
            model = await self._classify(twin)
            if model is None:
                report.skipped += 1
                continue
            if model.support_lora_features:
                outcome = await self._merge_lorawan_device(twin)
            else:
                outcome = await self._merge_device(twin)
            self._count(report, outcome)

        if enumeration.complete:
            report.deleted = await self._delete_absent_devices(enumeration)
        else:
            logger.warning(f"{self.name}.garbage_collection.skipped")

        await self._unit_of_work.commit()
        return report

    async def _fetch_page(self, token: Optional[str]):
        return await self._twin_registry_gateway.get_devices_page(
            continuation_token=token,
            exclude_device_type=self._excluded_device_type,
            page_size=self._page_size,
        )

    async def _classify(self, twin: Twin) -> Optional[DeviceModel]:
        model_id = twin.tag(MODEL_ID_TAG)
        if not model_id:
            logger.warning(f"{self.name}.twin.missing_model", device_id=twin.device_id)
            return None
        model = await self._device_model_repository.get_by_id(model_id)
        if model is None:
            logger.warning(
                f"{self.name}.twin.unknown_model",
                device_id=twin.device_id,
                model_id=model_id,
            )
        return model

    async def _merge_device(self, twin: Twin) -> MergeOutcome:
        incoming = self._mapper.to_device(twin)
        existing = await self._device_repository.get_by_id(
            incoming.id, include_tags=True
        )
        if existing is None:
            await self._tag_repository.replace_for_device(incoming.id, incoming.tags)
            await self._device_repository.insert(incoming)
            return MergeOutcome.INSERTED
        if existing.version >= incoming.version:
            return MergeOutcome.UNCHANGED

        await self._tag_repository.replace_for_device(existing.id, incoming.tags)
        existing.copy_twin_fields(incoming)
        await self._device_repository.update(existing)
        return MergeOutcome.UPDATED

    async def _merge_lorawan_device(self, twin: Twin) -> MergeOutcome:
        incoming, patch = self._mapper.to_lorawan_device(twin)
        existing = await self._lorawan_device_repository.get_by_id(
            incoming.id, include_tags=True
        )
        if existing is None:
            await self._tag_repository.replace_for_device(incoming.id, incoming.tags)
            await self._lorawan_device_repository.insert(incoming)
            return MergeOutcome.INSERTED
        if existing.version >= incoming.version:
            return MergeOutcome.UNCHANGED

        await self._tag_repository.replace_for_device(existing.id, incoming.tags)
        existing.copy_twin_fields(incoming)
        patch.apply_to(existing)
        await self._lorawan_device_repository.update(existing)
        return MergeOutcome.UPDATED

    async def _delete_absent_devices(self, enumeration: TwinEnumeration) -> int:
        known_ids = enumeration.device_ids
        deleted = 0
        for repository in (self._device_repository, self._lorawan_device_repository):
            for device in await repository.get_all():
                if device.id not in known_ids:
                    await repository.delete(device.id)
                    deleted += 1
        return deleted

    @staticmethod
    def _count(report: SyncReport, outcome: MergeOutcome) -> None:
        if outcome is MergeOutcome.INSERTED:
            report.inserted += 1
        elif outcome is MergeOutcome.UPDATED:
            report.updated += 1
        else:
            report.unchanged += 1

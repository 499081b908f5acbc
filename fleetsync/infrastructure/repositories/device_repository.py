"""
MongoDB Device Repositories - Infrastructure Layer

Devices are stored one collection per kind; their tags live in the shared
``device_tag_values`` collection. Writes are registered on the unit of work
and reach MongoDB on commit.
"""

from __future__ import annotations

from dataclasses import fields
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Type

from pymongo.errors import PyMongoError

from fleetsync.domain.entities.device import (
    ClassType,
    DeduplicationMode,
    Device,
    DeviceListItem,
    DeviceTagValue,
    EdgeDevice,
    EdgeModule,
    LorawanDevice,
)
from fleetsync.domain.entities.errors import RepositoryOperationError
from fleetsync.domain.repositories.device_repository import (
    IBaseDeviceRepository,
    IDeviceRepository,
    IDeviceTagValueRepository,
    IEdgeDeviceRepository,
    ILorawanDeviceRepository,
    TDevice,
)
from fleetsync.infrastructure.database import MongoDatabase, WriteKind, WriteOperation
from fleetsync.infrastructure.database.mongo_database import (
    DEVICE_TAG_VALUES,
    DEVICES,
    EDGE_DEVICES,
    LORAWAN_DEVICES,
)
from fleetsync.infrastructure.repositories.mongo_unit_of_work import MongoUnitOfWork

_ENUM_FIELDS: Dict[str, Type[Enum]] = {
    "class_type": ClassType,
    "deduplication": DeduplicationMode,
}


class DeviceTagValueRepository(IDeviceTagValueRepository):
    """Tag rows of every kind of device."""

    COLLECTION_NAME = DEVICE_TAG_VALUES

    def __init__(self, mongo_database: MongoDatabase, unit_of_work: MongoUnitOfWork):
        self.db = mongo_database
        self.unit_of_work = unit_of_work

    async def get_for_device(self, device_id: str) -> List[DeviceTagValue]:
        try:
            documents = await self.db.find_many(
                self.COLLECTION_NAME, {"device_id": device_id}
            )
        except PyMongoError as e:
            raise RepositoryOperationError(
                f"Failed to load tags of device {device_id}: {e}"
            ) from e
        return [
            DeviceTagValue(id=doc["id"], name=doc["name"], value=doc.get("value", ""))
            for doc in documents
        ]

    async def replace_for_device(
        self, device_id: str, tags: List[DeviceTagValue]
    ) -> None:
        self.delete_for_device(device_id)
        for tag in tags:
            self.unit_of_work.register(
                WriteOperation(
                    collection=self.COLLECTION_NAME,
                    kind=WriteKind.INSERT,
                    document={
                        "id": tag.id,
                        "device_id": device_id,
                        "name": tag.name,
                        "value": tag.value,
                    },
                )
            )

    def delete_for_device(self, device_id: str) -> None:
        self.unit_of_work.register(
            WriteOperation(
                collection=self.COLLECTION_NAME,
                kind=WriteKind.DELETE_MANY,
                query={"device_id": device_id},
            )
        )


class MongoDeviceRepository(IBaseDeviceRepository[TDevice], Generic[TDevice]):
    """Shared implementation of the device repositories."""

    COLLECTION_NAME: str
    ENTITY: Type[TDevice]

    def __init__(
        self,
        mongo_database: MongoDatabase,
        unit_of_work: MongoUnitOfWork,
        tag_repository: DeviceTagValueRepository,
    ):
        self.db = mongo_database
        self.unit_of_work = unit_of_work
        self.tag_repository = tag_repository

    def _to_document(self, device: TDevice) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for item in fields(device):
            if item.name == "tags":
                continue
            value = getattr(device, item.name)
            if isinstance(value, Enum):
                value = value.value
            document[item.name] = value
        return document

    def _to_entity(self, document: Dict[str, Any]) -> TDevice:
        values: Dict[str, Any] = {}
        for item in fields(self.ENTITY):
            if item.name == "tags" or item.name not in document:
                continue
            value = document[item.name]
            enum_type = _ENUM_FIELDS.get(item.name)
            if enum_type is not None and value is not None:
                value = enum_type(value)
            values[item.name] = value
        return self.ENTITY(**values)

    async def get_all(self) -> List[TDevice]:
        try:
            documents = await self.db.find_many(self.COLLECTION_NAME, {})
        except PyMongoError as e:
            raise RepositoryOperationError(
                f"Failed to list {self.COLLECTION_NAME}: {e}"
            ) from e
        return [self._to_entity(document) for document in documents]

    async def get_by_id(
        self, device_id: str, include_tags: bool = False
    ) -> Optional[TDevice]:
        try:
            document = await self.db.find_one(self.COLLECTION_NAME, {"id": device_id})
        except PyMongoError as e:
            raise RepositoryOperationError(
                f"Failed to load device {device_id}: {e}"
            ) from e
        if document is None:
            return None
        device = self._to_entity(document)
        if include_tags:
            device.tags = await self.tag_repository.get_for_device(device_id)
        return device

    async def insert(self, device: TDevice) -> None:
        self.unit_of_work.register(
            WriteOperation(
                collection=self.COLLECTION_NAME,
                kind=WriteKind.INSERT,
                document=self._to_document(device),
            )
        )

    async def update(self, device: TDevice) -> None:
        self.unit_of_work.register(
            WriteOperation(
                collection=self.COLLECTION_NAME,
                kind=WriteKind.REPLACE,
                query={"id": device.id},
                document=self._to_document(device),
            )
        )

    async def delete(self, device_id: str) -> None:
        self.tag_repository.delete_for_device(device_id)
        self.unit_of_work.register(
            WriteOperation(
                collection=self.COLLECTION_NAME,
                kind=WriteKind.DELETE,
                query={"id": device_id},
            )
        )


class DeviceRepository(MongoDeviceRepository[Device], IDeviceRepository):
    COLLECTION_NAME = DEVICES
    ENTITY = Device

    async def list_roster(self, page_size: int) -> List[DeviceListItem]:
        """Plain devices first, then LoRaWAN devices, capped at ``page_size``."""
        roster: List[DeviceListItem] = []
        for collection_name in (DEVICES, LORAWAN_DEVICES):
            remaining = page_size - len(roster)
            if remaining <= 0:
                break
            try:
                documents = await self.db.find_many(
                    collection_name, {}, sort_by="name", limit=remaining
                )
            except PyMongoError as e:
                raise RepositoryOperationError(
                    f"Failed to list {collection_name}: {e}"
                ) from e
            roster.extend(
                DeviceListItem(
                    device_id=document["id"],
                    device_name=document.get("name", ""),
                    layer_id=document.get("layer_id"),
                )
                for document in documents
            )
        return roster


class LorawanDeviceRepository(
    MongoDeviceRepository[LorawanDevice], ILorawanDeviceRepository
):
    COLLECTION_NAME = LORAWAN_DEVICES
    ENTITY = LorawanDevice


class EdgeDeviceRepository(MongoDeviceRepository[EdgeDevice], IEdgeDeviceRepository):
    COLLECTION_NAME = EDGE_DEVICES
    ENTITY = EdgeDevice

    def _to_document(self, device: EdgeDevice) -> Dict[str, Any]:
        document = super()._to_document(device)
        document["modules"] = [
            {"name": module.name, "status": module.status, "version": module.version}
            for module in device.modules
        ]
        return document

    def _to_entity(self, document: Dict[str, Any]) -> EdgeDevice:
        device = super()._to_entity(
            {key: value for key, value in document.items() if key != "modules"}
        )
        device.modules = [
            EdgeModule(
                name=module["name"],
                status=module.get("status"),
                version=module.get("version"),
            )
            for module in document.get("modules") or []
        ]
        return device

"""MongoDB repositories for device models, edge device models and model commands."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from fleetsync.domain.entities.device import (
    DeviceModel,
    DeviceModelCommand,
    EdgeDeviceModel,
)
from fleetsync.domain.entities.errors import RepositoryOperationError
from fleetsync.domain.repositories.device_model_repository import (
    IDeviceModelCommandRepository,
    IDeviceModelRepository,
    IEdgeDeviceModelRepository,
)
from fleetsync.infrastructure.database import MongoDatabase
from fleetsync.infrastructure.database.mongo_database import (
    DEVICE_MODEL_COMMANDS,
    DEVICE_MODELS,
    EDGE_DEVICE_MODELS,
)


class MongoReadRepository:
    COLLECTION_NAME: str

    def __init__(self, mongo_database: MongoDatabase):
        self.db = mongo_database

    async def _find_one(self, identifier: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.db.find_one(self.COLLECTION_NAME, {"id": identifier})
        except PyMongoError as e:
            raise RepositoryOperationError(
                f"Failed to read {self.COLLECTION_NAME}/{identifier}: {e}"
            ) from e

    async def _find_all(self) -> List[Dict[str, Any]]:
        try:
            return await self.db.find_many(self.COLLECTION_NAME, {})
        except PyMongoError as e:
            raise RepositoryOperationError(
                f"Failed to list {self.COLLECTION_NAME}: {e}"
            ) from e


class DeviceModelRepository(MongoReadRepository, IDeviceModelRepository):
    COLLECTION_NAME = DEVICE_MODELS

    @staticmethod
    def _to_entity(document: Dict[str, Any]) -> DeviceModel:
        return DeviceModel(
            id=document["id"],
            name=document.get("name", ""),
            support_lora_features=bool(document.get("support_lora_features", False)),
        )

    async def get_by_id(self, model_id: str) -> Optional[DeviceModel]:
        document = await self._find_one(model_id)
        return self._to_entity(document) if document else None

    async def get_all(self) -> List[DeviceModel]:
        return [self._to_entity(document) for document in await self._find_all()]


class EdgeDeviceModelRepository(MongoReadRepository, IEdgeDeviceModelRepository):
    COLLECTION_NAME = EDGE_DEVICE_MODELS

    @staticmethod
    def _to_entity(document: Dict[str, Any]) -> EdgeDeviceModel:
        return EdgeDeviceModel(id=document["id"], name=document.get("name", ""))

    async def get_by_id(self, model_id: str) -> Optional[EdgeDeviceModel]:
        document = await self._find_one(model_id)
        return self._to_entity(document) if document else None

    async def get_all(self) -> List[EdgeDeviceModel]:
        return [self._to_entity(document) for document in await self._find_all()]


class DeviceModelCommandRepository(MongoReadRepository, IDeviceModelCommandRepository):
    COLLECTION_NAME = DEVICE_MODEL_COMMANDS

    async def get_by_id(self, command_id: str) -> Optional[DeviceModelCommand]:
        document = await self._find_one(command_id)
        if document is None:
            return None
        return DeviceModelCommand(
            id=document["id"],
            name=document.get("name", ""),
            frame=document.get("frame", ""),
            port=int(document.get("port", 1)),
            confirmed=bool(document.get("confirmed", False)),
            device_model_id=document.get("device_model_id"),
        )

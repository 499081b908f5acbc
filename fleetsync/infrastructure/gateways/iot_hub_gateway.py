"""Azure IoT Hub twin registry gateway - Infrastructure layer."""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote_plus

import httpx

from fleetsync.domain.entities.errors import TwinRegistryError
from fleetsync.domain.entities.twin import DISCONNECTED, Twin, TwinPage
from fleetsync.domain.gateways.twin_registry_gateway import ITwinRegistryGateway
from fleetsync.shared import get_logger

logger = get_logger(__name__)

EDGE_AGENT_MODULE = "$edgeAgent"
EDGE_HUB_MODULE = "$edgeHub"
CONTINUATION_HEADER = "x-ms-continuation"
MAX_ITEM_COUNT_HEADER = "x-ms-max-item-count"


def generate_sas_token(
    resource_uri: str,
    key: str,
    policy_name: Optional[str] = None,
    ttl_seconds: int = 3600,
    now: Optional[float] = None,
) -> str:
    """Build a ``SharedAccessSignature`` token for an IoT Hub resource."""
    expiry = int((now if now is not None else time.time()) + ttl_seconds)
    encoded_uri = quote_plus(resource_uri)
    to_sign = f"{encoded_uri}\n{expiry}".encode("utf-8")
    digest = hmac.new(base64.b64decode(key), to_sign, hashlib.sha256).digest()
    signature = quote_plus(base64.b64encode(digest).decode("utf-8"))
    token = f"SharedAccessSignature sr={encoded_uri}&sig={signature}&se={expiry}"
    if policy_name:
        token += f"&skn={policy_name}"
    return token


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str) or value.startswith("0001-01-01"):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _without_metadata(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in properties.items() if not key.startswith("$")}


def parse_twin(payload: Dict[str, Any]) -> Twin:
    """Convert a registry twin document into a ``Twin``."""
    properties = payload.get("properties") or {}
    return Twin(
        device_id=payload["deviceId"],
        module_id=payload.get("moduleId"),
        version=int(payload.get("version") or 0),
        status=payload.get("status") or "disabled",
        connection_state=payload.get("connectionState") or DISCONNECTED,
        device_scope=payload.get("deviceScope"),
        status_updated_time=_parse_datetime(payload.get("statusUpdateTime")),
        last_activity_time=_parse_datetime(payload.get("lastActivityTime")),
        tags=dict(payload.get("tags") or {}),
        desired=_without_metadata(properties.get("desired") or {}),
        reported=_without_metadata(properties.get("reported") or {}),
    )


class IoTHubGateway(ITwinRegistryGateway):
    """Twin queries against the IoT Hub REST API."""

    def __init__(
        self,
        hostname: str,
        shared_access_key_name: str,
        shared_access_key: str,
        api_version: str = "2021-04-12",
        timeout: float = 30.0,
        token_ttl_seconds: int = 3600,
    ):
        """
        Initialize the IoT Hub gateway.

        Args:
            hostname: IoT Hub host name, without scheme
            shared_access_key_name: Name of the shared access policy
            shared_access_key: Base64 key of the policy
            api_version: IoT Hub REST API version
            timeout: HTTP timeout in seconds
            token_ttl_seconds: Lifetime of the SAS tokens
        """
        self.hostname = hostname.removeprefix("https://").rstrip("/")
        self.shared_access_key_name = shared_access_key_name
        self.shared_access_key = shared_access_key
        self.api_version = api_version
        self.timeout = timeout
        self.token_ttl_seconds = token_ttl_seconds

    @property
    def query_url(self) -> str:
        return f"https://{self.hostname}/devices/query?api-version={self.api_version}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": generate_sas_token(
                self.hostname,
                self.shared_access_key,
                self.shared_access_key_name,
                self.token_ttl_seconds,
            ),
            "Content-Type": "application/json",
        }

    async def _query(
        self,
        query: str,
        continuation_token: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        Run a registry query and return one page of results.

        Returns:
            Result documents and the continuation token of the next page

        Raises:
            TwinRegistryError: If IoT Hub cannot be reached or rejects the query
        """
        headers = self._headers()
        if page_size:
            headers[MAX_ITEM_COUNT_HEADER] = str(page_size)
        if continuation_token:
            headers[CONTINUATION_HEADER] = continuation_token

        logger.debug(
            "iot_hub.query.request",
            query=query,
            has_token=bool(continuation_token),
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.query_url, headers=headers, json={"query": query}
                )
                response.raise_for_status()
                documents = response.json()
                next_token = response.headers.get(CONTINUATION_HEADER) or None
        except httpx.HTTPStatusError as e:
            logger.error(
                "iot_hub.query.http_error",
                status_code=e.response.status_code,
                response_text=e.response.text,
                query=query,
                exc_info=e,
            )
            raise TwinRegistryError(
                f"IoT Hub returned HTTP {e.response.status_code}: {e.response.text}",
                {"query": query},
            ) from e
        except httpx.RequestError as e:
            logger.error("iot_hub.query.request_error", error=str(e), exc_info=e)
            raise TwinRegistryError(
                f"Failed to communicate with IoT Hub: {e}", {"query": query}
            ) from e

        if not isinstance(documents, list):
            raise TwinRegistryError(
                "Unexpected IoT Hub query response", {"query": query}
            )
        return documents, next_token

    async def _count(self, where: str) -> int:
        documents, _ = await self._query(
            f"SELECT COUNT() as totalNumber FROM devices WHERE {where}"
        )
        if not documents:
            return 0
        return int(documents[0].get("totalNumber", 0))

    async def _page(
        self, where: str, continuation_token: Optional[str], page_size: int
    ) -> TwinPage:
        total = await self._count(where)
        documents, next_token = await self._query(
            f"SELECT * FROM devices WHERE {where}", continuation_token, page_size
        )
        items = [parse_twin(document) for document in documents]
        logger.info(
            "iot_hub.twins.page",
            items=len(items),
            total=total,
            has_next=bool(next_token),
        )
        return TwinPage(items=items, total_items=total, next_page=next_token)

    async def get_devices_page(
        self,
        continuation_token: Optional[str] = None,
        exclude_device_type: Optional[str] = None,
        page_size: int = 100,
    ) -> TwinPage:
        where = "devices.capabilities.iotEdge = false"
        if exclude_device_type:
            where += (
                " AND (NOT is_defined(tags.deviceType) OR "
                f"devices.tags.deviceType != {_quote(exclude_device_type)})"
            )
        return await self._page(where, continuation_token, page_size)

    async def get_edge_devices_page(
        self,
        continuation_token: Optional[str] = None,
        page_size: int = 100,
    ) -> TwinPage:
        return await self._page(
            "devices.capabilities.iotEdge = true", continuation_token, page_size
        )

    async def _module_twin(self, device_id: str, module_id: str) -> Optional[Twin]:
        documents, _ = await self._query(
            "SELECT * FROM devices.modules WHERE "
            f"devices.modules.moduleId = {_quote(module_id)} "
            f"AND deviceId in [{_quote(device_id)}]"
        )
        return parse_twin(documents[0]) if documents else None

    async def get_device_twin_with_module(self, device_id: str) -> Optional[Twin]:
        return await self._module_twin(device_id, EDGE_AGENT_MODULE)

    async def get_device_twin_with_edge_hub_module(
        self, device_id: str
    ) -> Optional[Twin]:
        return await self._module_twin(device_id, EDGE_HUB_MODULE)

    async def ping(self) -> int:
        """Count the registered devices; used by the health check."""
        documents, _ = await self._query(
            "SELECT COUNT() as totalNumber FROM devices"
        )
        return int(documents[0].get("totalNumber", 0)) if documents else 0

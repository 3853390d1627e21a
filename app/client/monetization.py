"""
Client accessor for the server's monetization switch.

The flag is fetched once and cached for the life of the accessor. A failed
fetch answers with free-access mode but is not cached, so the next get()
asks the server again.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonetizationState:
    monetization: str
    credit_system_enabled: bool
    free_access: bool
    message: str = ""
    server_timestamp: Optional[int] = None

    @property
    def enabled(self) -> bool:
        return self.monetization == "on"


OFF = MonetizationState(
    monetization="off",
    credit_system_enabled=False,
    free_access=True,
    message="Monetization disabled - Free access mode",
)


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


class MonetizationSettings:
    """
    Args:
        client: httpx.AsyncClient whose base_url points at the API root.
        path: Path of the monetization endpoint below that root.
    """

    def __init__(self, client: httpx.AsyncClient, path: str = "/config/monetization") -> None:
        self._client = client
        self._path = path
        self._cached: Optional[MonetizationState] = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Optional[MonetizationState]:
        return self._cached

    async def _fetch(self) -> Optional[MonetizationState]:
        try:
            response = await self._client.get(self._path)
            response.raise_for_status()
            data = _unwrap(response.json())
            status = str(data["monetization"]).lower()
            return MonetizationState(
                monetization="on" if status == "on" else "off",
                credit_system_enabled=bool(data.get("creditSystemEnabled", status == "on")),
                free_access=bool(data.get("freeAccess", status != "on")),
                message=data.get("message") or "",
                server_timestamp=data.get("serverTimestamp"),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not fetch monetization config, assuming free access: %s", exc)
            return None

    async def get(self) -> MonetizationState:
        """Cached state, fetching it on first use."""
        if self._cached is not None:
            return self._cached
        async with self._lock:
            if self._cached is None:
                self._cached = await self._fetch()
            return self._cached or OFF

    def invalidate(self) -> None:
        self._cached = None

    async def refresh(self) -> MonetizationState:
        self.invalidate()
        return await self.get()

    async def is_enabled(self) -> bool:
        return (await self.get()).enabled

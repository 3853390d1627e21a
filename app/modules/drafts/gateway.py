"""
Draft store gateways used by the DraftSynchronizer.

HttpDraftStore talks to the /drafts/me endpoints. Transport failures, time
outs and 5xx answers become DraftStoreUnavailable so the synchronizer can
fall back to the local cache; they never read as "no draft".
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class DraftStoreError(Exception):
    """Base class for draft store failures."""


class DraftStoreUnavailable(DraftStoreError):
    """The store could not be reached or failed; the draft state is unknown."""


class DraftStoreAuthError(DraftStoreError):
    """The store refused the caller's identity."""


class DraftStoreRejected(DraftStoreError):
    """The store refused the payload itself (e.g. an invalid step)."""


@dataclass
class RemoteDraft:
    current_step: int
    draft_data: Dict[str, Any] = field(default_factory=dict)
    revision: int = 0


@dataclass
class SaveResult:
    applied: bool
    draft: RemoteDraft


class DraftStoreGateway(ABC):
    """What the synchronizer needs from the server-of-record."""

    @abstractmethod
    async def get_draft(self) -> Optional[RemoteDraft]:
        ...

    @abstractmethod
    async def save_draft(
        self, current_step: int, draft_data: Dict[str, Any], revision: int
    ) -> SaveResult:
        ...

    @abstractmethod
    async def delete_draft(self) -> bool:
        ...


def _unwrap(payload: Any) -> Any:
    """Strip the {"success": ..., "data": ...} response envelope."""
    if isinstance(payload, dict) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


def _to_remote(data: Dict[str, Any]) -> RemoteDraft:
    return RemoteDraft(
        current_step=int(data["currentStep"]),
        draft_data=dict(data.get("draftData") or {}),
        revision=int(data.get("revision") or 0),
    )


class HttpDraftStore(DraftStoreGateway):
    """
    Draft store reached over HTTP.

    Args:
        client: An httpx.AsyncClient whose base_url points at the API root
            (for example ``http://localhost:8000/api``).
        token: Bearer token of the draft owner.
    """

    def __init__(self, client: httpx.AsyncClient, token: str, path: str = "/drafts/me") -> None:
        self._client = client
        self._headers = {"Authorization": f"Bearer {token}"}
        self._path = path

    async def _request(self, method: str, json_body: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(
                method, self._path, json=json_body, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise DraftStoreUnavailable(f"{method} {self._path} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise DraftStoreAuthError(f"{method} {self._path}: {response.status_code}")
        if response.status_code >= 500:
            raise DraftStoreUnavailable(f"{method} {self._path}: {response.status_code}")
        if response.status_code >= 400:
            raise DraftStoreRejected(f"{method} {self._path}: {response.status_code} {response.text}")

        try:
            return _unwrap(response.json())
        except ValueError as exc:
            raise DraftStoreUnavailable(f"{method} {self._path}: malformed body") from exc

    async def get_draft(self) -> Optional[RemoteDraft]:
        data = await self._request("GET")
        return _to_remote(data) if data else None

    async def save_draft(
        self, current_step: int, draft_data: Dict[str, Any], revision: int
    ) -> SaveResult:
        data = await self._request(
            "PUT",
            {"currentStep": current_step, "draftData": draft_data, "revision": revision},
        )
        return SaveResult(applied=bool(data["applied"]), draft=_to_remote(data["draft"]))

    async def delete_draft(self) -> bool:
        data = await self._request("DELETE")
        return bool(data and data.get("deleted"))

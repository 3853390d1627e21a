"""
DraftSynchronizer - keeps the working biodata form, the draft store and the
local fallback cache consistent while the user edits.

Precedence rule between the two storage tiers:

* A successful store read wins outright. Its contents replace whatever the
  local cache holds, and "no draft" means start fresh.
* The local cache is read only when the store read fails.
* Every write goes to the store first; the cache is refreshed from the
  working state afterwards, and written on its own when the store fails.

Ordering: revisions are a per-owner counter seeded from the store. Each
write takes the next number when it is issued and the store ignores a write
older than the one it holds, so a slow autosave finishing late cannot
overwrite data saved by a later step change. When the store turns out to be
ahead of every number this client issued (another device, another session)
the client adopts the stored revision and writes its working state once
more, so the owner's latest edit is what ends up stored.

Authorization failures are never absorbed: a refused write raises from the
call that issued it, and background writes record the failure in
``auth_failure`` and raise it from ``flush()`` and ``settle()``.
"""

import asyncio
import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple

from app.core.config import config
from .debounce import Debouncer
from .gateway import DraftStoreAuthError, DraftStoreError, DraftStoreGateway
from .local_cache import FileDraftCache, LocalDraftCache
from .models import BIODATA_STEPS

logger = logging.getLogger(__name__)


class DraftSource(str, enum.Enum):
    SERVER = "server"
    LOCAL = "local"
    FRESH = "fresh"


@dataclass
class LoadedDraft:
    current_step: int
    draft_data: Dict[str, Any] = field(default_factory=dict)
    source: DraftSource = DraftSource.FRESH


class DraftSynchronizer:
    """
    Client-side coordinator for one user's draft.

    Args:
        store: Gateway to the draft store (server of record)
        cache: Local fallback cache
        quiescence: Seconds without edits before an autosave is issued;
            defaults to DRAFT_AUTOSAVE_SECONDS
    """

    def __init__(
        self,
        store: DraftStoreGateway,
        cache: LocalDraftCache,
        quiescence: Optional[float] = None,
    ) -> None:
        if quiescence is None:
            quiescence = config.draft_autosave_seconds
        self._store = store
        self._cache = cache
        self._debouncer: Debouncer[Tuple[int, Dict[str, Any]]] = Debouncer(
            quiescence, self._autosave
        )
        self._current_step = 1
        self._draft_data: Dict[str, Any] = {}
        self._last_revision = 0
        self._committed_revision = 0
        self._in_flight: Set[asyncio.Task] = set()
        self._auth_failure: Optional[DraftStoreAuthError] = None

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def draft_data(self) -> Dict[str, Any]:
        return copy.deepcopy(self._draft_data)

    @property
    def committed_revision(self) -> int:
        """Highest revision the store has acknowledged as applied."""
        return self._committed_revision

    @property
    def autosave_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def auth_failure(self) -> Optional[DraftStoreAuthError]:
        """Last refused write, cleared by the next write the store accepts."""
        return self._auth_failure

    def _next_revision(self) -> int:
        self._last_revision += 1
        return self._last_revision

    def _snapshot(self) -> Tuple[int, Dict[str, Any]]:
        return self._current_step, copy.deepcopy(self._draft_data)

    def _mirror_locally(self) -> None:
        self._cache.write_local(self._draft_data, self._current_step)

    async def _persist(
        self, current_step: int, draft_data: Dict[str, Any], retry: bool = True
    ) -> bool:
        """
        Write one snapshot to the store; fall back to the cache on failure.

        Returns:
            True if the store holds this write or a later one of ours

        Raises:
            DraftStoreAuthError: If the store refuses the caller
        """
        revision = self._next_revision()
        try:
            result = await self._store.save_draft(current_step, draft_data, revision)
        except DraftStoreAuthError as exc:
            self._auth_failure = exc
            self._mirror_locally()
            raise
        except DraftStoreError as exc:
            logger.warning("Draft store write failed, keeping local copy: %s", exc)
            self._mirror_locally()
            return False

        self._auth_failure = None
        if result.applied:
            self._committed_revision = max(self._committed_revision, revision)
            self._mirror_locally()
            return True

        stored = result.draft.revision
        if stored <= self._last_revision:
            # A later write of ours already landed
            self._mirror_locally()
            return True

        logger.info("Draft store is ahead (revision %s > %s)", stored, revision)
        self._last_revision = stored
        if not retry:
            self._mirror_locally()
            return False
        return await self._persist(*self._snapshot(), retry=False)

    def _raise_auth_failure(self) -> None:
        if self._auth_failure is not None:
            raise self._auth_failure

    async def _autosave(self, snapshot: Tuple[int, Dict[str, Any]]) -> None:
        await self._persist(*snapshot)

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def on_load(self) -> LoadedDraft:
        """
        Load the working draft: the store if reachable, else the local cache.

        Raises:
            DraftStoreAuthError: If the store refuses the caller
        """
        try:
            remote = await self._store.get_draft()
        except DraftStoreAuthError:
            raise
        except DraftStoreError as exc:
            logger.warning("Draft store read failed, using local cache: %s", exc)
            local = self._cache.read_local()
            if local is None:
                self._current_step, self._draft_data = 1, {}
                return LoadedDraft(current_step=1, draft_data={}, source=DraftSource.FRESH)
            self._current_step = local.current_step or 1
            self._draft_data = copy.deepcopy(local.draft_data or {})
            return LoadedDraft(
                current_step=self._current_step,
                draft_data=self.draft_data,
                source=DraftSource.LOCAL,
            )

        if remote is None:
            self._current_step, self._draft_data = 1, {}
            self._cache.clear_local()
            return LoadedDraft(current_step=1, draft_data={}, source=DraftSource.SERVER)

        self._current_step = remote.current_step
        self._draft_data = copy.deepcopy(remote.draft_data)
        self._last_revision = max(self._last_revision, remote.revision)
        self._committed_revision = max(self._committed_revision, remote.revision)
        self._cache.clear_local()
        self._mirror_locally()
        return LoadedDraft(
            current_step=self._current_step,
            draft_data=self.draft_data,
            source=DraftSource.SERVER,
        )

    def on_field_change(self, new_draft_data: Dict[str, Any]) -> None:
        """
        Record an edit. Updates the working state, mirrors it to the local
        cache immediately and (re)starts the autosave timer.
        """
        self._draft_data = copy.deepcopy(new_draft_data)
        self._mirror_locally()
        self._debouncer.schedule(self._snapshot())

    async def on_step_change(
        self, next_step: int, draft_data: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Move to another step and save right away, superseding any pending
        autosave. Store outages are absorbed into the local cache.

        Returns:
            True if the store holds the working state

        Raises:
            DraftStoreAuthError: If the store refuses the caller
        """
        if not 1 <= next_step <= BIODATA_STEPS:
            raise ValueError(f"Step must be between 1 and {BIODATA_STEPS}")
        self._current_step = next_step
        if draft_data is not None:
            self._draft_data = copy.deepcopy(draft_data)
        self._debouncer.cancel()
        return await self._persist(*self._snapshot())

    def on_unload(self) -> asyncio.Task:
        """
        Final save when the form is torn down. The store write runs in the
        background; the local cache is written before returning.
        """
        self._debouncer.cancel()
        task = self._track(self._persist(*self._snapshot()))
        self._mirror_locally()
        return task

    async def flush(self) -> None:
        """Issue a pending autosave now. Raises a refused write as ``DraftStoreAuthError``."""
        await self._debouncer.flush()
        self._raise_auth_failure()

    async def settle(self) -> None:
        """Wait until no autosave or background write is running."""
        await self._debouncer.wait_idle()
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        self._raise_auth_failure()

    async def restart(self) -> None:
        """Discard the draft everywhere and start from an empty form."""
        self._debouncer.cancel()
        await self._debouncer.wait_idle()
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        try:
            await self._store.delete_draft()
        except DraftStoreAuthError:
            raise
        except DraftStoreError as exc:
            logger.warning("Could not delete draft from store: %s", exc)
        self._cache.clear_local()
        self._current_step, self._draft_data = 1, {}


def create_synchronizer(store: DraftStoreGateway) -> DraftSynchronizer:
    """Synchronizer using DRAFT_AUTOSAVE_SECONDS and the cache file at DRAFT_CACHE_PATH."""
    return DraftSynchronizer(
        store,
        FileDraftCache(config.draft_cache_path),
        quiescence=config.draft_autosave_seconds,
    )

"""
Local fallback cache for the draft being edited.

A best-effort, client-resident copy of the working draft. It is read only
when the draft store cannot be reached, and no method ever raises: a broken
cache must not interrupt editing.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .models import BIODATA_STEPS

logger = logging.getLogger(__name__)


@dataclass
class LocalDraft:
    """Cached draft pieces; either one may be missing."""
    draft_data: Optional[Dict[str, Any]] = None
    current_step: Optional[int] = None


def _sanitize(raw: Dict[str, Any]) -> Optional[LocalDraft]:
    data = raw.get("draftData")
    step = raw.get("currentStep")
    if not isinstance(data, dict):
        data = None
    if not (isinstance(step, int) and 1 <= step <= BIODATA_STEPS):
        step = None
    if data is None and step is None:
        return None
    return LocalDraft(draft_data=data, current_step=step)


class LocalDraftCache(ABC):
    """Interface shared by the cache backends."""

    @abstractmethod
    def read_local(self) -> Optional[LocalDraft]:
        ...

    @abstractmethod
    def write_local(self, draft_data: Dict[str, Any], current_step: Optional[int] = None) -> None:
        ...

    @abstractmethod
    def clear_local(self) -> None:
        ...


class MemoryDraftCache(LocalDraftCache):
    """Process-local cache, handy for tests and headless clients."""

    def __init__(self) -> None:
        self._entry: Dict[str, Any] = {}

    def read_local(self) -> Optional[LocalDraft]:
        return _sanitize(self._entry)

    def write_local(self, draft_data: Dict[str, Any], current_step: Optional[int] = None) -> None:
        try:
            self._entry["draftData"] = json.loads(json.dumps(draft_data))
        except (TypeError, ValueError) as exc:
            logger.warning("Draft data is not JSON serializable, not cached: %s", exc)
            return
        if current_step is not None:
            self._entry["currentStep"] = current_step

    def clear_local(self) -> None:
        self._entry = {}


class FileDraftCache(LocalDraftCache):
    """
    JSON file cache. Writes go to a temporary file that is then renamed over
    the target, so a crash mid-write leaves the previous copy intact.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable draft cache %s: %s", self.path, exc)
            return {}
        return raw if isinstance(raw, dict) else {}

    def read_local(self) -> Optional[LocalDraft]:
        return _sanitize(self._load())

    def write_local(self, draft_data: Dict[str, Any], current_step: Optional[int] = None) -> None:
        entry = self._load()
        entry["draftData"] = draft_data
        if current_step is not None:
            entry["currentStep"] = current_step
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(entry, fh)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not write draft cache %s: %s", self.path, exc)

    def clear_local(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not clear draft cache %s: %s", self.path, exc)

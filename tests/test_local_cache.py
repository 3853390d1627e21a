"""
Local fallback cache backends.
"""
from __future__ import annotations

from app.modules.drafts.local_cache import FileDraftCache, LocalDraft, MemoryDraftCache


def test_memory_cache_round_trip_and_clear() -> None:
    cache = MemoryDraftCache()
    assert cache.read_local() is None

    cache.write_local({"gender": "Male"}, 3)
    assert cache.read_local() == LocalDraft(draft_data={"gender": "Male"}, current_step=3)

    cache.write_local({"gender": "Female"})
    # Step is kept when not given
    assert cache.read_local() == LocalDraft(draft_data={"gender": "Female"}, current_step=3)

    cache.clear_local()
    assert cache.read_local() is None


def test_memory_cache_stores_a_copy() -> None:
    cache = MemoryDraftCache()
    data = {"siblings": ["a"]}
    cache.write_local(data, 1)
    data["siblings"].append("b")

    assert cache.read_local().draft_data == {"siblings": ["a"]}


def test_memory_cache_skips_unserializable_data() -> None:
    cache = MemoryDraftCache()
    cache.write_local({"ok": True}, 2)
    cache.write_local({"bad": object()}, 4)

    assert cache.read_local() == LocalDraft(draft_data={"ok": True}, current_step=2)


def test_file_cache_round_trip(tmp_path) -> None:
    cache = FileDraftCache(tmp_path / "nested" / "draft.json")
    cache.write_local({"religion": "Muslim"}, 2)

    reopened = FileDraftCache(tmp_path / "nested" / "draft.json")
    assert reopened.read_local() == LocalDraft(draft_data={"religion": "Muslim"}, current_step=2)

    reopened.clear_local()
    assert cache.read_local() is None
    # Clearing twice is fine
    reopened.clear_local()


def test_file_cache_ignores_corrupt_file(tmp_path) -> None:
    path = tmp_path / "draft.json"
    path.write_text("{not json", encoding="utf-8")

    assert FileDraftCache(path).read_local() is None


def test_file_cache_drops_out_of_range_step(tmp_path) -> None:
    path = tmp_path / "draft.json"
    path.write_text('{"draftData": {"a": 1}, "currentStep": 7}', encoding="utf-8")

    assert FileDraftCache(path).read_local() == LocalDraft(draft_data={"a": 1}, current_step=None)

"""
Biodata lifecycle table.
"""
from __future__ import annotations

import pytest

from app.modules.profiles.lifecycle import (
    TRANSITIONS,
    InvalidTransitionError,
    LifecycleEvent,
    ProfileStatus,
    allowed_sources,
    is_noop,
    transition_for,
)


def test_every_submitted_state_handles_every_event() -> None:
    for status in ProfileStatus:
        for event in LifecycleEvent:
            if event is LifecycleEvent.SUBMIT:
                continue
            assert (status, event) in TRANSITIONS


def test_submission_enters_review() -> None:
    assert transition_for(None, LifecycleEvent.SUBMIT).target is ProfileStatus.PENDING_APPROVAL


@pytest.mark.parametrize("event", [
    LifecycleEvent.APPROVE,
    LifecycleEvent.REJECT,
    LifecycleEvent.OWNER_EDIT,
    LifecycleEvent.DELETE,
])
def test_draft_state_only_accepts_submit(event: LifecycleEvent) -> None:
    with pytest.raises(InvalidTransitionError) as excinfo:
        transition_for(None, event)
    assert "draft" in str(excinfo.value)


@pytest.mark.parametrize("status", list(ProfileStatus))
def test_submit_is_not_legal_after_submission(status: ProfileStatus) -> None:
    with pytest.raises(InvalidTransitionError):
        transition_for(status, LifecycleEvent.SUBMIT)


@pytest.mark.parametrize("status", list(ProfileStatus))
def test_owner_edit_always_returns_to_review(status: ProfileStatus) -> None:
    transition = transition_for(status, LifecycleEvent.OWNER_EDIT)
    assert transition.target is ProfileStatus.PENDING_APPROVAL
    assert transition.counts_edit is True
    # Editing never clears an earlier rejection reason
    assert transition.clears_reason is False


def test_approve_clears_reason_and_repeats_are_noops() -> None:
    assert transition_for(ProfileStatus.PENDING_APPROVAL, LifecycleEvent.APPROVE).clears_reason
    assert transition_for(ProfileStatus.REJECTED, LifecycleEvent.APPROVE).clears_reason
    assert is_noop(ProfileStatus.APPROVED, LifecycleEvent.APPROVE)
    assert allowed_sources(LifecycleEvent.APPROVE) == (
        ProfileStatus.PENDING_APPROVAL,
        ProfileStatus.REJECTED,
    )


def test_reject_sets_reason_from_any_state() -> None:
    for status in ProfileStatus:
        transition = transition_for(status, LifecycleEvent.REJECT)
        assert transition.target is ProfileStatus.REJECTED
        assert transition.sets_reason is True
    assert set(allowed_sources(LifecycleEvent.REJECT)) == set(ProfileStatus)


def test_delete_removes_from_any_state() -> None:
    for status in ProfileStatus:
        assert transition_for(status, LifecycleEvent.DELETE).target is None

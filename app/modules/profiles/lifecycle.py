"""
Profile lifecycle - the moderation status model of a submitted biodata.

The transition table below is the single authority on which events are legal
from which status. Services translate a row into one conditional UPDATE
(``WHERE status IN allowed_sources(event)``), so the table and the SQL can
never disagree.
"""

import enum
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


class ProfileStatus(str, enum.Enum):
    """Moderation status of a biodata"""

    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


class LifecycleEvent(str, enum.Enum):
    """Things that can happen to a biodata"""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    OWNER_EDIT = "owner_edit"
    DELETE = "delete"


class InvalidTransitionError(Exception):
    """Raised when an event is not legal from the current status."""

    def __init__(self, current: Optional[ProfileStatus], event: LifecycleEvent):
        self.current = current
        self.event = event
        source = current.value if current else "draft"
        super().__init__(f"Cannot {event.value} a biodata in state {source}")


@dataclass(frozen=True)
class Transition:
    """
    One row of the lifecycle table.

    ``target`` None means the biodata is removed. ``noop`` rows are legal but
    change nothing; callers report success without side effects.
    """

    target: Optional[ProfileStatus]
    clears_reason: bool = False
    sets_reason: bool = False
    counts_edit: bool = False
    noop: bool = False


# (current status, event) -> transition. A current status of None is the
# draft pre-state, which only SUBMIT can leave.
TRANSITIONS: Dict[Tuple[Optional[ProfileStatus], LifecycleEvent], Transition] = {
    (None, LifecycleEvent.SUBMIT): Transition(ProfileStatus.PENDING_APPROVAL),

    (ProfileStatus.PENDING_APPROVAL, LifecycleEvent.APPROVE): Transition(
        ProfileStatus.APPROVED, clears_reason=True
    ),
    (ProfileStatus.REJECTED, LifecycleEvent.APPROVE): Transition(
        ProfileStatus.APPROVED, clears_reason=True
    ),
    (ProfileStatus.APPROVED, LifecycleEvent.APPROVE): Transition(
        ProfileStatus.APPROVED, noop=True
    ),

    (ProfileStatus.PENDING_APPROVAL, LifecycleEvent.REJECT): Transition(
        ProfileStatus.REJECTED, sets_reason=True
    ),
    (ProfileStatus.APPROVED, LifecycleEvent.REJECT): Transition(
        ProfileStatus.REJECTED, sets_reason=True
    ),
    # Same reason again is a no-op; the service decides that from the data
    (ProfileStatus.REJECTED, LifecycleEvent.REJECT): Transition(
        ProfileStatus.REJECTED, sets_reason=True
    ),

    (ProfileStatus.PENDING_APPROVAL, LifecycleEvent.OWNER_EDIT): Transition(
        ProfileStatus.PENDING_APPROVAL, counts_edit=True
    ),
    (ProfileStatus.APPROVED, LifecycleEvent.OWNER_EDIT): Transition(
        ProfileStatus.PENDING_APPROVAL, counts_edit=True
    ),
    (ProfileStatus.REJECTED, LifecycleEvent.OWNER_EDIT): Transition(
        ProfileStatus.PENDING_APPROVAL, counts_edit=True
    ),

    (ProfileStatus.PENDING_APPROVAL, LifecycleEvent.DELETE): Transition(None),
    (ProfileStatus.APPROVED, LifecycleEvent.DELETE): Transition(None),
    (ProfileStatus.REJECTED, LifecycleEvent.DELETE): Transition(None),
}


def _check_exhaustive() -> None:
    """Every (status, event) pair after submission must have a row."""
    missing = [
        (status.value, event.value)
        for status in ProfileStatus
        for event in LifecycleEvent
        if event is not LifecycleEvent.SUBMIT and (status, event) not in TRANSITIONS
    ]
    if missing:
        raise RuntimeError(f"Lifecycle table has no row for {missing}")
    for (status, event), transition in TRANSITIONS.items():
        if (status is None) != (event is LifecycleEvent.SUBMIT):
            raise RuntimeError(f"Only submit may leave the draft state, got {event.value}")
        if transition.sets_reason and transition.target is not ProfileStatus.REJECTED:
            raise RuntimeError("A rejection reason may only be set when rejecting")


_check_exhaustive()


def transition_for(current: Optional[ProfileStatus], event: LifecycleEvent) -> Transition:
    """
    Look up the transition for an event.

    Raises:
        InvalidTransitionError: If the event is not legal from ``current``
    """
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransitionError(current, event) from None


def allowed_sources(event: LifecycleEvent) -> Tuple[ProfileStatus, ...]:
    """Statuses from which ``event`` has an effect (no-op rows excluded)."""
    return tuple(
        status
        for status in ProfileStatus
        if (status, event) in TRANSITIONS and not TRANSITIONS[(status, event)].noop
    )


def is_noop(current: ProfileStatus, event: LifecycleEvent) -> bool:
    return transition_for(current, event).noop

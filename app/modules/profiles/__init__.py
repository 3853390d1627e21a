"""Profiles module"""

from .lifecycle import LifecycleEvent, ProfileStatus, InvalidTransitionError
from .models import Profile
from .service import ProfilesService
from .router import router

__all__ = [
    "LifecycleEvent",
    "ProfileStatus",
    "InvalidTransitionError",
    "Profile",
    "ProfilesService",
    "router",
]

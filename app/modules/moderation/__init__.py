"""Moderation module"""

from .models import ModerationAction, ModerationActionType, TargetType
from .service import ModerationService
from .router import router

__all__ = ["ModerationAction", "ModerationActionType", "TargetType", "ModerationService", "router"]

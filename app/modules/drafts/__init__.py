"""Drafts module"""

from .models import Draft, BIODATA_STEPS
from .service import DraftsService
from .router import router

__all__ = ["Draft", "BIODATA_STEPS", "DraftsService", "router"]

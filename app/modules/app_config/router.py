"""App Config Router - public runtime switches"""

from fastapi import APIRouter

from .service import AppConfigService
from .schemas import MonetizationConfigResponse

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/monetization", response_model=MonetizationConfigResponse)
async def get_monetization_config():
    """
    Current monetization mode. (Public)

    Clients fetch this once and cache it; serverTimestamp changes when the
    server restarts.
    """
    return AppConfigService.monetization_summary()

"""
App config DTOs
"""

from pydantic import BaseModel


class MonetizationConfigResponse(BaseModel):
    """Monetization switch as seen by clients"""

    monetization: str
    creditSystemEnabled: bool
    freeAccess: bool
    message: str
    serverTimestamp: int

import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import config
from app.core.db.engine import check_database_connection
from app.core.error_handler import global_exception_handler, invalid_transition_handler
from app.core.response_interceptor import (
    SuccessResponseInterceptor,
    CustomAPIRoute,
    skip_interceptor,
)
from app.modules.users import router as users_router
from app.modules.drafts import router as drafts_router
from app.modules.profiles import router as profiles_router
from app.modules.profiles.lifecycle import InvalidTransitionError
from app.modules.moderation import router as moderation_router
from app.modules.reports.router import router as reports_router, admin_router as admin_reports_router
from app.modules.transactions import router as transactions_router
from app.modules.app_config.router import router as app_config_router

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)
logger.info("Starting Biodata API (monetization=%s)", config.monetization)

app = FastAPI(
    title="Biodata API",
    description="Matrimonial biodata submission, moderation and discovery",
    version="1.0.0",
)

# Override the default route class to support skip_interceptor decorator
app.router.route_class = CustomAPIRoute

app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add Success Response Interceptor (must be added after CORS)
app.add_middleware(SuccessResponseInterceptor)

# Include routers with /api prefix
app.include_router(users_router, prefix="/api")
app.include_router(drafts_router, prefix="/api")
app.include_router(profiles_router, prefix="/api")
app.include_router(admin_reports_router, prefix="/api")
app.include_router(moderation_router, prefix="/api")
app.include_router(reports_router, prefix="/api")
app.include_router(transactions_router, prefix="/api")
app.include_router(app_config_router, prefix="/api")


@app.get("/health")
@skip_interceptor
async def health() -> dict:
    database = await check_database_connection()
    return {"status": "ok" if database else "degraded", "database": database}

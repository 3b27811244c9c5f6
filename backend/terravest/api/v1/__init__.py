"""
API routes - User-facing API
"""

from fastapi import APIRouter
from terravest.infrastructure.settings import get_settings
from terravest.api.v1.auth import router as auth_router
from terravest.api.v1.wallet import router as wallet_router
from terravest.api.v1.real_estate import router as real_estate_router
from terravest.api.v1.green_energy import router as green_energy_router
from terravest.api.v1.markets import router as markets_router
from terravest.api.v1.referrals import router as referrals_router
from terravest.api.v1.notifications import router as notifications_router

settings = get_settings()
router = APIRouter(prefix=settings.API_PREFIX)

# Register sub-routers
router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(wallet_router)
router.include_router(real_estate_router)
router.include_router(green_energy_router)
router.include_router(markets_router)
router.include_router(referrals_router)
router.include_router(notifications_router)

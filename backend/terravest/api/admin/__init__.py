"""
Admin API routes - INTERNAL ONLY
"""

from fastapi import APIRouter
from terravest.infrastructure.settings import get_settings
from terravest.api.admin.users import router as users_router
from terravest.api.admin.wallet import router as wallet_router
from terravest.api.admin.real_estate import router as real_estate_router
from terravest.api.admin.green_energy import router as green_energy_router
from terravest.api.admin.markets import router as markets_router
from terravest.api.admin.referrals import router as referrals_router
from terravest.api.admin.investments import build_investment_router
from terravest.schemas.green_energy import GreenEnergyInvestmentResponse
from terravest.schemas.markets import MarketInvestmentResponse
from terravest.schemas.real_estate import RealEstateInvestmentResponse
from terravest.services.investments import InvestmentProduct

settings = get_settings()
router = APIRouter(prefix=settings.ADMIN_PREFIX)

# Register admin routers
router.include_router(users_router, tags=["admin-users"])
router.include_router(wallet_router, tags=["admin-wallet"])
router.include_router(real_estate_router, tags=["admin-real-estate"])
router.include_router(green_energy_router, tags=["admin-green-energy"])
router.include_router(markets_router, tags=["admin-markets"])
router.include_router(referrals_router, tags=["admin-referrals"])
router.include_router(
    build_investment_router(InvestmentProduct.REAL_ESTATE, "/real-estate", RealEstateInvestmentResponse),
    tags=["admin-investments"],
)
router.include_router(
    build_investment_router(InvestmentProduct.GREEN_ENERGY, "/green-energy", GreenEnergyInvestmentResponse),
    tags=["admin-investments"],
)
router.include_router(
    build_investment_router(InvestmentProduct.MARKET, "/markets", MarketInvestmentResponse),
    tags=["admin-investments"],
)

"""
Central v1 API router – registers all endpoint sub-routers.
"""
from fastapi import APIRouter
import logging

from trade_exchange.api.v1.endpoints import (
    admin,
    auth,
    checkout,
    conversations,
    orders,
    public,
    trader,
    user_data,
)
from trade_exchange.core.config import settings

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix=settings.API_PREFIX)

logger.info("Registering v1 API routers")
api_router.include_router(auth.router)
api_router.include_router(public.router)
api_router.include_router(trader.router)
api_router.include_router(orders.router)
api_router.include_router(checkout.router)
api_router.include_router(user_data.router)
api_router.include_router(conversations.router)
api_router.include_router(admin.router)

"""
Checkout endpoint:
  POST /checkout      – Charge for a provider's service and record the interaction
"""
from fastapi import APIRouter, Depends, status
import logging

from trade_exchange.core.dependencies import gateway_dependency, get_current_user, store_dependency
from trade_exchange.models.user import User
from trade_exchange.schemas.checkout import CheckoutRequest, InteractionResponse
from trade_exchange.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Checkout"])


@router.post(
    "/checkout",
    response_model=InteractionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check out",
)
def checkout(
    data: CheckoutRequest,
    store=Depends(store_dependency),
    gateway=Depends(gateway_dependency),
    current_user: User = Depends(get_current_user),
):
    """
    **amount** defaults to the listing price. If the payment fails nothing is
    recorded and the call can be retried.
    """
    return CheckoutService(store, gateway).checkout(current_user, data)

"""
Checkout service.

Business rules:
  - The provider must exist; a listing, when given, must be a public
    listing of that provider.
  - The amount defaults to the listing price.
  - The charge goes through the payment gateway first; nothing is written
    when it fails.
  - Every successful checkout appends a new Interaction.
"""
from typing import Optional
import logging

from trade_exchange.core.exceptions import InvalidInputError, NotFoundError
from trade_exchange.db.store import RowStore
from trade_exchange.models.interaction import Interaction
from trade_exchange.models.user import User
from trade_exchange.repositories.interaction_repository import InteractionRepository
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.schemas.checkout import CheckoutRequest
from trade_exchange.services.payment_gateway import PaymentGateway, build_payment_gateway

logger = logging.getLogger(__name__)


class CheckoutService:
    def __init__(self, store: RowStore, gateway: Optional[PaymentGateway] = None) -> None:
        logger.trace("Initializing CheckoutService")
        self._gateway = gateway or build_payment_gateway()
        self._interactions = InteractionRepository(store)
        self._providers = ProviderRepository(store)
        self._listings = ListingRepository(store)

    def checkout(self, user: User, data: CheckoutRequest) -> Interaction:
        """Charge the customer and append an Interaction; return it."""
        logger.info("Checkout requested user_id=%s provider_id=%s", user.id, data.provider_id)
        provider = self._providers.get_by_id(data.provider_id)
        if provider is None:
            raise NotFoundError("Provider not found")

        listing = None
        if data.listing_id:
            listing = self._listings.get_by_id(data.listing_id)
            if listing is None or not listing.is_listed:
                raise NotFoundError("Listing not found")
            if listing.provider_id != provider.id:
                raise InvalidInputError("Listing does not belong to this provider")

        if data.amount is not None:
            amount = data.amount
        elif listing is not None:
            amount = listing.price
        else:
            raise InvalidInputError("Amount is required when no listing is given")

        description = listing.title if listing else f"Service from {provider.name}"
        payment = self._gateway.charge(
            amount,
            description,
            {"user_id": user.id, "provider_id": provider.id, "listing_id": data.listing_id or ""},
        )
        interaction = self._interactions.append(
            user_id=user.id,
            provider_id=provider.id,
            listing_id=listing.id if listing else None,
            note=data.note.strip(),
            amount=amount,
            payment_ref=payment.reference,
        )
        logger.info("Checkout complete interaction id=%s ref=%s", interaction.id, payment.reference)
        return interaction

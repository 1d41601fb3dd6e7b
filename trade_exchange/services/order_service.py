"""
Order ledger service.

Business rules:
  - New orders start in ``discuss`` with ack=false and an empty update log.
  - Trader actions (case-insensitive):
        approve  -> approved  (sets ack)   only from discuss
        deny     -> denied                 only from discuss
        refund   -> refunded               only from discuss
        exchange -> exchange               only from discuss
        complete -> complete               from anything but complete
  - Unknown actions are rejected with 400 and leave the order untouched;
    a known action that is not allowed from the current status is a 409.
  - Only the owning trader or an admin may act on an order.
  - Completing an order increments the provider's completed_jobs. A trader
    may complete with notes and a photo link, appended to the details.
  - Customers may set the requested date and time (a consultation) on
    their own orders at any status.
  - Customers may review their own completed orders once; the provider's
    rating becomes the mean of its reviews.
"""
from typing import Optional
import logging

from trade_exchange.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidActionError,
    InvalidInputError,
    NotFoundError,
)
from trade_exchange.db.store import RowStore
from trade_exchange.models.conversation import Conversation, MessageRole
from trade_exchange.models.order import Order, OrderStatus
from trade_exchange.models.review import Review
from trade_exchange.models.user import User
from trade_exchange.repositories.conversation_repository import ConversationRepository, MessageRepository
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.order_repository import OrderRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.repositories.review_repository import ReviewRepository
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.schemas.order import (
    CompletionDetails,
    ConsultationSchedule,
    OrderCreate,
    ReviewCreate,
)
from trade_exchange.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

ACTION_TARGETS = {
    "approve": OrderStatus.APPROVED,
    "deny": OrderStatus.DENIED,
    "refund": OrderStatus.REFUNDED,
    "exchange": OrderStatus.EXCHANGE,
    "complete": OrderStatus.COMPLETE,
}

NONE_RESULT = {"found": False, "status": "none", "ack": False, "order": None}


def is_allowed(action: str, current: OrderStatus) -> bool:
    if action == "complete":
        return current != OrderStatus.COMPLETE
    return current == OrderStatus.DISCUSS


def completion_appendix(notes: Optional[str], photo_url: Optional[str]) -> str:
    """Return the lines a completion adds to an order's details, or ''."""
    lines = []
    if notes and notes.strip():
        lines.append(f"Completion notes: {notes.strip()}")
    if photo_url and photo_url.strip():
        lines.append(f"Photo: {photo_url.strip()}")
    return "\n".join(lines)


class OrderService:
    """Business logic for orders and reviews."""

    def __init__(self, store: RowStore) -> None:
        logger.trace("Initializing OrderService")
        self._store = store
        self._orders = OrderRepository(store)
        self._providers = ProviderRepository(store)
        self._listings = ListingRepository(store)
        self._users = UserRepository(store)
        self._reviews = ReviewRepository(store)
        self._conversations = ConversationRepository(store)
        self._messages = MessageRepository(store)
        self._conversation_service = ConversationService(store)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_order(self, customer: User, data: OrderCreate) -> Order:
        """Open an order in the discuss state, linked to a conversation."""
        logger.info(
            "Order requested customer_id=%s provider_id=%s", customer.id, data.provider_id
        )
        provider = self._providers.get_by_id(data.provider_id)
        if provider is None:
            logger.warning("Order for unknown provider id=%s", data.provider_id)
            raise NotFoundError("Provider not found")

        listing = None
        if data.listing_id:
            listing = self._listings.get_by_id(data.listing_id)
            if listing is None:
                raise NotFoundError("Listing not found")
            if listing.provider_id != provider.id:
                logger.warning(
                    "Listing id=%s does not belong to provider id=%s", listing.id, provider.id
                )
                raise InvalidInputError("Listing does not belong to this provider")

        service = (data.service or "").strip() or (listing.title if listing else "Service request")
        amount = data.amount if data.amount is not None else (listing.price if listing else 0.0)

        with self._store.transaction():
            if data.conversation_id:
                conversation = self._require_member(data.conversation_id, customer.id)
            else:
                traders = [u.id for u in self._users.list_by_provider(provider.id)]
                conversation = self._conversation_service.ensure_conversation(
                    [customer.id, *traders], hint=service, kind="ORDER", title=service
                )
            order = self._orders.create(
                customer_id=customer.id,
                customer_name=customer.name or "Customer",
                provider_id=provider.id,
                listing_id=listing.id if listing else None,
                service=service,
                amount=amount,
                conversation_id=conversation.id,
                details=data.details,
                req_date=data.date,
                req_time=data.time,
            )
        logger.info("Order id=%s created in discuss", order.id)
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        order = self._orders.get_by_id(order_id)
        if order is None:
            logger.warning("Order id=%s not found", order_id)
            raise NotFoundError("Order not found")
        return order

    def find_order(
        self, customer_id: str, provider_id: str, listing_id: Optional[str] = None
    ) -> dict:
        """Return the customer's latest order with a provider, or the none result."""
        order = self._orders.find_latest(customer_id, provider_id, listing_id)
        if order is None:
            logger.info("No order for customer_id=%s provider_id=%s", customer_id, provider_id)
            return dict(NONE_RESULT)
        return {"found": True, "status": order.status.value, "ack": order.ack, "order": order}

    def list_for_trader(self, user: User) -> list[Order]:
        """Admins see every order; traders see their provider's orders."""
        if user.is_admin and not user.provider_id:
            return self._orders.list_all()
        if not user.provider_id:
            return []
        return self._orders.list_by_provider(user.provider_id)

    def list_for_customer(self, user: User) -> list[Order]:
        return self._orders.list_by_customer(user.id)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def apply_action(
        self, user: User, order_id: str, action: str, expected_version: Optional[int] = None
    ) -> Order:
        """Transition an order; see the module docstring for the rules."""
        order = self._managed_order(user, order_id)
        normalized = (action or "").strip().lower()
        target = ACTION_TARGETS.get(normalized)
        if target is None:
            logger.warning("Unknown order action %r on order id=%s", action, order.id)
            raise InvalidActionError(f"Unknown action '{action}'")
        return self._transition(order, normalized, target, expected_version)

    def complete_with_details(self, user: User, order_id: str, data: CompletionDetails) -> Order:
        """Complete an order, appending the trader's notes and photo link to its details."""
        order = self._managed_order(user, order_id)
        appendix = completion_appendix(data.notes, data.photo_url)
        if appendix:
            order.details = f"{order.details}\n{appendix}".strip()
        return self._transition(order, "complete", OrderStatus.COMPLETE, data.version)

    def schedule_consultation(
        self, user: User, order_id: str, data: ConsultationSchedule
    ) -> Order:
        """Set the requested date and time, optionally relinking the conversation."""
        order = self.get_order(order_id)
        if order.customer_id != user.id and not user.is_admin:
            logger.warning("User id=%s may not schedule order id=%s", user.id, order.id)
            raise ForbiddenError("Only the customer can schedule this order")
        self._check_version(order, data.version)
        if data.conversation_id:
            self._require_member(data.conversation_id, order.customer_id)
            order.conversation_id = data.conversation_id
        order.req_date = data.date.strip()
        order.req_time = data.time.strip()
        order = self._orders.save(order)
        logger.info(
            "Consultation scheduled for order id=%s on %s %s", order.id, order.req_date, order.req_time
        )
        return order

    def _require_member(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = self._conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not self._conversations.is_member(conversation.id, user_id):
            raise ForbiddenError("Not a member of this conversation")
        return conversation

    def _managed_order(self, user: User, order_id: str) -> Order:
        order = self.get_order(order_id)
        if not user.is_admin and user.provider_id != order.provider_id:
            logger.warning("User id=%s may not act on order id=%s", user.id, order.id)
            raise ForbiddenError("You do not manage this order")
        return order

    @staticmethod
    def _check_version(order: Order, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != order.version:
            logger.warning(
                "Stale version %s for order id=%s (current %s)",
                expected_version,
                order.id,
                order.version,
            )
            raise ConflictError("Order was modified by another request")

    def _transition(
        self,
        order: Order,
        action: str,
        target: OrderStatus,
        expected_version: Optional[int] = None,
    ) -> Order:
        if not is_allowed(action, order.status):
            logger.warning(
                "Action %s not allowed on order id=%s in status %s",
                action,
                order.id,
                order.status.value,
            )
            raise ConflictError(f"Cannot {action} an order that is {order.status.value}")
        self._check_version(order, expected_version)

        with self._store.transaction():
            order.status = target
            if action == "approve":
                order.ack = True
            order = self._orders.save(order)
            if target == OrderStatus.COMPLETE:
                self._providers.increment_completed_jobs(order.provider_id)
            if order.conversation_id:
                note = f"Order '{order.service}' is now {target.value}."
                self._messages.append(order.conversation_id, MessageRole.ASSISTANT, note)
                self._conversations.set_last_message(order.conversation_id, note)
        logger.info("Order id=%s moved to %s", order.id, target.value)
        return order

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def add_review(self, user: User, order_id: str, data: ReviewCreate) -> Review:
        order = self.get_order(order_id)
        if order.customer_id != user.id:
            raise ForbiddenError("Only the customer can review this order")
        if order.status != OrderStatus.COMPLETE:
            raise ConflictError("Only completed orders can be reviewed")
        if self._reviews.get_by_order(order.id):
            raise ConflictError("Order already reviewed")

        rating = max(1, min(5, int(data.rating)))
        with self._store.transaction():
            review = self._reviews.create(
                provider_id=order.provider_id,
                order_id=order.id,
                author=user.name or "Customer",
                rating=rating,
                text=data.text.strip(),
            )
            ratings = [r.rating for r in self._reviews.list_by_provider(order.provider_id)]
            mean = round(sum(ratings) / len(ratings), 2) if ratings else float(rating)
            self._providers.update(order.provider_id, rating=mean)
        logger.info("Review id=%s added; provider id=%s rating=%s", review.id, order.provider_id, mean)
        return review

    def list_reviews(self, provider_id: str) -> list[Review]:
        if self._providers.get_by_id(provider_id) is None:
            raise NotFoundError("Provider not found")
        return self._reviews.list_by_provider(provider_id)

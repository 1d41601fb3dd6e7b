import pytest

from trade_exchange.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidActionError,
    InvalidInputError,
    NotFoundError,
)
from trade_exchange.models.order import OrderStatus
from trade_exchange.repositories.conversation_repository import ConversationRepository
from trade_exchange.repositories.listing_repository import ListingRepository
from trade_exchange.repositories.provider_repository import ProviderRepository
from trade_exchange.schemas.order import (
    CompletionDetails,
    ConsultationSchedule,
    OrderCreate,
    ReviewCreate,
)
from trade_exchange.services.conversation_service import ConversationService
from trade_exchange.services.order_service import OrderService, completion_appendix


@pytest.fixture
def service(store):
    return OrderService(store)


@pytest.fixture
def order(service, people):
    return service.create_order(
        people["customer"],
        OrderCreate(provider_id=people["provider"].id, service="Lawn care", details="Front yard"),
    )


class TestCreateOrder:
    def test_new_order_is_in_discuss(self, order, people):
        assert order.status == OrderStatus.DISCUSS
        assert order.ack is False
        assert order.updates == []
        assert order.customer_name == "Cam Customer"
        assert order.provider_id == people["provider"].id

    def test_links_conversation_with_provider_traders(self, store, order, people):
        members = ConversationRepository(store).member_ids(order.conversation_id)

        assert sorted(members) == sorted([people["customer"].id, people["trader"].id])

    def test_unknown_provider(self, service, people):
        with pytest.raises(NotFoundError):
            service.create_order(people["customer"], OrderCreate(provider_id="nope"))

    def test_listing_must_belong_to_provider(self, store, service, people):
        foreign = ListingRepository(store).create(people["other_provider"].id, "Portraits", price=220)

        with pytest.raises(InvalidInputError):
            service.create_order(
                people["customer"],
                OrderCreate(provider_id=people["provider"].id, listing_id=foreign.id),
            )

    def test_listing_supplies_service_and_amount(self, store, service, people):
        listing = ListingRepository(store).create(people["provider"].id, "Lawn Care", price=85)

        created = service.create_order(
            people["customer"],
            OrderCreate(provider_id=people["provider"].id, listing_id=listing.id),
        )

        assert created.service == "Lawn Care"
        assert created.amount == 85


class TestOrderActions:
    @pytest.mark.parametrize(
        "action, expected",
        [
            ("approve", OrderStatus.APPROVED),
            ("deny", OrderStatus.DENIED),
            ("refund", OrderStatus.REFUNDED),
            ("exchange", OrderStatus.EXCHANGE),
            ("complete", OrderStatus.COMPLETE),
        ],
    )
    def test_reachable_from_discuss(self, service, order, people, action, expected):
        updated = service.apply_action(people["trader"], order.id, action)

        assert updated.status == expected
        assert updated.version == order.version + 1

    def test_approve_sets_ack_and_is_case_insensitive(self, service, order, people):
        updated = service.apply_action(people["trader"], order.id, "  APPROVE ")

        assert updated.status == OrderStatus.APPROVED
        assert updated.ack is True

    @pytest.mark.parametrize("action", ["ship", "", "approved", "cancel"])
    def test_unknown_action_leaves_order_untouched(self, service, order, people, action):
        with pytest.raises(InvalidActionError):
            service.apply_action(people["trader"], order.id, action)

        assert service.get_order(order.id).status == OrderStatus.DISCUSS

    def test_decision_only_from_discuss(self, service, order, people):
        service.apply_action(people["trader"], order.id, "approve")

        with pytest.raises(ConflictError):
            service.apply_action(people["trader"], order.id, "deny")

    def test_complete_increments_jobs_once(self, store, service, order, people):
        service.apply_action(people["trader"], order.id, "approve")
        service.apply_action(people["trader"], order.id, "complete")

        with pytest.raises(ConflictError):
            service.apply_action(people["trader"], order.id, "complete")
        assert ProviderRepository(store).get_by_id(people["provider"].id).completed_jobs == 4

    def test_other_trader_is_forbidden(self, service, order, people):
        with pytest.raises(ForbiddenError):
            service.apply_action(people["other_trader"], order.id, "approve")

    def test_admin_may_act(self, service, order, people):
        assert service.apply_action(people["admin"], order.id, "deny").status == OrderStatus.DENIED

    def test_stale_version_conflicts(self, service, order, people):
        with pytest.raises(ConflictError):
            service.apply_action(people["trader"], order.id, "approve", expected_version=order.version + 1)

        assert service.get_order(order.id).status == OrderStatus.DISCUSS


class TestCompleteWithDetails:
    def test_appends_notes_and_photo(self, store, service, order, people):
        updated = service.complete_with_details(
            people["trader"],
            order.id,
            CompletionDetails(notes=" Mowed and edged ", photo_url="https://img.example/lawn.jpg"),
        )

        assert updated.status == OrderStatus.COMPLETE
        assert updated.details == (
            "Front yard\nCompletion notes: Mowed and edged\nPhoto: https://img.example/lawn.jpg"
        )
        assert ProviderRepository(store).get_by_id(people["provider"].id).completed_jobs == 4

    def test_blank_details_complete_without_appendix(self, service, order, people):
        updated = service.complete_with_details(people["trader"], order.id, CompletionDetails(notes="  "))

        assert updated.status == OrderStatus.COMPLETE
        assert updated.details == "Front yard"

    def test_follows_complete_transition_rules(self, store, service, order, people):
        service.apply_action(people["trader"], order.id, "complete")

        with pytest.raises(ConflictError):
            service.complete_with_details(people["trader"], order.id, CompletionDetails(notes="again"))
        assert service.get_order(order.id).details == "Front yard"
        assert ProviderRepository(store).get_by_id(people["provider"].id).completed_jobs == 4

    def test_stale_version_conflicts(self, service, order, people):
        with pytest.raises(ConflictError):
            service.complete_with_details(
                people["trader"], order.id, CompletionDetails(notes="x", version=order.version + 1)
            )

        assert service.get_order(order.id).status == OrderStatus.DISCUSS

    def test_other_trader_is_forbidden(self, service, order, people):
        with pytest.raises(ForbiddenError):
            service.complete_with_details(people["other_trader"], order.id, CompletionDetails())

    def test_appendix_lines(self):
        assert completion_appendix(None, None) == ""
        assert completion_appendix("done", "") == "Completion notes: done"
        assert completion_appendix("", "p.jpg") == "Photo: p.jpg"


class TestScheduleConsultation:
    def test_customer_sets_requested_slot(self, service, order, people):
        updated = service.schedule_consultation(
            people["customer"], order.id, ConsultationSchedule(date="2026-11-02", time="10:00")
        )

        assert updated.req_date == "2026-11-02"
        assert updated.req_time == "10:00"
        assert updated.conversation_id == order.conversation_id
        assert updated.version == order.version + 1

    def test_relinks_conversation_the_customer_belongs_to(self, store, service, order, people):
        consult = ConversationService(store).ensure_conversation(
            [people["customer"].id, people["trader"].id], hint="consultation"
        )

        updated = service.schedule_consultation(
            people["customer"], order.id, ConsultationSchedule(conversation_id=consult.id)
        )

        assert updated.conversation_id == consult.id

    def test_foreign_conversation_is_forbidden(self, store, service, order, people):
        foreign = ConversationService(store).ensure_conversation([people["other_trader"].id])

        with pytest.raises(ForbiddenError):
            service.schedule_consultation(
                people["customer"], order.id, ConsultationSchedule(conversation_id=foreign.id)
            )

    def test_only_the_customer_may_schedule(self, service, order, people):
        with pytest.raises(ForbiddenError):
            service.schedule_consultation(people["trader"], order.id, ConsultationSchedule(date="x"))

    def test_unknown_order(self, service, people):
        with pytest.raises(NotFoundError):
            service.schedule_consultation(people["customer"], "missing", ConsultationSchedule())


class TestOrderQueries:
    def test_find_order_none_result(self, service, people):
        result = service.find_order(people["customer"].id, people["other_provider"].id)

        assert result == {"found": False, "status": "none", "ack": False, "order": None}

    def test_find_order_reports_ack(self, service, order, people):
        service.apply_action(people["trader"], order.id, "approve")

        result = service.find_order(people["customer"].id, people["provider"].id)

        assert result["found"] is True
        assert result["status"] == "approved"
        assert result["ack"] is True

    def test_trader_sees_only_own_orders(self, service, order, people):
        assert [o.id for o in service.list_for_trader(people["trader"])] == [order.id]
        assert service.list_for_trader(people["other_trader"]) == []
        assert [o.id for o in service.list_for_trader(people["admin"])] == [order.id]


class TestReviews:
    def test_requires_completed_order(self, service, order, people):
        with pytest.raises(ConflictError):
            service.add_review(people["customer"], order.id, ReviewCreate(rating=5))

    def test_only_customer_may_review(self, service, order, people):
        service.apply_action(people["trader"], order.id, "complete")

        with pytest.raises(ForbiddenError):
            service.add_review(people["trader"], order.id, ReviewCreate(rating=5))

    def test_rating_clamped_and_provider_rating_recomputed(self, store, service, people):
        ratings = []
        for given in (9, 2):
            created = service.create_order(
                people["customer"],
                OrderCreate(provider_id=people["provider"].id, service=f"Job {given}"),
            )
            service.apply_action(people["trader"], created.id, "complete")
            ratings.append(service.add_review(people["customer"], created.id, ReviewCreate(rating=given)).rating)

        assert ratings == [5, 2]
        assert ProviderRepository(store).get_by_id(people["provider"].id).rating == 3.5

    def test_order_reviewed_once(self, service, order, people):
        service.apply_action(people["trader"], order.id, "complete")
        service.add_review(people["customer"], order.id, ReviewCreate(rating=4))

        with pytest.raises(ConflictError):
            service.add_review(people["customer"], order.id, ReviewCreate(rating=4))

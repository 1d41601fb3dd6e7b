import sqlite3

import pytest
from fastapi.testclient import TestClient

from trade_exchange.core.config import settings
from trade_exchange.core.security import token_service
from trade_exchange.db.sqlite_store import SQLiteRowStore
from trade_exchange.db.store import Kind
from trade_exchange.repositories.user_repository import UserRepository
from trade_exchange.services.payment_gateway import DemoPaymentGateway

API = "/api/v1"


def create_listing(client, headers, title="Lawn Care", price=85, tags="home,outdoor", **extra):
    response = client.post(
        f"{API}/trader/listings",
        json={"title": title, "price": price, "tags": tags, **extra},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_reports_storage_backend(self, client, store):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "storage": store.backend}


class TestRunner:
    def test_serves_on_configured_host_and_port(self, monkeypatch):
        import trade_exchange.main as main

        calls = {}
        monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))
        monkeypatch.setattr(main.settings, "PORT", 5000)
        monkeypatch.setattr(main.settings, "HOST", "127.0.0.1")

        main.run()

        assert calls == {
            "app": "trade_exchange.main:app",
            "host": "127.0.0.1",
            "port": 5000,
            "reload": main.settings.DEBUG,
        }


class TestAuthFlow:
    def test_signup_then_signin(self, client, signup):
        signup("a@b.com", "pw")

        response = client.post(f"{API}/signin", json={"email": "A@B.com", "password": "pw"})

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "USER"
        assert body["user"]["email"] == "a@b.com"
        assert body["token"]
        assert settings.TOKEN_COOKIE_NAME in response.cookies

    def test_duplicate_email_conflicts(self, client, signup):
        signup("a@b.com")

        response = client.post(f"{API}/signup", json={"email": "A@b.com", "password": "pw"})

        assert response.status_code == 409
        assert response.json() == {"error": "Email already registered"}

    def test_duplicate_past_the_email_check_still_conflicts(self, client, store, monkeypatch):
        if store.backend != "sqlite":
            pytest.skip("only the SQLite backend enforces unique email")
        monkeypatch.setattr(UserRepository, "get_by_email", lambda self, email: None)
        payload = {"email": "a@b.com", "password": "pw", "role": "TRADER"}

        first = client.post(f"{API}/signup", json=payload)
        second = client.post(f"{API}/signup", json=payload)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json() == {"error": "Email already registered"}
        assert len(store.list(Kind.PROVIDERS)) == 1

    def test_wrong_password_is_unauthorized(self, client, signup):
        signup("a@b.com", "pw")

        response = client.post(f"{API}/signin", json={"email": "a@b.com", "password": "nope"})

        assert response.status_code == 401
        assert "error" in response.json()

    def test_me_requires_token(self, client):
        assert client.get(f"{API}/me").status_code == 401
        assert client.get(f"{API}/me", headers={"Authorization": "Bearer a.b"}).status_code == 401

    def test_me_via_header_and_cookie(self, client, signup):
        headers, body = signup("a@b.com", name="Ann")

        assert client.get(f"{API}/me", headers=headers).json()["name"] == "Ann"
        cookie = {"Cookie": f"{settings.TOKEN_COOKIE_NAME}={body['token']}"}
        assert client.get(f"{API}/me", headers=cookie).json()["id"] == body["user"]["id"]

    def test_query_token_ignored_by_default(self, client, signup):
        _, body = signup("a@b.com")

        response = client.get(f"{API}/me", params={"token": body["token"]})

        assert response.status_code == 401

    def test_signup_cannot_claim_admin(self, client):
        response = client.post(
            f"{API}/signup", json={"email": "x@y.com", "password": "pw", "role": "ADMIN"}
        )

        assert response.status_code == 400

    def test_become_provider_returns_trader_token(self, client, signup):
        headers, _ = signup("a@b.com")

        response = client.post(f"{API}/become-provider", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "TRADER"
        assert body["user"]["providerId"]
        new_headers = {"Authorization": f"Bearer {body['token']}"}
        assert client.get(f"{API}/trader/listings", headers=new_headers).status_code == 200

    def test_validation_errors_use_error_shape(self, client):
        response = client.post(f"{API}/signup", json={"password": "pw"})

        assert response.status_code == 400
        assert "error" in response.json()


class TestCatalogue:
    def test_trader_listing_appears_and_ranks_in_search(self, client, signup):
        trader, _ = signup("t@x.com", role="TRADER", name="Lawn Pro")
        other, _ = signup("o@x.com", role="TRADER", name="Photo Pro")
        listing = create_listing(client, trader)
        create_listing(client, other, title="Portrait Session", price=220, tags="photo")

        listings = client.get(f"{API}/listings").json()
        search = client.get(f"{API}/search", params={"q": "lawn"}).json()

        assert listing["id"] in [l["id"] for l in listings]
        assert listing["tags"] == ["home", "outdoor"]
        assert search["query"] == "lawn"
        assert search["providers"][0]["id"] == listing["providerId"]
        assert search["providers"][0]["score"] > search["providers"][1]["score"]
        assert [l["id"] for l in search["listings"]] == [listing["id"]]

    def test_drafts_are_private(self, client, signup):
        trader, _ = signup("t@x.com", role="TRADER")
        draft = create_listing(client, trader, status="DRAFT")

        assert draft["id"] not in [l["id"] for l in client.get(f"{API}/listings").json()]
        assert draft["id"] in [l["id"] for l in client.get(f"{API}/trader/listings", headers=trader).json()]

    def test_customers_cannot_manage_listings(self, client, signup):
        customer, _ = signup("c@x.com")

        response = client.post(f"{API}/trader/listings", json={"title": "x"}, headers=customer)

        assert response.status_code == 403

    def test_stale_listing_update_conflicts(self, client, signup):
        trader, _ = signup("t@x.com", role="TRADER")
        listing = create_listing(client, trader)
        url = f"{API}/trader/listings/{listing['id']}"

        first = client.put(url, json={"price": 90, "version": listing["version"]}, headers=trader)
        second = client.put(url, json={"price": 95, "version": listing["version"]}, headers=trader)

        assert first.status_code == 200
        assert first.json()["version"] == listing["version"] + 1
        assert second.status_code == 409

    def test_provider_detail_and_categories(self, client, signup):
        trader, body = signup("t@x.com", role="TRADER")
        create_listing(client, trader, tags="home,outdoor,home")

        detail = client.get(f"{API}/providers/{body['user']['providerId']}").json()

        assert detail["provider"]["id"] == body["user"]["providerId"]
        assert len(detail["listings"]) == 1
        assert client.get(f"{API}/categories").json() == ["home", "outdoor"]
        assert client.get(f"{API}/providers/missing").status_code == 404

    def test_profile_upsert_keeps_omitted_fields(self, client, signup):
        trader, _ = signup("t@x.com", role="TRADER")

        client.put(f"{API}/trader/profile", json={"bio": "Lawns", "location": "Austin"}, headers=trader)
        response = client.post(f"{API}/trader/profile", json={"hourlyRate": 75}, headers=trader)

        profile = response.json()
        assert profile["bio"] == "Lawns"
        assert profile["location"] == "Austin"
        assert profile["hourlyRate"] == 75


class TestOrderFlow:
    def test_request_approve_and_status(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com", name="Cam")
        provider_id = trader_body["user"]["providerId"]
        listing = create_listing(client, trader)

        before = client.get(f"{API}/orders/status", params={"providerId": provider_id}, headers=customer)
        created = client.post(
            f"{API}/orders/request",
            json={"providerId": provider_id, "listingId": listing["id"], "details": "Front yard"},
            headers=customer,
        )
        incoming = client.get(f"{API}/trader/orders", headers=trader).json()
        action = client.post(
            f"{API}/trader/orders/{created.json()['id']}/action",
            json={"action": "approve"},
            headers=trader,
        )
        after = client.get(f"{API}/orders/status", params={"providerId": provider_id}, headers=customer)

        assert before.json() == {"found": False, "status": "none", "ack": False, "order": None}
        assert created.status_code == 201
        assert created.json()["request"]["details"] == "Front yard"
        assert [o["status"] for o in incoming] == ["discuss"]
        assert action.json()["status"] == "approved"
        assert after.json()["ack"] is True
        assert after.json()["status"] == "approved"

    def test_unknown_action_is_bad_request(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        order = client.post(
            f"{API}/orders/request",
            json={"providerId": trader_body["user"]["providerId"]},
            headers=customer,
        ).json()

        response = client.post(
            f"{API}/trader/orders/{order['id']}/action", json={"action": "ship"}, headers=trader
        )

        assert response.status_code == 400
        mine = client.get(f"{API}/orders/mine", headers=customer).json()
        assert mine[0]["status"] == "discuss"

    def test_chat_follow_up_lands_on_order(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        order = client.post(
            f"{API}/orders/request",
            json={"providerId": trader_body["user"]["providerId"], "service": "Lawn"},
            headers=customer,
        ).json()
        conversation_id = order["request"]["conversationId"]

        posted = client.post(
            f"{API}/conversations/{conversation_id}/messages",
            json={"content": "Friday works?"},
            headers=customer,
        )
        stranger, _ = signup("s@x.com")
        hidden = client.get(f"{API}/conversations/{conversation_id}/messages", headers=stranger)
        mine = client.get(f"{API}/orders/mine", headers=customer).json()

        assert posted.status_code == 201
        assert posted.json()["reply"]["content"] == "You said: Friday works?"
        assert hidden.status_code == 403
        assert mine[0]["request"]["updates"][0]["from"] == "customer"
        assert mine[0]["request"]["lastMessage"] == "Friday works?"

    def test_complete_with_details_and_schedule(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        order = client.post(
            f"{API}/orders/request",
            json={"providerId": trader_body["user"]["providerId"], "details": "Back yard"},
            headers=customer,
        ).json()

        scheduled = client.post(
            f"{API}/orders/{order['id']}/schedule-consultation",
            json={"date": "2026-11-02", "time": "09:30"},
            headers=customer,
        )
        completed = client.post(
            f"{API}/trader/orders/{order['id']}/complete-with-details",
            json={"notes": "All done", "photoUrl": "https://img.example/yard.jpg"},
            headers=trader,
        )
        again = client.post(
            f"{API}/trader/orders/{order['id']}/complete-with-details",
            json={"notes": "twice"},
            headers=trader,
        )
        summary = client.get(f"{API}/trader/summary", headers=trader).json()

        assert scheduled.status_code == 200
        assert scheduled.json()["request"]["date"] == "2026-11-02"
        assert scheduled.json()["request"]["time"] == "09:30"
        assert completed.status_code == 200
        assert completed.json()["status"] == "complete"
        assert completed.json()["request"]["details"] == (
            "Back yard\nCompletion notes: All done\nPhoto: https://img.example/yard.jpg"
        )
        assert again.status_code == 409
        assert summary["jobs"] == 1

    def test_only_customer_schedules(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        order = client.post(
            f"{API}/orders/request",
            json={"providerId": trader_body["user"]["providerId"]},
            headers=customer,
        ).json()

        response = client.post(
            f"{API}/orders/{order['id']}/schedule-consultation",
            json={"date": "2026-11-02"},
            headers=trader,
        )

        assert response.status_code == 403


class TestCheckout:
    def test_each_checkout_appends_history(self, client, signup):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        listing = create_listing(client, trader)
        payload = {"providerId": trader_body["user"]["providerId"], "listingId": listing["id"]}

        first = client.post(f"{API}/checkout", json=payload, headers=customer)
        second = client.post(f"{API}/checkout", json=payload, headers=customer)
        history = client.get(f"{API}/history", headers=customer).json()
        summary = client.get(f"{API}/trader/summary", headers=trader).json()

        assert first.status_code == second.status_code == 201
        assert first.json()["amount"] == 85
        assert len(history) == 2
        assert summary == {"earnings": 170.0, "jobs": 0, "rating": 5.0, "clients": 1}


class TestFavorites:
    def test_add_list_remove(self, client, signup):
        _, trader_body = signup("t@x.com", role="TRADER", name="Ava")
        customer, _ = signup("c@x.com")
        provider_id = trader_body["user"]["providerId"]

        client.post(f"{API}/favorites", json={"providerId": provider_id}, headers=customer)
        client.post(f"{API}/favorites", json={"providerId": provider_id}, headers=customer)
        favorites = client.get(f"{API}/favorites", headers=customer).json()
        removed = client.delete(f"{API}/favorites/{provider_id}", headers=customer)

        assert [f["providerName"] for f in favorites] == ["Ava"]
        assert removed.status_code == 204
        assert client.get(f"{API}/favorites", headers=customer).json() == []


class TestAdmin:
    def test_non_admin_forbidden(self, client, signup):
        customer, _ = signup("c@x.com")

        assert client.get(f"{API}/admin/users", headers=customer).status_code == 403

    def test_provider_deletion_cascades(self, client, signup, admin_headers):
        trader, trader_body = signup("t@x.com", role="TRADER")
        customer, _ = signup("c@x.com")
        provider_id = trader_body["user"]["providerId"]
        create_listing(client, trader)
        create_listing(client, trader, title="Hedge trimming")
        client.post(f"{API}/orders/request", json={"providerId": provider_id}, headers=customer)

        response = client.delete(f"{API}/admin/providers/{provider_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["removed"]["listings"] == 2
        assert response.json()["removed"]["orders"] == 1
        assert client.get(f"{API}/listings").json() == []
        assert client.get(f"{API}/providers/{provider_id}").status_code == 404
        assert client.get(f"{API}/me", headers=trader).json()["providerId"] is None

    def test_role_change_links_provider(self, client, signup, admin_headers):
        _, body = signup("c@x.com")

        response = client.patch(
            f"{API}/admin/users/{body['user']['id']}/role",
            json={"role": "trader"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["role"] == "TRADER"
        assert response.json()["providerId"]

    def test_deleted_user_token_stops_working(self, client, signup, admin_headers):
        headers, body = signup("c@x.com")

        deleted = client.delete(f"{API}/admin/users/{body['user']['id']}", headers=admin_headers)

        assert deleted.status_code == 204
        assert client.get(f"{API}/me", headers=headers).status_code == 401


class TestDegradedAuth:
    @pytest.fixture
    def degraded(self, tmp_path):
        from trade_exchange.main import create_app

        db_path = tmp_path / "degraded.db"
        store = SQLiteRowStore(str(db_path), strict=False)
        store.initialize()
        app = create_app(store=store, payment_gateway=DemoPaymentGateway())
        with TestClient(app) as test_client:
            yield test_client, db_path

    def test_missing_user_is_rejected_while_storage_answers(self, degraded):
        client, _ = degraded
        token = token_service.issue("deadbeef0000", "ghost@x.com", "ADMIN")
        headers = {"Authorization": f"Bearer {token}"}

        assert client.get(f"{API}/me", headers=headers).status_code == 401
        assert client.get(f"{API}/admin/users", headers=headers).status_code == 401

    def test_claims_used_when_user_lookup_fails(self, degraded):
        client, db_path = degraded
        body = client.post(f"{API}/signup", json={"email": "a@b.com", "password": "pw"}).json()
        client.cookies.clear()
        with sqlite3.connect(db_path) as conn:
            conn.execute("DROP TABLE users")

        response = client.get(f"{API}/me", headers={"Authorization": f"Bearer {body['token']}"})

        assert response.status_code == 200
        assert response.json()["id"] == body["user"]["id"]
        assert response.json()["role"] == "USER"

"""Integration tests for POST /api/checkout."""

import json

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

BUYER = {"uid": "u_123", "email": "ana@example.com", "name": "Ana"}


async def _checkout(client, cart, user=None, headers=None):
    return await client.post(
        "/api/checkout",
        json={"cart": cart, "user": user or BUYER},
        headers=headers or {},
    )


@pytest.mark.usefixtures("catalog")
class TestCheckoutSuccess:
    async def test_returns_processor_url(self, client, processor):
        response = await _checkout(client, [{"id": "p1", "quantity": 2}])

        assert response.status_code == 200
        session_id = next(iter(processor.sessions))
        assert response.json() == {"url": f"https://checkout.stripe.test/c/pay/{session_id}"}

    async def test_creates_one_pending_order_priced_from_store(self, client, store):
        await _checkout(client, [{"id": "p1", "quantity": 2, "price": 0.01}])

        orders = await store.orders()
        assert len(orders) == 1
        order = orders[0]
        assert order.status == "pending"
        assert order.subtotal_cents == 1998
        assert (order.taxes_cents, order.tps_cents, order.tvq_cents, order.total_cents) == (0, 0, 0, 0)
        assert order.user_uid == "u_123"
        assert order.user_email == "ana@example.com"
        assert order.user_name == "Ana"
        assert order.created_at is not None
        assert order.paid_at is None
        assert json.loads(order.items) == [
            {"productId": "p1", "name": "Savon artisanal", "qty": 2, "price_cents": 999}
        ]

    async def test_session_lines_use_minor_units(self, client, processor, store):
        await _checkout(client, [{"id": "p1", "quantity": 2}, {"id": "p3", "quantity": 1}])

        params = processor.calls[0]["params"]
        order = (await store.orders())[0]
        assert params["mode"] == "payment"
        assert params["payment_method_types"] == ["card"]
        assert params["customer_email"] == "ana@example.com"
        assert params["metadata"] == {"order_id": order.id, "user_uid": "u_123"}
        assert params["line_items"] == [
            {
                "quantity": 2,
                "price_data": {
                    "currency": "cad",
                    "unit_amount": 999,
                    "product_data": {"name": "Savon artisanal", "images": ["https://img.test/p1.jpg"]},
                },
            },
            {
                "quantity": 1,
                "price_data": {
                    "currency": "cad",
                    "unit_amount": 12000,
                    "product_data": {"name": "Portrait sur commande", "images": []},
                },
            },
        ]

    async def test_session_id_recorded_on_order(self, client, processor, store):
        await _checkout(client, [{"id": "p1", "quantity": 1}])

        order = (await store.orders())[0]
        assert order.stripe_session_id == next(iter(processor.sessions))

    async def test_redirects_carry_order_id(self, client, processor, store):
        await _checkout(client, [{"id": "p1", "quantity": 1}])

        params = processor.calls[0]["params"]
        order_id = (await store.orders())[0].id
        assert params["success_url"] == f"http://localhost:5000/?payment=success&order={order_id}"
        assert params["cancel_url"] == f"http://localhost:5000/?payment=cancel&order={order_id}"

    async def test_origin_header_drives_redirects(self, client, processor):
        await _checkout(client, [{"id": "p1", "quantity": 1}], headers={"Origin": "https://boutique.example/"})

        assert processor.calls[0]["params"]["success_url"].startswith("https://boutique.example/?payment=success")

    async def test_referer_used_without_origin(self, client, processor):
        await _checkout(
            client, [{"id": "p1", "quantity": 1}], headers={"Referer": "https://boutique.example/panier?x=1"}
        )

        assert processor.calls[0]["params"]["cancel_url"].startswith("https://boutique.example/?payment=cancel")

    async def test_unknown_products_are_dropped(self, client, store):
        response = await _checkout(client, [{"id": "nope", "quantity": 3}, {"id": "p2", "quantity": 1}])

        assert response.status_code == 200
        order = (await store.orders())[0]
        assert [item["productId"] for item in json.loads(order.items)] == ["p2"]
        assert order.subtotal_cents == 1850

    async def test_entries_without_id_are_skipped(self, client, store):
        response = await _checkout(client, [{"quantity": 3}, {"id": "", "quantity": 1}, {"id": "p1"}])

        assert response.status_code == 200
        order = (await store.orders())[0]
        assert order.subtotal_cents == 999

    @pytest.mark.parametrize("quantity", [0, -2, "abc", None])
    async def test_bad_quantities_clamped_to_one(self, client, store, quantity):
        response = await _checkout(client, [{"id": "p1", "quantity": quantity}])

        assert response.status_code == 200
        order = (await store.orders())[0]
        assert json.loads(order.items)[0]["qty"] == 1

    async def test_untracked_stock_accepts_any_quantity(self, client, store):
        response = await _checkout(client, [{"id": "p3", "quantity": 50}])

        assert response.status_code == 200
        assert (await store.orders())[0].subtotal_cents == 600000

    async def test_name_defaults_to_email(self, client, store):
        await _checkout(client, [{"id": "p1", "quantity": 1}], user={"uid": "u_9", "email": "bo@example.com"})

        assert (await store.orders())[0].user_name == "bo@example.com"

    async def test_repeated_entries_within_stock(self, client, store):
        response = await _checkout(client, [{"id": "p1", "quantity": 2}, {"id": "p1", "quantity": 3}])

        assert response.status_code == 200
        order = (await store.orders())[0]
        assert [item["qty"] for item in json.loads(order.items)] == [2, 3]
        assert order.subtotal_cents == 999 * 5

    async def test_stock_is_not_reserved_at_checkout(self, client, store):
        await _checkout(client, [{"id": "p1", "quantity": 2}])

        assert (await store.product("p1")).stock == 5


@pytest.mark.usefixtures("catalog")
class TestCheckoutRejections:
    async def test_insufficient_stock_names_product(self, client, store, processor):
        response = await _checkout(client, [{"id": "p1", "quantity": 1}, {"id": "p2", "quantity": 3}])

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Insufficient stock: Tasse en grès"
        assert body["error_code"] == "checkout:stock_insufficient"
        assert body["details"] == {"product_id": "p2", "available": 2, "requested": 3}
        assert await store.orders() == []
        assert processor.calls == []

    async def test_repeated_entries_are_checked_against_combined_quantity(self, client, store, processor):
        response = await _checkout(client, [{"id": "p1", "quantity": 3}, {"id": "p1", "quantity": 3}])

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Insufficient stock: Savon artisanal"
        assert body["details"] == {"product_id": "p1", "available": 5, "requested": 6}
        assert await store.orders() == []
        assert processor.calls == []

    async def test_empty_cart(self, client, store):
        response = await _checkout(client, [])

        assert response.status_code == 400
        assert response.json()["error"] == "Empty cart"
        assert await store.orders() == []

    async def test_only_unknown_products(self, client, store):
        response = await _checkout(client, [{"id": "ghost", "quantity": 1}])

        assert response.status_code == 400
        assert response.json()["error"] == "Empty cart"
        assert await store.orders() == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"cart": "p1", "user": {"uid": "u_1", "email": "a@b.c"}},
            {"cart": [{"id": "p1", "quantity": 1}], "user": {"email": "a@b.c"}},
            {"cart": [{"id": "p1", "quantity": 1}], "user": {"uid": "u_1", "email": ""}},
            {"cart": [{"id": "p1", "quantity": 1}]},
            {"user": {"uid": "u_1", "email": "a@b.c"}},
        ],
    )
    async def test_invalid_payload(self, client, store, payload):
        response = await client.post("/api/checkout", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid payload"
        assert await store.orders() == []

    async def test_non_post_not_allowed(self, client):
        response = await client.get("/api/checkout")

        assert response.status_code == 405


@pytest.mark.usefixtures("catalog")
class TestCheckoutInfrastructureFailures:
    async def test_processor_failure_leaves_pending_order_without_session(self, client, processor, store):
        processor.configure(should_succeed=False, failure_reason="Stripe is down")

        response = await _checkout(client, [{"id": "p1", "quantity": 1}])

        assert response.status_code == 500
        assert response.json() == {"error": "Server error: Stripe is down"}
        orders = await store.orders()
        assert len(orders) == 1
        assert orders[0].status == "pending"
        assert orders[0].stripe_session_id is None

    async def test_session_id_write_failure_still_redirects(
        self, client, processor, store, engine, use_session_factory
    ):
        class FailingExecuteSession(AsyncSession):
            async def execute(self, statement, *args, **kwargs):
                raise OperationalError("UPDATE orders", {}, Exception("database is locked"))

        use_session_factory(async_sessionmaker(engine, class_=FailingExecuteSession, expire_on_commit=False))

        response = await _checkout(client, [{"id": "p1", "quantity": 1}])

        assert response.status_code == 200
        assert response.json()["url"].endswith(next(iter(processor.sessions)))
        orders = await store.orders()
        assert len(orders) == 1
        assert orders[0].status == "pending"
        assert orders[0].stripe_session_id is None

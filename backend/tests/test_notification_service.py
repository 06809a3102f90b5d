# Overview: Pytest coverage for push token registry, provider dispatch and fan-out error isolation.

import json

import httpx
import pytest

from storefront import realtime
from storefront.errors import ValidationFailure
from storefront.models import PushToken
from storefront.services import notification_service, push_service
from storefront.services.inventory_service import ProductRef
from storefront.services.stock_service import StockAdjustment
from storefront.services.push_service import (
    ExpoPushProvider,
    FcmPushProvider,
    PushDispatcher,
    PushMessage,
    format_cents,
)


MESSAGE = PushMessage(title="Hello", body="World", data={"k": "v"})


class TestFormatCents:
    @pytest.mark.parametrize("cents, expected", [
        (0, "R$ 0,00"),
        (5, "R$ 0,05"),
        (12345, "R$ 123,45"),
        (123456789, "R$ 1.234.567,89"),
        (-250, "R$ -2,50"),
    ])
    def test_format(self, cents, expected):
        assert format_cents(cents) == expected


class TestTokenRegistry:
    def test_register_and_group(self, db_session, store_a):
        push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="e1", provider="expo")
        push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="f1", provider="fcm")
        push_service.register_push_token(user_id="staff-1", store_id=store_a.id, token="e2", provider="expo")

        assert push_service.tokens_for_owner("owner-a", store_a.id) == {"expo": ["e1"], "fcm": ["f1"], "apns": []}
        assert sorted(push_service.tokens_for_store(store_a.id)["expo"]) == ["e1", "e2"]

    def test_register_is_an_upsert(self, db_session, store_a):
        push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="e1", provider="expo")
        push_service.deactivate_push_token("e1")
        push_service.register_push_token(
            user_id="owner-a", store_id=store_a.id, token="e1", provider="expo", device_name="Pixel",
        )

        tokens = db_session.query(PushToken).all()
        assert len(tokens) == 1
        assert tokens[0].is_active is True
        assert tokens[0].device_name == "Pixel"

    def test_deactivated_tokens_are_not_grouped(self, db_session, store_a):
        push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="e1", provider="expo")
        assert push_service.deactivate_push_token("e1") is True
        assert push_service.tokens_for_owner("owner-a", store_a.id)["expo"] == []
        assert push_service.deactivate_push_token("unknown") is False

    def test_rejects_unknown_provider(self, db_session, store_a):
        with pytest.raises(ValidationFailure):
            push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="x", provider="sms")


class TestProviders:
    def test_expo_payload(self, app):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        provider = ExpoPushProvider("tok", "https://push.test/send", transport=httpx.MockTransport(handler))
        with app.app_context():
            assert provider.send(["a", "b"], MESSAGE) == 2

        assert seen[0].headers["Authorization"] == "Bearer tok"
        body = json.loads(seen[0].read())
        assert [m["to"] for m in body] == ["a", "b"]
        assert body[0]["title"] == "Hello"
        assert body[0]["sound"] == "default"

    def test_expo_without_token_skips(self, app):
        def handler(request):
            raise AssertionError("no request expected")

        provider = ExpoPushProvider("", "https://push.test/send", transport=httpx.MockTransport(handler))
        with app.app_context():
            assert provider.send(["a"], MESSAGE) == 0

    def test_fcm_batches_of_1000(self, app):
        seen = []

        def handler(request):
            seen.append(json.loads(request.read()))
            return httpx.Response(200, json={"success": 1})

        provider = FcmPushProvider("key", "https://fcm.test/send", transport=httpx.MockTransport(handler))
        tokens = [f"t{i}" for i in range(2500)]
        with app.app_context():
            assert provider.send(tokens, MESSAGE) == 2500

        assert [len(batch["registration_ids"]) for batch in seen] == [1000, 1000, 500]
        assert seen[0]["notification"]["body"] == "World"

    def test_dispatcher_isolates_provider_failures(self, app):
        def failing(request):
            return httpx.Response(500)

        def ok(request):
            return httpx.Response(200, json={})

        dispatcher = PushDispatcher({
            "expo": ExpoPushProvider("tok", "https://push.test/send", transport=httpx.MockTransport(failing)),
            "fcm": FcmPushProvider("key", "https://fcm.test/send", transport=httpx.MockTransport(ok)),
        })
        with app.app_context():
            sent = dispatcher.send_to_grouped_tokens({"expo": ["a"], "fcm": ["b"], "apns": []}, MESSAGE)

        assert sent == {"expo": 0, "fcm": 1}

    def test_apns_is_skipped(self, app):
        dispatcher = push_service.build_dispatcher(app.config)
        with app.app_context():
            assert dispatcher.send_to_grouped_tokens({"apns": ["x"]}, MESSAGE) == {"apns": 0}


class TestFanOut:
    def test_publisher_error_is_swallowed(self, app, db_session, store_a, caplog):
        class BrokenPublisher(realtime.RealtimePublisher):
            def publish(self, room, event, payload):
                raise RuntimeError("socket closed")

        previous = app.extensions[realtime.EXTENSION_KEY]
        app.extensions[realtime.EXTENSION_KEY] = BrokenPublisher()
        try:
            notification_service._dispatch(
                "test", notification_service._deliver_order_updated, {"id": "x"}, store_a.id,
            )
        finally:
            app.extensions[realtime.EXTENSION_KEY] = previous

        assert "Notification fan-out failed" in caplog.text

    def test_background_dispatch_runs_in_own_context(self, app, db_session, store_a, publisher):
        app.config["NOTIFICATIONS_INLINE"] = False
        try:
            thread = notification_service._dispatch(
                "test", notification_service._deliver_order_updated, {"id": "x"}, store_a.id,
            )
            thread.join(timeout=5)
        finally:
            app.config["NOTIFICATIONS_INLINE"] = True

        assert [e.event for e in publisher.for_room(f"store:{store_a.id}")] == ["order:updated"]

    def test_low_stock_push_goes_to_owner_tokens(self, db_session, store_a, publisher, push_requests):
        push_service.register_push_token(user_id="owner-a", store_id=store_a.id, token="f1", provider="fcm")
        adjustment = StockAdjustment(
            ref=ProductRef.catalog("p1"),
            store_id=store_a.id,
            name="Perfume",
            previous_quantity=6,
            new_quantity=2,
            delta=-4,
            low_stock=True,
        )

        notification_service.notify_low_stock(store_a, [adjustment])

        assert [e.event for e in publisher.for_room(f"store:{store_a.id}")] == ["product:low-stock"]
        assert len(push_requests) == 1
        body = json.loads(push_requests[0].read())
        assert body["registration_ids"] == ["f1"]
        assert body["notification"]["title"] == "Low stock"
        assert "Perfume" in body["notification"]["body"]

        token = db_session.query(PushToken).filter_by(token="f1").one()
        assert token.last_used_at is not None

"""
Tests for SMS rendering, the SMS client and the notification dispatchers.
"""
import json
import uuid
from decimal import Decimal

import httpx
import pytest

from hardware_store.core.config import Settings
from hardware_store.core.errors import NotificationDeliveryError, SmsGatewayError
from hardware_store.core.sms_client import (
    SEMAPHORE_URL,
    SmsClient,
    format_international,
    format_phone_number,
    get_telco,
    validate_phone_number,
)
from hardware_store.domain.order_status import OrderStatus
from hardware_store.services.notification_service import (
    BackgroundNotificationDispatcher,
    SmsNotificationDispatcher,
    StatusNotification,
    render_admin_new_order,
    render_customer_message,
)

from conftest import RecordingNotifier


def make_settings(**overrides) -> Settings:
    values = {
        "STORE_NAME": "Tindahan Hardware",
        "STORE_PHONE": "0917-000-1111",
        "SMS_ENABLED": True,
        "SMS_TEST_MODE": False,
        "SMS_PROVIDERS": ["semaphore"],
        "SEMAPHORE_API_KEY": "key",
        "SMS_MAX_RETRIES": 2,
        "SMS_RETRY_DELAY_SECONDS": 0.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_notification(status=OrderStatus.PENDING, note=None) -> StatusNotification:
    return StatusNotification(
        order_id=uuid.uuid4(),
        order_number="ORD-LX1ABC-7Z2A",
        phone="09171234567",
        customer_name="Juan",
        status=status,
        total_amount=Decimal("1371.5"),
        note=note,
    )


class FakeSmsClient:
    def __init__(self, failures: int = 0, error=SmsGatewayError):
        self.failures = failures
        self.error = error
        self.sent = []

    def send(self, phone, message):
        self.sent.append((phone, message))
        if self.failures:
            self.failures -= 1
            raise self.error("gateway timeout")


class TestPhoneNumbers:
    @pytest.mark.parametrize(
        "raw",
        ["09171234567", "+63 917 123 4567", "639171234567", "9171234567", "0917-123-4567"],
    )
    def test_formats_to_local(self, raw):
        assert format_phone_number(raw) == "09171234567"
        assert format_international(raw) == "639171234567"

    def test_validation_errors(self):
        with pytest.raises(ValueError):
            validate_phone_number("")
        with pytest.raises(ValueError):
            validate_phone_number("0917123")
        with pytest.raises(ValueError):
            validate_phone_number("08171234567")

    def test_telco(self):
        assert get_telco("09171234567") == "GLOBE"
        assert get_telco("09181234567") == "SMART"
        assert get_telco("09911234567") == "DITO"
        assert get_telco("09001234567") == "UNKNOWN"


class TestTemplates:
    def test_confirmation(self):
        text = render_customer_message(make_notification(), "Tindahan", "0917")
        assert text.startswith("[Tindahan] Order ORD-LX1ABC-7Z2A received!")
        assert "Total: P1371.50" in text

    def test_rejection_includes_reason_and_store_phone(self):
        text = render_customer_message(
            make_notification(OrderStatus.REJECTED, note="Out of stock"),
            "Tindahan",
            "0917-000-1111",
        )
        assert "cannot be processed: Out of stock" in text
        assert "0917-000-1111" in text

    def test_out_for_delivery_eta(self):
        text = render_customer_message(
            make_notification(OrderStatus.OUT_FOR_DELIVERY, note="3:00 PM"),
            "Tindahan",
            "",
        )
        assert "ON THE WAY! ETA: 3:00 PM." in text

    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_every_status_has_a_message(self, status):
        assert render_customer_message(make_notification(status, note="x"), "S", "P")

    def test_admin_alert(self):
        text = render_admin_new_order(make_notification())
        assert text == (
            "NEW ORDER! ORD-LX1ABC-7Z2A - P1371.50 from Juan. Check dashboard now."
        )


class TestSmsClient:
    def test_development_mode_sends_nothing(self):
        def handler(request):
            raise AssertionError("no HTTP call expected")

        client = SmsClient(
            make_settings(SMS_ENABLED=False),
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        result = client.send("0917 123 4567", "hello")
        assert result.mode == "development"
        assert result.phone == "09171234567"

    def test_semaphore_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"message_id": 991, "status": "Queued"}])

        client = SmsClient(
            make_settings(),
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        result = client.send("09171234567", "hello")

        assert result.provider == "semaphore"
        assert result.message_id == "991"
        assert str(seen[0].url) == SEMAPHORE_URL
        body = json.loads(seen[0].content)
        assert body["number"] == "639171234567"
        assert body["apikey"] == "key"

    def test_falls_back_to_next_provider(self):
        def handler(request):
            if "semaphore" in str(request.url):
                return httpx.Response(500)
            return httpx.Response(200, json={"phone_number_list": [{"message_id": "m-1"}]})

        client = SmsClient(
            make_settings(
                SMS_PROVIDERS=["semaphore", "movider"],
                MOVIDER_API_KEY="k",
                MOVIDER_API_SECRET="s",
            ),
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        result = client.send("09171234567", "hello")
        assert result.provider == "movider"
        assert result.message_id == "m-1"

    def test_all_providers_fail(self):
        client = SmsClient(
            make_settings(),
            http_client=httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(503))
            ),
        )
        with pytest.raises(SmsGatewayError):
            client.send("09171234567", "hello")

    def test_no_provider_configured(self):
        client = SmsClient(make_settings(SEMAPHORE_API_KEY=None))
        with pytest.raises(NotificationDeliveryError) as exc_info:
            client.send("09171234567", "hello")
        assert not isinstance(exc_info.value, SmsGatewayError)
        client.close()


class TestSmsDispatcher:
    def test_customer_and_admin_on_new_order(self):
        sms = FakeSmsClient()
        dispatcher = SmsNotificationDispatcher(
            sms, make_settings(ADMIN_NOTIFICATION_PHONE="09991112222"), sleep=lambda s: None
        )
        dispatcher.notify(make_notification())

        assert [phone for phone, _ in sms.sent] == ["09171234567", "09991112222"]
        assert sms.sent[1][1].startswith("NEW ORDER!")

    def test_no_admin_alert_after_creation(self):
        sms = FakeSmsClient()
        dispatcher = SmsNotificationDispatcher(
            sms, make_settings(ADMIN_NOTIFICATION_PHONE="09991112222"), sleep=lambda s: None
        )
        dispatcher.notify(make_notification(OrderStatus.ACCEPTED))
        assert len(sms.sent) == 1

    def test_retries_then_succeeds(self):
        sms = FakeSmsClient(failures=2)
        delays = []
        dispatcher = SmsNotificationDispatcher(sms, make_settings(), sleep=delays.append)

        assert dispatcher.deliver("09171234567", "hi", "ORD-1") is True
        assert len(sms.sent) == 3
        assert len(delays) == 2

    def test_gives_up_quietly(self):
        sms = FakeSmsClient(failures=10)
        dispatcher = SmsNotificationDispatcher(sms, make_settings(), sleep=lambda s: None)

        dispatcher.notify(make_notification(OrderStatus.ACCEPTED))
        assert len(sms.sent) == 3  # first try + SMS_MAX_RETRIES

    def test_permanent_failure_is_not_retried(self):
        sms = FakeSmsClient(failures=10, error=NotificationDeliveryError)
        delays = []
        dispatcher = SmsNotificationDispatcher(sms, make_settings(), sleep=delays.append)

        assert dispatcher.deliver("09171234567", "hi", "ORD-1") is False
        assert len(sms.sent) == 1
        assert delays == []

    def test_bad_number_is_not_retried(self):
        transport_calls = []

        def handler(request):
            transport_calls.append(request)
            return httpx.Response(200, json=[{"message_id": 1}])

        client = SmsClient(
            make_settings(),
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        delays = []
        dispatcher = SmsNotificationDispatcher(client, make_settings(), sleep=delays.append)

        assert dispatcher.deliver("12345", "hi", "ORD-1") is False
        assert delays == []
        assert transport_calls == []


class TestBackgroundDispatcher:
    def test_delivers_in_order(self):
        inner = RecordingNotifier()
        background = BackgroundNotificationDispatcher(inner)
        background.start()
        try:
            background.notify(make_notification(OrderStatus.PENDING))
            background.notify(make_notification(OrderStatus.ACCEPTED))
            background.join()
        finally:
            background.stop()

        assert inner.statuses == ["pending", "accepted"]
        assert not background.running

    def test_worker_survives_failures(self):
        inner = RecordingNotifier(fail=True)
        background = BackgroundNotificationDispatcher(inner)
        background.start()
        try:
            background.notify(make_notification(OrderStatus.PENDING))
            background.notify(make_notification(OrderStatus.ACCEPTED))
            background.join()
            assert background.running
        finally:
            background.stop()

        assert inner.statuses == ["pending", "accepted"]

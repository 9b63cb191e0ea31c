import asyncio
import smtplib
import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from application.dto import OrderCreateDTO
from application.services.order_service import OrderLifecycleService
from core.config import NotificationSettings, settings
from domain.common.exceptions import NotificationFailureException
from domain.order import OrderHistoryRecord, OrderLine
from infrastructure.external.email import SMTPEmailClient
from infrastructure.external.email import smtp_client
from infrastructure.notifications import CeleryPaymentLinkNotifier
from infrastructure.tasks.tasks.email import render_payment_link_email, send_payment_link_email
from infrastructure.tasks.utils import dispatcher as dispatcher_module
from infrastructure.tasks.utils.dispatcher import PAYMENT_LINK_TASK, TaskDispatcher


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.messages.append(message)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtp_client.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _record() -> OrderHistoryRecord:
    lines = (OrderLine(menu_item="Pizza", quantity=3, unit_price=Decimal("300")),)
    return OrderHistoryRecord(
        order_id="ORD100",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        table_number="12",
        member_id="M-7",
        lines=lines,
        final_price=Decimal("900"),
    )


def test_render_payment_link_email():
    subject, body = render_payment_link_email("ORD100", Decimal("900"))

    assert subject == "Your Payment Link"
    assert f"{settings.notification.payment_link_base_url}/ORD100" in body
    assert "- Order ID: ORD100" in body
    assert "900.00" in body


def test_smtp_client_sends_with_tls_and_login(fake_smtp):
    client = SMTPEmailClient(
        host="mail.test", port=2525, sender="orders@test", username="bot", password="pw"
    )

    assert client.send("cashier@test", "Hello", "Body") is True

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port) == ("mail.test", 2525)
    assert smtp.started_tls is True
    assert smtp.logged_in == ("bot", "pw")
    assert smtp.messages[0]["To"] == "cashier@test"


def test_smtp_client_reports_transport_errors(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({"cashier@test": (550, b"no")})
    client = SMTPEmailClient.from_settings(NotificationSettings(smtp_use_tls=False))

    assert client.send("cashier@test", "Hello", "Body") is False


def test_task_sends_payment_link(fake_smtp):
    assert send_payment_link_email.run(order_id="ORD100", final_price="900", recipient="member@test") is True

    message = fake_smtp.instances[0].messages[0]
    assert message["Subject"] == "Your Payment Link"
    assert message["To"] == "member@test"


def test_task_raises_when_delivery_fails(fake_smtp):
    fake_smtp.fail_with = OSError("connection refused")

    with pytest.raises(NotificationFailureException):
        send_payment_link_email.run(order_id="ORD100", final_price="900")


def test_dispatcher_runs_task_in_process_when_eager(fake_smtp):
    TaskDispatcher().send_payment_link_email(order_id="ORD100", final_price="900")

    message = fake_smtp.instances[0].messages[0]
    assert message["To"] == settings.notification.payment_link_recipient


def test_dispatcher_publishes_by_name_when_not_eager(monkeypatch):
    sent = []
    app = dispatcher_module.celery_app
    monkeypatch.setattr(app.conf, "task_always_eager", False)
    monkeypatch.setattr(app, "send_task", lambda name, args=(), kwargs=None: sent.append((name, kwargs)))

    TaskDispatcher().send_payment_link_email(order_id="ORD100", final_price="900", recipient="x@test")

    assert sent == [(PAYMENT_LINK_TASK, {"order_id": "ORD100", "final_price": "900", "recipient": "x@test"})]


class RecordingDispatcher:
    def __init__(self):
        self.calls = []

    def send_payment_link_email(self, **kwargs):
        self.calls.append(kwargs)


@pytest.mark.asyncio
async def test_notifier_hands_record_to_dispatcher():
    dispatcher = RecordingDispatcher()
    notifier = CeleryPaymentLinkNotifier(dispatcher=dispatcher, recipient="member@test")

    await notifier.send_payment_link(_record())
    await notifier.drain()

    assert dispatcher.calls == [
        {"order_id": "ORD100", "final_price": "900", "recipient": "member@test"}
    ]


class BlockingDispatcher:
    """Holds every dispatch until ``release`` is set."""

    def __init__(self, error: Exception | None = None):
        self.release = threading.Event()
        self.started = threading.Event()
        self.error = error
        self.calls = []

    def send_payment_link_email(self, **kwargs):
        self.started.set()
        self.release.wait(timeout=5)
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


@pytest.mark.asyncio
async def test_online_payment_does_not_wait_for_delivery(uow_factory):
    dispatcher = BlockingDispatcher()
    notifier = CeleryPaymentLinkNotifier(dispatcher=dispatcher)
    service = OrderLifecycleService(uow_factory=uow_factory, notifier=notifier)
    await service.create_order(
        OrderCreateDTO(
            order_id="ORD100",
            table_number="12",
            member_id="M-7",
            items=[{"menuItem": "Pizza", "quantity": 3, "unitPrice": "300"}],
        )
    )
    await service.close_order("ORD100")

    result = await asyncio.wait_for(service.record_payment("ORD100", "online"), timeout=1)

    assert result.message == "Payment link has been sent to your email."
    assert dispatcher.calls == []

    dispatcher.release.set()
    await notifier.drain()
    assert dispatcher.calls[0]["order_id"] == "ORD100"


@pytest.mark.asyncio
async def test_failed_background_dispatch_is_logged_not_raised():
    dispatcher = BlockingDispatcher(error=OSError("broker unreachable"))
    dispatcher.release.set()
    notifier = CeleryPaymentLinkNotifier(dispatcher=dispatcher)

    await notifier.send_payment_link(_record())
    await notifier.drain()

    assert len(dispatcher.calls) == 1


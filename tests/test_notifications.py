import logging
import uuid

import httpx
import pytest

from frontdesk.core.config import settings
from frontdesk.modules.notifications.schemas import NotificationRequest
from frontdesk.modules.notifications.service import dispatch_notification, drain
from frontdesk.platform.adapters.notify_noop import NoopNotifier
from frontdesk.platform.adapters.notify_webhook import WebhookNotifier
from frontdesk.platform.provider_registry import ProviderRegistry

from conftest import RecordingNotifier


def request(kind="confirmation"):
    return NotificationRequest(appointment_id=uuid.uuid4(), patient_phone="11987654321", status="Scheduled", reminder_type=kind)


async def test_dispatch_delivers_json_payload():
    notifier = RecordingNotifier()
    req = request()
    dispatch_notification(req, notifier=notifier)
    await drain()
    assert notifier.sent == [{
        "appointment_id": str(req.appointment_id),
        "patient_phone": "11987654321",
        "status": "Scheduled",
        "reminder_type": "confirmation",
    }]


async def test_failure_is_logged_not_raised(caplog):
    caplog.set_level(logging.WARNING)
    task = dispatch_notification(request("cancellation"), notifier=RecordingNotifier(fail=True))
    await drain()
    assert task.exception() is None
    assert "cancellation" in caplog.text and "failed" in caplog.text


async def test_webhook_posts_payload():
    seen = []

    def handler(req: httpx.Request):
        seen.append((req.url, req.read()))
        return httpx.Response(204)

    notifier = WebhookNotifier(url="https://hooks.example.test/notify", transport=httpx.MockTransport(handler))
    await notifier.notify({"reminder_type": "deletion"})
    assert str(seen[0][0]) == "https://hooks.example.test/notify"
    assert b"deletion" in seen[0][1]


async def test_webhook_error_status_raises():
    notifier = WebhookNotifier(url="https://hooks.example.test/notify",
                               transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    with pytest.raises(httpx.HTTPStatusError):
        await notifier.notify({})


def test_registry_picks_provider(monkeypatch):
    ProviderRegistry.reset()
    monkeypatch.setattr(settings, "NOTIFIER_PROVIDER", "noop")
    assert isinstance(ProviderRegistry.notifier(), NoopNotifier)

    ProviderRegistry.reset()
    monkeypatch.setattr(settings, "NOTIFIER_PROVIDER", "webhook")
    monkeypatch.setattr(settings, "NOTIFY_WEBHOOK_URL", "https://hooks.example.test/notify")
    assert isinstance(ProviderRegistry.notifier(), WebhookNotifier)
    ProviderRegistry.reset()

import logging
import httpx
from frontdesk.platform.ports.notifier import NotifierPort
from frontdesk.core.config import settings

log = logging.getLogger("notify.webhook")

class WebhookNotifier(NotifierPort):
    def __init__(self, url: str | None = None, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url or settings.NOTIFY_WEBHOOK_URL
        if not self.url:
            raise RuntimeError("NOTIFY_WEBHOOK_URL not configured")
        self.timeout = timeout or settings.NOTIFY_TIMEOUT_SECONDS
        self.transport = transport

    async def notify(self, payload: dict) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()
        log.debug(f"[WEBHOOK NOTIFY] POST {self.url} -> {response.status_code}")

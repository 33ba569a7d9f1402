from frontdesk.core.config import settings
from frontdesk.platform.ports.notifier import NotifierPort
from frontdesk.platform.adapters.notify_noop import NoopNotifier
from frontdesk.platform.adapters.notify_webhook import WebhookNotifier

class ProviderRegistry:
    _notifier: NotifierPort | None = None

    @classmethod
    def notifier(cls) -> NotifierPort:
        if cls._notifier is None:
            prov = (settings.NOTIFIER_PROVIDER or "noop").lower()
            if prov == "webhook":
                cls._notifier = WebhookNotifier()
            else:
                cls._notifier = NoopNotifier()
        return cls._notifier

    @classmethod
    def reset(cls) -> None:
        cls._notifier = None

registry = ProviderRegistry()

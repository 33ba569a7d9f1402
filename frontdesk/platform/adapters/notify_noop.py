import json
import logging
from frontdesk.platform.ports.notifier import NotifierPort

log = logging.getLogger("notify.noop")

class NoopNotifier(NotifierPort):
    async def notify(self, payload: dict) -> None:
        log.info(f"[NOOP NOTIFY] {json.dumps(payload, default=str)}")

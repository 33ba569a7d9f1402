import asyncio
import logging

from frontdesk.modules.notifications.schemas import NotificationRequest
from frontdesk.platform.ports.notifier import NotifierPort
from frontdesk.platform.provider_registry import registry

logger = logging.getLogger(__name__)

# strong refs so pending sends are not garbage collected mid-flight
_pending: set[asyncio.Task] = set()

async def _send(notifier: NotifierPort, request: NotificationRequest) -> None:
    try:
        await notifier.notify(request.model_dump(mode="json"))
    except Exception as e:
        logger.warning(
            f"Notification {request.reminder_type} for appointment {request.appointment_id} failed: {e}"
        )

def dispatch_notification(request: NotificationRequest, notifier: NotifierPort | None = None) -> asyncio.Task:
    """
    Fire-and-forget: schedules the send on the running loop and returns at
    once. Failures are logged inside the task and never reach the caller.
    """
    task = asyncio.create_task(_send(notifier or registry.notifier(), request))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task

async def drain(timeout: float | None = None) -> None:
    """Wait for in-flight notifications, e.g. on shutdown."""
    if not _pending:
        return
    done, not_done = await asyncio.wait(set(_pending), timeout=timeout)
    if not_done:
        logger.warning(f"{len(not_done)} notification(s) still pending after {timeout}s")

from typing import Protocol, runtime_checkable

@runtime_checkable
class NotifierPort(Protocol):
    async def notify(self, payload: dict) -> None: ...

from __future__ import annotations

from typing import Protocol


class EventPublisher(Protocol):
    async def broadcast(self, message_json_str: str) -> None: ...

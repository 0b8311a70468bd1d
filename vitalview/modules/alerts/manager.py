import asyncio
from typing import Any, Iterable

import structlog

log = structlog.get_logger()


class AlertStreamManager:
    """
    SSE subscriber queues keyed by recipient.

    A ``*`` subscriber follows every delivery: an alert sent to several recipients
    reaches it once per recipient, each copy carrying its ``recipient``.
    """

    def __init__(self) -> None:
        self._queues: dict[str, list[asyncio.Queue[dict[str, Any]]]] = {}

    def subscribe(self, queue: asyncio.Queue[dict[str, Any]], recipient: str) -> None:
        self._queues.setdefault(self._normalize_recipient(recipient), []).append(queue)

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        for recipient_key, queues in list(self._queues.items()):
            if queue in queues:
                queues.remove(queue)
            if not queues:
                self._queues.pop(recipient_key, None)

    def subscriber_count(self, recipient: str) -> int:
        return len(self._queues.get(self._normalize_recipient(recipient), []))

    def publish(self, recipient: str, payload: dict[str, Any]) -> int:
        """Queue ``payload`` for every subscriber of ``recipient`` and of ``*``; returns deliveries."""
        delivered = 0
        for queue in self._iter_queues(recipient):
            try:
                queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                log.warning("alert stream subscriber lagging, message dropped", recipient=recipient)
        return delivered

    def _iter_queues(self, recipient: str) -> Iterable[asyncio.Queue[dict[str, Any]]]:
        recipient_key = self._normalize_recipient(recipient)
        seen: set[int] = set()
        for key in (recipient_key, "*"):
            for queue in self._queues.get(key, []):
                if id(queue) in seen:
                    continue
                seen.add(id(queue))
                yield queue

    @staticmethod
    def _normalize_recipient(recipient: str | None) -> str:
        if not recipient or recipient.strip().lower() in {"*", "all"}:
            return "*"
        return recipient.strip().lower()

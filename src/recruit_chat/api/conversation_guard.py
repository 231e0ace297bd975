"""Serializes operations on each conversation."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import UUID

import structlog

logger = structlog.get_logger()


class ConversationGuard:
    """One operation in flight per conversation; different conversations run freely."""

    def __init__(self, wait_timeout: float = 30.0) -> None:
        self.wait_timeout = wait_timeout
        self._locks: Dict[UUID, asyncio.Lock] = {}
        logger.info("conversation_guard_initialized", wait_timeout=wait_timeout)

    def _lock_for(self, conversation_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    async def run(
        self,
        conversation_id: UUID,
        task: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any
    ) -> Any:
        """Run ``task`` once no other operation holds the conversation."""
        lock = self._lock_for(conversation_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.wait_timeout)
        except asyncio.TimeoutError:
            logger.error("conversation_busy_timeout", conversation_id=str(conversation_id))
            raise TimeoutError("Timed out waiting for the conversation")
        try:
            return await task(*args, **kwargs)
        finally:
            lock.release()

    def forget(self, conversation_id: UUID) -> None:
        """Drop the lock of a discarded conversation."""
        self._locks.pop(conversation_id, None)

    def active(self) -> int:
        return sum(1 for lock in self._locks.values() if lock.locked())


_guard: Optional[ConversationGuard] = None


def get_conversation_guard() -> ConversationGuard:
    """Get the global conversation guard instance."""
    global _guard
    if _guard is None:
        _guard = ConversationGuard()
    return _guard

"""In-memory conversation store. Nothing outlives the process."""

import time
from threading import Lock
from typing import Callable, Dict, List, Optional
from uuid import UUID

import structlog

from ..domain.script import QuestionScript, default_script
from ..services.controller import ConversationController
from .base import Repository

logger = structlog.get_logger()


class InMemoryRepository(Repository):
    """Process-wide in-memory repository."""

    _instance = None
    _lock = Lock()
    _initialized = False

    def __new__(cls, *args, **kwargs):
        """Ensure singleton pattern."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super(InMemoryRepository, cls).__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self, script_factory: Callable[[], QuestionScript] = default_script) -> None:
        with self._lock:
            if self._initialized:
                return

            self._conversations: Dict[UUID, ConversationController] = {}
            self._last_seen: Dict[UUID, float] = {}
            self._script_factory = script_factory
            self._store_lock = Lock()
            self._initialized = True
            logger.info("repository_initialized")

    async def get_conversation(self, conversation_id: UUID) -> Optional[ConversationController]:
        with self._store_lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                logger.warning("conversation_not_found", conversation_id=str(conversation_id))
            else:
                self._last_seen[conversation_id] = time.monotonic()
            return conversation

    async def list_conversations(self, limit: int = 100, offset: int = 0) -> List[ConversationController]:
        with self._store_lock:
            conversations = sorted(
                self._conversations.values(),
                key=lambda c: c.created_at,
                reverse=True,
            )
            return conversations[offset : offset + limit]

    async def create_conversation(self) -> ConversationController:
        conversation = ConversationController(script=self._script_factory())
        conversation.start()
        with self._store_lock:
            self._conversations[conversation.id] = conversation
            self._last_seen[conversation.id] = time.monotonic()
        logger.info("conversation_created", conversation_id=str(conversation.id))
        return conversation

    async def discard_conversation(self, conversation_id: UUID) -> bool:
        with self._store_lock:
            conversation = self._conversations.pop(conversation_id, None)
            self._last_seen.pop(conversation_id, None)
        if conversation is None:
            logger.warning("conversation_not_found_for_discard", conversation_id=str(conversation_id))
            return False
        logger.info(
            "conversation_discarded",
            conversation_id=str(conversation_id),
            completed=conversation.completed,
        )
        return True

    async def expire_idle(self, max_idle: float, now: Optional[float] = None) -> List[UUID]:
        now = time.monotonic() if now is None else now
        with self._store_lock:
            expired = [cid for cid, seen in self._last_seen.items() if now - seen > max_idle]
            for conversation_id in expired:
                self._conversations.pop(conversation_id, None)
                del self._last_seen[conversation_id]
        if expired:
            logger.info("idle_conversations_expired", count=len(expired), max_idle=max_idle)
        return expired

"""Base repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ..services.controller import ConversationController


class Repository(ABC):
    """Abstract base class for conversation stores."""

    @abstractmethod
    async def get_conversation(self, conversation_id: UUID) -> Optional[ConversationController]:
        """Retrieve a conversation by ID."""
        pass

    @abstractmethod
    async def list_conversations(self, limit: int = 100, offset: int = 0) -> List[ConversationController]:
        """List conversations, newest first, with pagination."""
        pass

    @abstractmethod
    async def create_conversation(self) -> ConversationController:
        """Create and start a new conversation."""
        pass

    @abstractmethod
    async def discard_conversation(self, conversation_id: UUID) -> bool:
        """Forget a conversation. Returns False if it was unknown."""
        pass

    @abstractmethod
    async def expire_idle(self, max_idle: float, now: Optional[float] = None) -> List[UUID]:
        """Forget conversations untouched for more than ``max_idle`` seconds."""
        pass

"""Typing-delay pacing for assistant messages."""

import asyncio
from typing import AsyncIterator, Iterable, List

import structlog

from ..domain.models import Author, ConversationMessage

logger = structlog.get_logger()


class TypingPacer:
    """Releases already-emitted messages with a pause before each assistant reply.

    Pacing runs after the controller has finished a transition, so a cancelled
    pacer (client gone, shutdown) only loses the pause, never state.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = max(0.0, delay)

    async def pace(self, messages: Iterable[ConversationMessage]) -> AsyncIterator[ConversationMessage]:
        """Yield messages in order, sleeping before each assistant message."""
        for message in messages:
            if message.author == Author.ASSISTANT and self.delay > 0:
                try:
                    await asyncio.sleep(self.delay)
                except asyncio.CancelledError:
                    logger.info("pacing_cancelled", message_id=message.id)
                    raise
            yield message

    async def deliver(self, messages: Iterable[ConversationMessage]) -> List[ConversationMessage]:
        """Wait out the pacing and return the delivered messages."""
        return [message async for message in self.pace(messages)]

"""Read-only rendering view over a conversation's message log."""

from typing import Iterable, List

from ..domain.models import ConversationMessage


def project_messages(messages: Iterable[ConversationMessage]) -> List[ConversationMessage]:
    """Messages in display order; an empty log gives an empty list."""
    return sorted(messages, key=lambda m: m.id)

"""Domain models for the recruitment chat."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuestionKind(str, Enum):
    """How a question is answered."""

    FREE_TEXT = "free_text"
    SINGLE_SELECT = "single_select"


class Author(str, Enum):
    """Who wrote a message."""

    ASSISTANT = "assistant"
    USER = "user"


class Phase(str, Enum):
    """Coarse position of a conversation in the question flow."""

    GREETING = "greeting"
    AWAITING_ANSWER = "awaiting_answer"
    COMPLETED = "completed"


class Outcome(str, Enum):
    """What a controller operation did with its input."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IGNORED = "ignored"
    COMPLETED = "completed"


class QuestionSpec(BaseModel):
    """A single scripted question."""

    model_config = ConfigDict(frozen=True)

    key: str
    prompt: str
    kind: QuestionKind = QuestionKind.FREE_TEXT
    options: Optional[Tuple[str, ...]] = None
    label: Optional[str] = None
    icon: Optional[str] = None

    @model_validator(mode="after")
    def _check_options(self) -> "QuestionSpec":
        if self.kind == QuestionKind.SINGLE_SELECT and not self.options:
            raise ValueError(f"Question {self.key!r} needs at least one option")
        if self.kind == QuestionKind.FREE_TEXT and self.options is not None:
            raise ValueError(f"Free-text question {self.key!r} cannot define options")
        return self

    @property
    def display_label(self) -> str:
        return self.label or self.key

    def summary_line(self, answer: str) -> str:
        """`📝 **Name:** Ada` style line for the closing summary."""
        line = f"**{self.display_label}:** {answer}"
        return f"{self.icon} {line}" if self.icon else line


class ConversationMessage(BaseModel):
    """Message model. Ids grow with creation order."""

    model_config = ConfigDict(frozen=True)

    id: int
    author: Author
    text: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Turn(BaseModel):
    """Report of one controller operation and the messages it appended."""

    outcome: Outcome
    emitted: List[ConversationMessage] = []


class ConversationSnapshot(BaseModel):
    """Read-only copy of a conversation handed to renderers."""

    id: UUID
    phase: Phase
    cursor: int
    completed: bool
    answers: Dict[str, str] = {}
    current_question: Optional[QuestionSpec] = None
    messages: List[ConversationMessage] = []
    created_at: datetime

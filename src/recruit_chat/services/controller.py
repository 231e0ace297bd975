"""
Conversation Controller

Drives a single recruitment conversation through its question script. The
controller owns the message log, the cursor into the script, the collected
answers and the completion flag; nothing else mutates them.

Every operation is synchronous and leaves the state fully updated before it
returns. Display pacing lives in ``services.pacing`` and never feeds back here.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from structlog import get_logger

from ..domain.models import (
    Author,
    ConversationMessage,
    ConversationSnapshot,
    Outcome,
    Phase,
    QuestionKind,
    QuestionSpec,
    Turn,
)
from ..domain.script import QuestionScript, default_script
from .projection import project_messages
from .validation import option_error, validate_answer

logger = get_logger()

GREETING = (
    "Hello! I'm your recruitment assistant. I'll ask you a few questions "
    "to get to know you better. Let's start!"
)
SUMMARY_HEADER = "Thank you for providing all the information! Here's what I have collected:"
SUMMARY_FOOTER = (
    "Is this information correct? Our recruitment team will review your details "
    "and get back to you soon!"
)


class ConversationController:
    """Owns and advances the state of one conversation."""

    def __init__(
        self,
        script: Optional[QuestionScript] = None,
        conversation_id: Optional[UUID] = None,
    ) -> None:
        self.id = conversation_id or uuid4()
        self.script = script or default_script()
        self.created_at = datetime.utcnow()
        self._messages: List[ConversationMessage] = []
        self._answers: Dict[str, str] = {}
        self._cursor = 0
        self._started = False
        self._completed = False

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._messages)

    @property
    def answers(self) -> Dict[str, str]:
        return dict(self._answers)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def started(self) -> bool:
        return self._started

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def current_question(self) -> Optional[QuestionSpec]:
        if self._completed:
            return None
        return self.script.get(self._cursor)

    @property
    def phase(self) -> Phase:
        if self._completed:
            return Phase.COMPLETED
        if not self._started:
            return Phase.GREETING
        return Phase.AWAITING_ANSWER

    def start(self) -> Turn:
        """Greet the user and ask the first question."""
        if self._started:
            logger.warning("conversation_already_started", conversation_id=str(self.id))
            return Turn(outcome=Outcome.IGNORED)

        self._started = True
        emitted = [self._append(Author.ASSISTANT, GREETING)]
        emitted.append(self._append(Author.ASSISTANT, self.script.get(0).prompt))
        logger.info("conversation_started", conversation_id=str(self.id))
        return Turn(outcome=Outcome.ACCEPTED, emitted=emitted)

    def submit_free_text(self, text: str) -> Turn:
        """Handle a typed answer for the current question."""
        question = self._accepting_question("submit_free_text")
        if question is None:
            return Turn(outcome=Outcome.IGNORED)

        answer = (text or "").strip()
        if not answer:
            return Turn(outcome=Outcome.IGNORED)

        # The raw answer is logged even when it fails validation.
        emitted = [self._append(Author.USER, answer)]

        if question.kind == QuestionKind.SINGLE_SELECT:
            error = None if answer in question.options else option_error(question.options)
        else:
            error = validate_answer(question.key, answer)

        if error is not None:
            emitted.append(self._append(Author.ASSISTANT, error))
            logger.info(
                "answer_rejected",
                conversation_id=str(self.id),
                question=question.key,
            )
            return Turn(outcome=Outcome.REJECTED, emitted=emitted)

        return self._record(question, answer, emitted)

    def select_option(self, option: str) -> Turn:
        """Handle a click on one of the current question's options."""
        question = self._accepting_question("select_option")
        if question is None:
            return Turn(outcome=Outcome.IGNORED)

        if question.kind != QuestionKind.SINGLE_SELECT or option not in question.options:
            logger.warning(
                "untrusted_option_ignored",
                conversation_id=str(self.id),
                question=question.key,
                option=option,
            )
            return Turn(outcome=Outcome.IGNORED)

        emitted = [self._append(Author.USER, option)]
        return self._record(question, option, emitted)

    def snapshot(self) -> ConversationSnapshot:
        """Copy of the current state for rendering layers."""
        return ConversationSnapshot(
            id=self.id,
            phase=self.phase,
            cursor=self._cursor,
            completed=self._completed,
            answers=dict(self._answers),
            current_question=self.current_question,
            messages=project_messages(self._messages),
            created_at=self.created_at,
        )

    def summary_text(self) -> str:
        lines = [SUMMARY_HEADER, ""]
        for question in self.script:
            lines.append(question.summary_line(self._answers.get(question.key, "")))
        lines.extend(["", SUMMARY_FOOTER])
        return "\n".join(lines)

    def _accepting_question(self, operation: str) -> Optional[QuestionSpec]:
        if not self._started or self._completed:
            logger.info(
                "input_ignored",
                conversation_id=str(self.id),
                operation=operation,
                phase=self.phase.value,
            )
            return None
        return self.script.get(self._cursor)

    def _record(
        self, question: QuestionSpec, answer: str, emitted: List[ConversationMessage]
    ) -> Turn:
        self._answers[question.key] = answer
        self._cursor += 1
        logger.info(
            "answer_accepted",
            conversation_id=str(self.id),
            question=question.key,
            cursor=self._cursor,
        )

        next_question = self.script.get(self._cursor)
        if next_question is not None:
            emitted.append(self._append(Author.ASSISTANT, next_question.prompt))
            return Turn(outcome=Outcome.ACCEPTED, emitted=emitted)

        # Built only after the last answer is stored.
        emitted.append(self._append(Author.ASSISTANT, self.summary_text()))
        self._completed = True
        logger.info(
            "conversation_completed",
            conversation_id=str(self.id),
            answers=len(self._answers),
        )
        return Turn(outcome=Outcome.COMPLETED, emitted=emitted)

    def _append(self, author: Author, text: str) -> ConversationMessage:
        message = ConversationMessage(id=len(self._messages) + 1, author=author, text=text)
        self._messages.append(message)
        return message

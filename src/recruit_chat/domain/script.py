"""The fixed question script driving a conversation."""

from typing import Iterator, Optional, Sequence

from .models import QuestionKind, QuestionSpec


class QuestionScript:
    """Ordered, read-only sequence of questions."""

    def __init__(self, questions: Sequence[QuestionSpec]) -> None:
        if not questions:
            raise ValueError("A question script needs at least one question")
        keys = [q.key for q in questions]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate question keys: {', '.join(duplicates)}")
        self._questions = tuple(questions)

    def get(self, index: int) -> Optional[QuestionSpec]:
        """Return the question at ``index`` or None past the end of the script."""
        if 0 <= index < len(self._questions):
            return self._questions[index]
        return None

    def length(self) -> int:
        return len(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[QuestionSpec]:
        return iter(self._questions)


DEFAULT_QUESTIONS = (
    QuestionSpec(key="name", label="Name", icon="📝", prompt="Please tell me your *Name*."),
    QuestionSpec(key="email", label="Email", icon="📧", prompt="Please provide your *Email address*."),
    QuestionSpec(key="phone", label="Phone", icon="📞", prompt="Please provide your *Phone Number*."),
    QuestionSpec(key="gender", label="Gender", icon="👤", prompt="What is your *Gender*?"),
    QuestionSpec(
        key="profileType",
        label="Profile Type",
        icon="🎯",
        prompt="Please select your *Profile Type*.",
        kind=QuestionKind.SINGLE_SELECT,
        options=("Student", "Fresher", "Working"),
    ),
    QuestionSpec(
        key="language",
        label="Language",
        icon="🌐",
        prompt="Finally, please select a *Language* to continue the conversation.",
        kind=QuestionKind.SINGLE_SELECT,
        options=("English", "Tamil", "Hindi", "French"),
    ),
)


def default_script() -> QuestionScript:
    """Script used for every new conversation."""
    return QuestionScript(DEFAULT_QUESTIONS)

"""Test suite for the conversation controller."""

import pytest

from recruit_chat.domain.models import Author, Outcome, Phase, QuestionKind, QuestionSpec
from recruit_chat.domain.script import QuestionScript, default_script
from recruit_chat.services.controller import GREETING, ConversationController
from recruit_chat.services.validation import EMAIL_ERROR, PHONE_ERROR

VALID_ANSWERS = [
    ("name", "Ada"),
    ("email", "a@b.com"),
    ("phone", "1234567890"),
    ("gender", "F"),
    ("profileType", "Student"),
    ("language", "English"),
]


def answer(controller: ConversationController, key: str, value: str):
    if controller.current_question.kind == QuestionKind.SINGLE_SELECT:
        return controller.select_option(value)
    return controller.submit_free_text(value)


def started() -> ConversationController:
    controller = ConversationController()
    controller.start()
    return controller


def state(controller: ConversationController):
    return controller.messages, controller.cursor, controller.answers, controller.completed


def test_initial_state_before_start():
    """A fresh controller has no messages and sits in the greeting phase."""
    controller = ConversationController()
    assert controller.messages == ()
    assert controller.cursor == 0
    assert controller.answers == {}
    assert controller.completed is False
    assert controller.phase == Phase.GREETING
    assert controller.snapshot().messages == []


def test_start_greets_and_asks_first_question():
    """Start emits the greeting followed by the first prompt."""
    controller = ConversationController()
    turn = controller.start()

    assert turn.outcome == Outcome.ACCEPTED
    assert [m.text for m in controller.messages] == [GREETING, "Please tell me your *Name*."]
    assert all(m.author == Author.ASSISTANT for m in controller.messages)
    assert controller.cursor == 0
    assert controller.phase == Phase.AWAITING_ANSWER


def test_start_twice_is_ignored():
    controller = started()
    turn = controller.start()
    assert turn.outcome == Outcome.IGNORED
    assert len(controller.messages) == 2


def test_input_before_start_is_ignored():
    controller = ConversationController()
    assert controller.submit_free_text("Ada").outcome == Outcome.IGNORED
    assert controller.messages == ()
    assert controller.cursor == 0


def test_cursor_tracks_valid_answers():
    """After i valid answers the cursor and answer count both equal i."""
    controller = started()
    for i, (key, value) in enumerate(VALID_ANSWERS, start=1):
        answer(controller, key, value)
        assert controller.cursor == i
        assert len(controller.answers) == i
        assert controller.answers[key] == value


def test_full_questionnaire_produces_summary():
    """Completing the script emits one summary holding every answer."""
    controller = started()
    turns = [answer(controller, key, value) for key, value in VALID_ANSWERS]

    assert turns[-1].outcome == Outcome.COMPLETED
    assert controller.completed is True
    assert controller.phase == Phase.COMPLETED
    assert controller.current_question is None
    assert controller.answers == dict(VALID_ANSWERS)

    summary = controller.messages[-1]
    assert summary.author == Author.ASSISTANT
    assert summary == turns[-1].emitted[-1]
    for _, value in VALID_ANSWERS:
        assert value in summary.text
    assert "📝 **Name:** Ada" in summary.text
    assert "🎯 **Profile Type:** Student" in summary.text
    assert "🌐 **Language:** English" in summary.text


def test_answers_follow_script_order():
    controller = started()
    for key, value in VALID_ANSWERS:
        answer(controller, key, value)
    assert list(controller.answers) == [q.key for q in default_script()]


def test_invalid_email_reasks_same_question():
    """A malformed email is logged, answered with guidance and re-asked."""
    controller = started()
    controller.submit_free_text("Ada")
    before = len(controller.messages)

    turn = controller.submit_free_text("not-an-email")

    assert turn.outcome == Outcome.REJECTED
    assert [m.author for m in turn.emitted] == [Author.USER, Author.ASSISTANT]
    assert turn.emitted[0].text == "not-an-email"
    assert turn.emitted[1].text == EMAIL_ERROR
    assert len(controller.messages) == before + 2
    assert controller.cursor == 1
    assert "email" not in controller.answers
    assert controller.current_question.key == "email"


def test_invalid_email_rejection_is_repeatable():
    controller = started()
    controller.submit_free_text("Ada")
    outcomes = [controller.submit_free_text("ab.com") for _ in range(3)]

    assert all(t.outcome == Outcome.REJECTED for t in outcomes)
    assert all(t.emitted[-1].text == EMAIL_ERROR for t in outcomes)
    assert controller.cursor == 1


def test_invalid_phone_message_mentions_minimum():
    controller = started()
    controller.submit_free_text("Ada")
    controller.submit_free_text("a@b.com")

    turn = controller.submit_free_text("123456789")

    assert turn.outcome == Outcome.REJECTED
    assert turn.emitted[-1].text == PHONE_ERROR
    assert "10" in PHONE_ERROR
    assert controller.cursor == 2


@pytest.mark.parametrize("blank", ["", "   ", "\t\n"])
def test_empty_submission_changes_nothing(blank):
    """Whitespace-only input leaves messages, cursor and answers untouched."""
    controller = started()
    before = state(controller)

    turn = controller.submit_free_text(blank)

    assert turn.outcome == Outcome.IGNORED
    assert turn.emitted == []
    assert state(controller) == before


def test_free_text_is_trimmed():
    controller = started()
    turn = controller.submit_free_text("  Ada Lovelace  ")
    assert turn.emitted[0].text == "Ada Lovelace"
    assert controller.answers["name"] == "Ada Lovelace"


def test_select_option_records_choice_and_advances():
    """Picking Student appends one user message and moves to the language question."""
    controller = started()
    for key, value in VALID_ANSWERS[:4]:
        answer(controller, key, value)
    before = len(controller.messages)

    turn = controller.select_option("Student")

    user_messages = [m for m in controller.messages[before:] if m.author == Author.USER]
    assert [m.text for m in user_messages] == ["Student"]
    assert controller.answers["profileType"] == "Student"
    assert controller.current_question.key == "language"
    assert turn.emitted[-1].text == controller.current_question.prompt


def test_select_option_outside_options_fails_closed():
    controller = started()
    for key, value in VALID_ANSWERS[:4]:
        answer(controller, key, value)
    before = state(controller)

    turn = controller.select_option("Retired")

    assert turn.outcome == Outcome.IGNORED
    assert state(controller) == before


def test_select_option_on_free_text_question_is_ignored():
    controller = started()
    before = state(controller)
    assert controller.select_option("Student").outcome == Outcome.IGNORED
    assert state(controller) == before


def test_typed_text_on_select_question():
    """Typed text must match an option exactly, otherwise the options are listed again."""
    controller = started()
    for key, value in VALID_ANSWERS[:4]:
        answer(controller, key, value)

    rejected = controller.submit_free_text("student")
    assert rejected.outcome == Outcome.REJECTED
    assert "Student, Fresher, Working" in rejected.emitted[-1].text
    assert controller.cursor == 4

    accepted = controller.submit_free_text("Fresher")
    assert accepted.outcome == Outcome.ACCEPTED
    assert controller.answers["profileType"] == "Fresher"


def test_completed_conversation_ignores_input():
    """Once completed, nothing changes the conversation."""
    controller = started()
    for key, value in VALID_ANSWERS:
        answer(controller, key, value)
    before = state(controller)

    assert controller.submit_free_text("hello").outcome == Outcome.IGNORED
    assert controller.select_option("English").outcome == Outcome.IGNORED
    assert state(controller) == before


def test_message_ids_are_increasing():
    controller = started()
    controller.submit_free_text("Ada")
    controller.submit_free_text("bad")
    ids = [m.id for m in controller.messages]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_snapshot_is_a_copy():
    controller = started()
    controller.submit_free_text("Ada")
    snapshot = controller.snapshot()

    snapshot.answers["name"] = "Mallory"
    snapshot.messages.clear()

    assert controller.answers["name"] == "Ada"
    assert len(controller.messages) == 4
    assert snapshot.current_question.key == "email"


def test_custom_script_with_single_question():
    script = QuestionScript([QuestionSpec(key="city", prompt="Which city?")])
    controller = ConversationController(script=script)
    controller.start()

    turn = controller.submit_free_text("Paris")

    assert turn.outcome == Outcome.COMPLETED
    assert "**city:** Paris" in controller.messages[-1].text

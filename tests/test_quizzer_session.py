from __future__ import annotations

import pytest

from fixtures import flat_bank, grouped_bank, question
from quizbank.quizzer import (
    InvalidOptionError,
    NoAnswerKeyError,
    QuizSession,
    SessionFinishedError,
    SessionState,
    normalize,
    summarize,
)


@pytest.fixture
def session(flat_questions) -> QuizSession:
    return QuizSession(normalize(flat_questions))


def test_new_session_starts_active_at_first_question(session):
    assert session.state is SessionState.ACTIVE
    assert session.current_index == 0
    assert session.answers == {}
    assert session.summary is None


def test_practice_scenario_scores_three_of_three(session):
    for letter in ["A", "B", "A"]:
        session.select_option(letter)
        summary = session.advance()

    assert session.is_finished
    assert summary is session.summary
    assert summary.correct == 3
    assert summary.total == 3
    assert summary.answered == 3
    assert summary.unanswered == 0
    assert summary.accuracy == 1.0


def test_advance_reaches_finished_exactly_once(session):
    results = [session.advance() for _ in range(session.total)]

    assert results[:-1] == [None, None]
    assert results[-1] is not None
    assert session.is_finished
    with pytest.raises(SessionFinishedError):
        session.advance()


def test_select_option_overwrites_and_is_idempotent(session):
    session.select_option("a")
    session.select_option("B")
    once = dict(session.answers)
    session.select_option("b")

    assert dict(session.answers) == once == {0: "B"}
    assert session.selected_for() == "B"


def test_select_option_rejects_letters_outside_options(session):
    session.select_option("A")

    with pytest.raises(InvalidOptionError) as excinfo:
        session.select_option("C")

    assert excinfo.value.allowed == ("A", "B")
    assert session.answers == {0: "A"}
    assert session.state is SessionState.ACTIVE


def test_retreat_at_first_question_is_noop(session):
    session.select_option("B")

    session.retreat()

    assert session.current_index == 0
    assert session.answers == {0: "B"}


def test_navigation_preserves_answers(session):
    session.select_option("B")
    session.advance()
    session.select_option("A")
    session.retreat()

    assert session.current_index == 0
    assert session.view().selected == "B"
    session.advance()
    assert session.view().selected == "A"


def test_reveal_is_a_pure_read(session):
    session.select_option("B")

    result = session.reveal()

    assert result.correct_letter == "A"
    assert result.selected_letter == "B"
    assert result.is_correct is False
    assert session.answers == {0: "B"}
    assert session.current_index == 0


def test_reveal_without_selection():
    session = QuizSession(normalize([question("Q", answer="b")]))

    result = session.reveal()

    assert result.correct_letter == "B"
    assert result.selected_letter is None
    assert not result.is_correct


@pytest.mark.parametrize("answer", ["", None, "   "])
def test_reveal_without_answer_key_fails_and_keeps_answers(answer):
    session = QuizSession(normalize([question("Q", answer=answer)]))
    session.select_option("A")

    with pytest.raises(NoAnswerKeyError):
        session.reveal()

    assert session.answers == {0: "A"}
    assert session.state is SessionState.ACTIVE
    assert session.view().revealed is None


def test_view_exposes_current_question(session):
    session.select_option("A")
    session.reveal()

    view = session.view()

    assert view.position == 1
    assert view.total == 3
    assert view.is_first and not view.is_last
    assert [o.letter for o in view.options] == ["A", "B"]
    assert [o.selected for o in view.options] == [True, False]
    assert view.revealed is not None and view.revealed.is_correct
    assert view.revealed.correct_text == "First"
    assert view.answered == 1
    assert not view.has_image


def test_view_reports_last_question(session):
    session.advance()
    session.advance()

    assert session.view().is_last


def test_operations_after_finish_are_rejected(session):
    for _ in range(session.total):
        session.advance()

    with pytest.raises(SessionFinishedError):
        session.select_option("A")
    with pytest.raises(SessionFinishedError):
        session.reveal()
    with pytest.raises(SessionFinishedError):
        session.view()
    session.retreat()
    assert session.is_finished
    assert session.current_index == session.total - 1


def test_empty_session_starts_finished():
    session = QuizSession([])

    assert session.is_finished
    assert session.summary.total == 0
    assert session.summary.accuracy == 0.0
    with pytest.raises(SessionFinishedError):
        session.view()


def test_summary_treats_missing_keys_as_ungraded():
    records = normalize(
        [
            question("graded right", answer="A"),
            question("graded wrong", answer="B"),
            question("no key", answer=None),
            question("unanswered", answer="A"),
        ]
    )

    summary = summarize(records, {0: "a", 1: "A", 2: "A"})

    assert summary.correct == 1
    assert summary.incorrect == 2
    assert summary.ungraded == 1
    assert summary.answered == 3
    assert summary.graded == 3
    assert summary.accuracy == pytest.approx(1 / 3)
    assert [item.is_correct for item in summary.items] == [
        True,
        False,
        False,
        False,
    ]
    assert summary.items[2].graded is False


def test_summary_groups_by_source_group():
    records = normalize(grouped_bank({"Limits": ["A", "B"], "Series": ["A"]}))

    summary = summarize(records, {0: "A", 1: "A", 2: "A"})

    limits = summary.per_group["Limits"]
    assert (limits.asked, limits.graded, limits.correct) == (2, 2, 1)
    assert limits.accuracy == 0.5
    assert summary.per_group["Series"].correct == 1


def test_session_does_not_mutate_shared_records(flat_questions):
    records = normalize(flat_questions)
    snapshot = list(records)
    session = QuizSession(records)
    session.select_option("B")
    session.advance()

    assert records == snapshot
    assert session.questions == tuple(snapshot)


def test_compute_summary_can_run_mid_session():
    session = QuizSession(normalize(flat_bank(["A", "A"])))
    session.select_option("A")

    assert session.compute_summary().correct == 1
    assert session.summary is None

from __future__ import annotations

import asyncio
import random

import pytest

from quizbank.quizzer import (
    EmptyBankError,
    FetchError,
    MalformedBankError,
    NoAnswerKeyError,
    QuizController,
    QuizStateError,
    SessionConfig,
    SessionMode,
    Stage,
)
from quizbank.quizzer.config import PartConfig, QuizbankConfig

from fixtures import question


def _load(controller: QuizController, source) -> int:
    return asyncio.run(controller.select_part(str(source)))


def test_flow_from_home_to_finished(write_bank, flat_questions):
    controller = QuizController()
    assert controller.stage is Stage.HOME

    count = _load(controller, write_bank(flat_questions))
    assert count == 3
    assert controller.stage is Stage.MODE_SELECT

    controller.start(SessionConfig(SessionMode.PRACTICE))
    assert controller.stage is Stage.QUIZ

    for letter in "ABA":
        controller.choose_option(letter)
        summary = controller.go_next()
    assert controller.stage is Stage.FINISHED
    assert summary.correct == 3


def test_start_requires_loaded_bank():
    controller = QuizController()

    with pytest.raises(QuizStateError):
        controller.start()
    with pytest.raises(QuizStateError):
        controller.go_next()


@pytest.mark.parametrize(
    "payload, error",
    [
        ([], EmptyBankError),
        ({"not": "a list"}, MalformedBankError),
    ],
)
def test_failed_load_leaves_controller_at_home(write_bank, payload, error):
    controller = QuizController()

    with pytest.raises(error):
        _load(controller, write_bank(payload))

    assert controller.stage is Stage.HOME
    assert controller.bank == ()


def test_failed_reload_discards_previous_bank(
    write_bank, flat_questions, tmp_path
):
    controller = QuizController()
    _load(controller, write_bank(flat_questions))
    controller.start()

    with pytest.raises(FetchError):
        _load(controller, tmp_path / "missing.json")

    assert controller.stage is Stage.HOME
    assert controller.session is None


def test_restart_creates_fresh_session(write_bank, flat_questions):
    controller = QuizController()
    _load(controller, write_bank(flat_questions))
    first = controller.start()
    controller.choose_option("B")
    controller.go_next()

    second = controller.restart()

    assert second is not first
    assert second.current_index == 0
    assert second.answers == {}
    assert controller.stage is Stage.QUIZ


def test_restart_reuses_last_config(write_bank, flat_questions):
    controller = QuizController(rng=random.Random(3))
    _load(controller, write_bank(flat_questions))
    controller.start(SessionConfig(SessionMode.SIMULATION, 2))

    assert controller.restart().total == 2
    assert controller.restart(SessionConfig()).total == 3


def test_simulation_of_zero_is_immediately_finished(write_bank, flat_questions):
    controller = QuizController()
    _load(controller, write_bank(flat_questions))

    session = controller.start(SessionConfig(SessionMode.SIMULATION, 0))

    assert session.is_finished
    assert controller.stage is Stage.FINISHED


def test_reveal_error_keeps_session_running(write_bank):
    controller = QuizController()
    _load(controller, write_bank([question("no key", answer=None)]))
    controller.start()
    controller.choose_option("A")

    with pytest.raises(NoAnswerKeyError):
        controller.reveal()

    assert controller.stage is Stage.QUIZ
    assert controller.current_view().selected == "A"


def test_configured_part_name_resolves_to_source(write_bank, flat_questions):
    path = write_bank(flat_questions)
    config = QuizbankConfig(
        session=SessionConfig(SessionMode.SIMULATION, 1),
        fetch_timeout=5.0,
        log_level="INFO",
        verbose=False,
        parts={"part1": PartConfig("part1", "Part 1", str(path))},
    )
    controller = QuizController(config)

    assert _load(controller, "part1") == 3
    assert controller.part == "part1"
    assert controller.start().total == 1


def test_home_discards_everything(write_bank, flat_questions):
    controller = QuizController()
    _load(controller, write_bank(flat_questions))
    controller.start()

    controller.home()

    assert controller.stage is Stage.HOME
    assert controller.part is None


def test_reselect_mode_keeps_bank(write_bank, flat_questions):
    controller = QuizController()
    _load(controller, write_bank(flat_questions))
    controller.start()

    controller.reselect_mode()

    assert controller.stage is Stage.MODE_SELECT
    assert len(controller.bank) == 3
    controller.home()
    with pytest.raises(QuizStateError):
        controller.reselect_mode()


def test_known_parts_lists_config_then_loaded_sources(
    write_bank, flat_questions
):
    configured = write_bank(flat_questions, "configured.json")
    adhoc = write_bank(flat_questions, "adhoc.json")
    config = QuizbankConfig(
        session=SessionConfig(),
        fetch_timeout=5.0,
        log_level="INFO",
        verbose=False,
        parts={"part1": PartConfig("part1", "Part 1", str(configured))},
    )
    controller = QuizController(config)
    assert controller.known_parts() == [("part1", "Part 1")]

    _load(controller, "part1")
    _load(controller, adhoc)
    controller.home()

    assert controller.known_parts() == [
        ("part1", "Part 1"),
        (str(adhoc), str(adhoc)),
    ]

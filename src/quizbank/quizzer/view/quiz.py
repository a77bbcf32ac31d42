from typing import List, Optional, Sequence, Tuple

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import Button, Input, Static

from ..controller import QuizController, Stage
from ..errors import QuizError
from ..models import SessionConfig, SessionMode, letter_for
from ..session import QuestionView, QuizSummary, RevealResult

_MAX_OPTION_KEYS = 8


def summary_lines(summary: QuizSummary) -> List[str]:
    lines = [
        "Test Finished!",
        f"Answered {summary.answered}/{summary.total}",
        f"Correct {summary.correct}/{summary.graded}"
        f" ({summary.accuracy * 100:.1f}%)",
    ]
    if summary.ungraded:
        lines.append(f"Not graded: {summary.ungraded}")
    for name, group in summary.per_group.items():
        lines.append(f"{name}: {group.correct}/{group.graded}")
    return lines


def reveal_text(result: RevealResult) -> str:
    answer = result.correct_letter
    if result.correct_text:
        answer += f" ({result.correct_text})"
    if result.selected_letter is None:
        text = f"Answer: {answer}"
    elif result.is_correct:
        text = f"Correct. Answer: {answer}"
    else:
        text = f"Incorrect ({result.selected_letter}). Answer: {answer}"
    if result.explanation:
        text += f"\n{result.explanation}"
    return text


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#choices Button.selected { background: $accent; color: black; }
#choices Button.correct { background: $success; }
#choices Button.wrong { background: $error; }
#footer { height: auto; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("r", "reveal", "Reveal"),
        ("escape", "quit", "Quit"),
    ] + [
        (letter_for(i).lower(), f"select('{letter_for(i)}')",
         f"Select {letter_for(i)}")
        for i in range(_MAX_OPTION_KEYS)
    ]

    def __init__(self, controller: QuizController):
        super().__init__()
        self.controller = controller
        self._notice = ""

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield self._stage_widget()
        with Container(id="footer"):
            yield Button("Home", id="home")
            yield Button("Prev", id="prev", disabled=self._prev_disabled())
            yield Button(self._next_label(), id="next")
            yield Button("Reveal", id="reveal")
            yield Button("Restart", id="restart")
            yield Static(Text(self._notice), id="message")

    def _stage_widget(self) -> Widget:
        stage = self.controller.stage
        if stage is Stage.HOME:
            return PartPicker(self.controller.known_parts())
        if stage is Stage.MODE_SELECT:
            return ModePicker(self.controller.default_session_config)
        session = self.controller.session
        if session.total == 0:
            return Static("No questions.", id="empty")
        if session.is_finished:
            return Static("\n".join(summary_lines(session.summary)),
                          id="summary")
        return QuestionPanel(self.controller.current_view())

    def _prev_disabled(self) -> bool:
        if self.controller.stage is not Stage.QUIZ:
            return True
        return self.controller.current_view().is_first

    def _next_label(self) -> str:
        if self.controller.stage is not Stage.QUIZ:
            return "Next"
        return "Finish" if self.controller.current_view().is_last else "Next"

    # Event handlers forward to the controller and then redraw from state.
    async def open_part(self, index: int) -> bool:
        entries = self.controller.known_parts()
        if not 0 <= index < len(entries):
            return False
        name = entries[index][0]
        try:
            count = await self.controller.select_part(name)
        except QuizError as exc:
            self._notice = str(exc)
            self._update_stage()
            return False
        self._notice = f"Loaded {count} questions from {name}."
        self._update_stage()
        return True

    def choose_mode(self, mode: str, count: Optional[str] = None) -> None:
        default = self.controller.default_session_config
        config = SessionConfig.from_values(
            mode, default.simulation_size if count is None else count
        )
        self._guarded(lambda: self.controller.start(config))
        self._update_stage()

    def select_answer(self, key: str) -> bool:
        try:
            self.controller.choose_option(key)
        except QuizError as exc:
            self._notice = str(exc)
            self._update_stage()
            return False
        self._notice = ""
        self._update_stage()
        return True

    def next_question(self) -> Optional[QuizSummary]:
        summary = self._guarded(self.controller.go_next)
        self._update_stage()
        return summary

    def prev_question(self) -> None:
        self._guarded(self.controller.go_prev)
        self._update_stage()

    def reveal_answer(self) -> Optional[RevealResult]:
        result = self._guarded(self.controller.reveal)
        if result is not None:
            self._notice = reveal_text(result)
        self._update_stage()
        return result

    def restart_session(self) -> None:
        self._guarded(self.controller.reselect_mode)
        self._update_stage()

    def go_home(self) -> None:
        self.controller.home()
        self._notice = ""
        self._update_stage()

    def _guarded(self, operation):
        try:
            self._notice = ""
            return operation()
        except QuizError as exc:
            self._notice = str(exc)
            return None

    def _count_value(self) -> Optional[str]:
        try:
            return self.query_one("#count", Input).value
        except Exception:
            return None

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:
            return
        stage.remove_children()
        stage.mount(self._stage_widget())
        for selector, text in (
            ("#message", self._notice),
            ("#next", self._next_label()),
        ):
            try:
                widget = self.query_one(selector)
            except Exception:
                continue
            if isinstance(widget, Button):
                widget.label = text
            else:
                widget.update(Text(text))
        try:
            prev = self.query_one("#prev", Button)
        except Exception:
            return
        prev.disabled = self._prev_disabled()

    def action_next(self) -> None:
        self.next_question()

    def action_prev(self) -> None:
        self.prev_question()

    def action_reveal(self) -> None:
        self.reveal_answer()

    def action_select(self, key: str) -> None:
        self.select_answer(key)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("choice-") and len(bid) == len("choice-") + 1:
            self.select_answer(bid[-1])
        elif bid.startswith("part-") and bid[len("part-"):].isdigit():
            await self.open_part(int(bid[len("part-"):]))
        elif bid == "mode-practice":
            self.choose_mode(SessionMode.PRACTICE.value)
        elif bid == "mode-simulation":
            self.choose_mode(SessionMode.SIMULATION.value, self._count_value())
        elif bid == "next":
            self.action_next()
        elif bid == "prev":
            self.action_prev()
        elif bid == "reveal":
            self.action_reveal()
        elif bid == "restart":
            self.restart_session()
        elif bid == "home":
            self.go_home()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if getattr(event.input, "id", None) == "count":
            self.choose_mode(SessionMode.SIMULATION.value, event.value)


class PartPicker(Widget):
    """Home screen listing configured parts and sources loaded this run."""

    DEFAULT_CSS = "PartPicker { height: auto; }"

    def __init__(self, entries: Sequence[Tuple[str, str]]) -> None:
        super().__init__()
        self.entries = list(entries)

    def compose(self) -> ComposeResult:
        yield Static("Choose a question bank", id="parts-title")
        if not self.entries:
            yield Static(
                Text(
                    "No parts configured. Add [parts.<name>] tables to "
                    "quizbank.toml."
                ),
                id="no-parts",
            )
        with Vertical(id="parts"):
            for idx, (name, title) in enumerate(self.entries):
                label = title if title == name else f"{title} ({name})"
                yield Button(Text(label), id=f"part-{idx}")


class ModePicker(Widget):
    """Practice or simulation, with the simulation count pre-filled."""

    DEFAULT_CSS = "ModePicker { height: auto; }"

    def __init__(self, default: SessionConfig) -> None:
        super().__init__()
        self.default = default

    def compose(self) -> ComposeResult:
        yield Static("Choose a mode", id="mode-title")
        with Horizontal(id="modes"):
            yield Button("Practice", id="mode-practice")
            yield Input(
                value=str(self.default.simulation_size),
                placeholder="Questions",
                id="count",
            )
            yield Button("Simulation", id="mode-simulation")


class QuestionPanel(Widget):
    """Renders one question view: content, choices and progress."""

    DEFAULT_CSS = "QuestionPanel { height: auto; }"

    def __init__(self, view: QuestionView) -> None:
        super().__init__()
        self.question_view = view

    def compose(self) -> ComposeResult:
        view = self.question_view
        if view.source_group:
            yield Static(Text(view.source_group, style="dim"), id="group")
        # Text() keeps bank markup literal instead of parsing it as Rich.
        yield Static(Text(view.content), id="content")
        if view.has_image:
            yield Static(Text(f"[image] {view.image}"), id="image")
        with Vertical(id="choices"):
            for option in view.options:
                btn = Button(
                    Text(f"{option.letter}. {option.text}"),
                    id=f"choice-{option.letter}",
                )
                for name in self.option_classes(option.letter):
                    btn.add_class(name)
                yield btn
        yield Static(
            f"Question {view.position} / {view.total}"
            f" | answered {view.answered}",
            id="progress",
        )

    def option_classes(self, letter: str) -> List[str]:
        classes: List[str] = []
        view = self.question_view
        if letter == view.selected:
            classes.append("selected")
        if view.revealed is not None:
            if letter == view.revealed.correct_letter:
                classes.append("correct")
            elif letter == view.selected:
                classes.append("wrong")
        return classes

"""Rich-powered console front end for a :class:`QuizController`.

The loop renders the current question, reads one command per line from an
input provider, forwards it to the controller and redraws. Keeping input
behind a callable lets tests drive whole sessions from a list of strings.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .controller import QuizController
from .errors import QuizError
from .models import SessionConfig, SessionMode
from .session import QuestionView, QuizSummary, RevealResult

__all__ = [
    "ConsoleCommand",
    "ConsoleResult",
    "choose_part",
    "parse_console_command",
    "prompt_next_step",
    "prompt_session_config",
    "render_question",
    "render_summary",
    "run_console_quiz",
]

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "empty", "home"]

_QUIT_WORDS = {"q", "quit", "exit"}
_MODE_WORDS = {
    "p": SessionMode.PRACTICE,
    "practice": SessionMode.PRACTICE,
    "s": SessionMode.SIMULATION,
    "sim": SessionMode.SIMULATION,
    "simulation": SessionMode.SIMULATION,
}


@dataclass(frozen=True)
class ConsoleCommand:
    """Normalized user command parsed from console input."""

    type: Literal[
        "next", "prev", "reveal", "restart", "home", "quit", "select"
    ]
    choice: str | None = None


@dataclass(frozen=True)
class ConsoleResult:
    """Return value from ``run_console_quiz``."""

    exit_action: ExitAction
    summary: QuizSummary | None


def parse_console_command(raw: str | None) -> ConsoleCommand | None:
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next", "finish"}:
        return ConsoleCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return ConsoleCommand("prev")
    if lowered in {"r", "reveal", "answer", "show"}:
        return ConsoleCommand("reveal")
    if lowered == "restart":
        return ConsoleCommand("restart")
    if lowered == "home":
        return ConsoleCommand("home")
    if lowered in _QUIT_WORDS:
        return ConsoleCommand("quit")
    # ":n" and "select n" reach options whose letter is also a command.
    if lowered.startswith("select "):
        text = text[len("select "):].strip()
    elif text.startswith(":"):
        text = text[1:].strip()
    if len(text) == 1 and text.isalpha():
        return ConsoleCommand("select", text.upper())
    return None


def _read_line(console: Console, input_provider: InputProvider) -> str | None:
    try:
        return input_provider()
    except (EOFError, KeyboardInterrupt, StopIteration):
        console.print("\n[bold yellow]Session interrupted.[/]")
        return None


def prompt_session_config(
    console: Console,
    input_provider: InputProvider,
    default: SessionConfig,
) -> SessionConfig | None:
    """Ask for practice or simulation, and for a count in simulation.

    Enter keeps ``default``; ``None`` means the user quit. The count goes
    through :meth:`SessionConfig.from_values`, so junk falls back to the
    default and negatives clamp to zero.
    """

    console.print(
        Text(
            "Mode: p (practice) or s (simulation) "
            f"[Enter for {default.mode.value}]",
            style="bold",
        )
    )
    while True:
        raw = _read_line(console, input_provider)
        if raw is None:
            return None
        choice = raw.strip().lower()
        if choice in _QUIT_WORDS:
            console.print("\n[bold yellow]Ending session.[/]")
            return None
        if not choice:
            mode = default.mode
            break
        if choice in _MODE_WORDS:
            mode = _MODE_WORDS[choice]
            break
        console.print("[red]Unrecognized mode. Type p or s.[/]")

    if mode is SessionMode.PRACTICE:
        return SessionConfig.from_values(mode, default.simulation_size)
    console.print(
        Text(
            f"How many questions? [Enter for {default.simulation_size}]",
            style="bold",
        )
    )
    raw = _read_line(console, input_provider)
    if raw is None:
        return None
    return SessionConfig.from_values(
        mode, raw.strip() or default.simulation_size
    )


def choose_part(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
) -> bool:
    """Home screen: load a part by number, name or source.

    Returns ``False`` when the user leaves without loading anything.
    """

    entries = controller.known_parts()
    console.print()
    console.rule(Text("Question banks", style="bold cyan"))
    if entries:
        table = Table(show_header=False, box=box.SIMPLE)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Part")
        table.add_column("Title", style="dim")
        for idx, (name, title) in enumerate(entries, start=1):
            table.add_row(str(idx), Text(name), Text(title))
        console.print(table)
    console.print(
        Text("Pick a number, part name or bank path (Enter to quit).", "dim")
    )
    while True:
        raw = _read_line(console, input_provider)
        if raw is None:
            return False
        choice = raw.strip()
        if not choice or choice.lower() in _QUIT_WORDS:
            return False
        if choice.isdigit() and 1 <= int(choice) <= len(entries):
            choice = entries[int(choice) - 1][0]
        try:
            count = asyncio.run(controller.select_part(choice))
        except QuizError as exc:
            console.print(Text(str(exc), style="red"))
            continue
        console.print(Text(f"Loaded {count} questions from {choice}."))
        return True


def prompt_next_step(
    console: Console, input_provider: InputProvider
) -> Literal["restart", "home"] | None:
    """After a finished session: restart, go home, or quit (``None``)."""

    console.print(Text("Next: restart, home or quit.", style="bold"))
    while True:
        raw = _read_line(console, input_provider)
        if raw is None:
            return None
        command = parse_console_command(raw)
        if command is not None and command.type == "quit":
            return None
        if command is not None and command.type in {"restart", "home"}:
            return command.type
        console.print("[red]Type restart, home or quit.[/]")


def run_console_quiz(
    controller: QuizController,
    console: Console,
    input_provider: InputProvider,
    *,
    config: SessionConfig | None = None,
) -> ConsoleResult:
    """Run a session on ``controller``'s loaded bank until it ends.

    Without ``config`` the user picks the mode first, as they do again on
    ``restart``. ``home`` discards the bank and returns ``"home"``.
    """

    if config is None:
        config = prompt_session_config(
            console, input_provider, controller.default_session_config
        )
        if config is None:
            return ConsoleResult("quit", None)
    session = controller.start(config)

    while True:
        if session.total == 0:
            console.print(
                Panel(
                    "No questions selected for this session.",
                    title="Quiz Session",
                    border_style="yellow",
                )
            )
            return ConsoleResult("empty", session.summary)
        render_question(console, controller.current_view())
        raw = _read_line(console, input_provider)
        if raw is None:
            return ConsoleResult("quit", None)
        command = parse_console_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session.[/]")
            return ConsoleResult("quit", None)
        if command.type == "home":
            controller.home()
            return ConsoleResult("home", None)
        if command.type == "restart":
            new_config = prompt_session_config(
                console, input_provider, controller.default_session_config
            )
            if new_config is None:
                return ConsoleResult("quit", None)
            session = controller.restart(new_config)
            console.print("[bold]Session restarted.[/]")
            continue
        summary = _apply_command(command, controller, console)
        if summary is not None:
            render_summary(console, summary)
            return ConsoleResult("finished", summary)


def _apply_command(
    command: ConsoleCommand,
    controller: QuizController,
    console: Console,
) -> QuizSummary | None:
    try:
        if command.type == "select" and command.choice:
            controller.choose_option(command.choice)
        elif command.type == "next":
            return controller.go_next()
        elif command.type == "prev":
            controller.go_prev()
        elif command.type == "reveal":
            _render_reveal(console, controller.reveal())
    except QuizError as exc:
        console.print(Text(str(exc), style="red"))
    return None


def render_question(console: Console, view: QuestionView) -> None:
    header = Text.assemble(
        (f"Question {view.position}", "bold cyan"),
        (f" / {view.total}", "dim"),
    )
    console.print()
    console.rule(header)
    if view.source_group:
        console.print(Text(view.source_group, style="dim italic"))
    # Markup in bank content is shown verbatim, never interpreted.
    console.print(Text(view.content, style="bold"))
    if view.has_image:
        console.print(Text(f"[image] {view.image}", style="dim"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    revealed = view.revealed
    for option in view.options:
        indicator = "•" if option.selected else " "
        row_text = Text(indicator + " ")
        row_text.append(option.text, style=_option_style(option, revealed))
        table.add_row(option.letter, row_text)
    console.print(table)

    letters = ", ".join(option.letter for option in view.options)
    next_label = "finish" if view.is_last else "next"
    nav = f"n ({next_label})"
    if not view.is_first:
        nav += ", p (prev)"
    selected = view.selected or "none"
    console.print(
        Text(
            f"Selected: {selected} | Answered {view.answered}/{view.total}",
            style="dim",
        )
    )
    console.print(
        Text(
            f"Commands: choices [{letters}] (or :X), {nav}, "
            "r (reveal), restart, home, quit",
            style="dim",
        )
    )


def _option_style(option, revealed: RevealResult | None) -> str:
    if revealed is not None:
        if option.letter == revealed.correct_letter:
            return "bold green"
        if option.selected:
            return "bold red"
    if option.selected:
        return "bold"
    return ""


def _render_reveal(console: Console, result: RevealResult) -> None:
    answer = result.correct_letter
    if result.correct_text:
        answer += f" ({result.correct_text})"
    if result.selected_letter is None:
        message = f"Correct answer: {answer}."
        style = "yellow"
    elif result.is_correct:
        message = f"Correct! The answer is {answer}."
        style = "green"
    else:
        message = (
            f"Incorrect: you chose {result.selected_letter}, "
            f"the answer is {answer}."
        )
        style = "red"
    console.print(Text(message, style=f"bold {style}"))
    if result.explanation:
        console.print(
            Panel(result.explanation, title="Explanation", border_style=style)
        )


def render_summary(console: Console, summary: QuizSummary) -> None:
    console.print()
    console.rule(Text("Test Finished!", style="bold magenta"))

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(summary.total))
    overview.add_row("Answered", str(summary.answered))
    overview.add_row("Unanswered", str(summary.unanswered))
    overview.add_row("Correct", f"{summary.correct}/{summary.graded}")
    if summary.ungraded:
        overview.add_row("Not graded", str(summary.ungraded))
    overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
    console.print(overview)

    if summary.per_group:
        per_group = Table(title="Per group", box=box.SIMPLE, expand=False)
        per_group.add_column("Group")
        per_group.add_column("Asked", justify="right")
        per_group.add_column("Correct", justify="right")
        per_group.add_column("Accuracy", justify="right")
        for name, metrics in summary.per_group.items():
            per_group.add_row(
                Text(name),
                str(metrics.asked),
                f"{metrics.correct}/{metrics.graded}",
                f"{metrics.accuracy * 100:.1f}%",
            )
        console.print(per_group)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct answer")
    responses.add_column("Result", justify="center")
    for item in summary.items:
        if not item.graded:
            outcome = "—"
        else:
            outcome = "✅" if item.is_correct else "❌"
        responses.add_row(
            str(item.index + 1),
            Text(item.content or f"Question {item.index + 1}"),
            item.selected or "—",
            item.answer or "—",
            outcome,
        )
    console.print(responses)

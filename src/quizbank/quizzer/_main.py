import argparse
import asyncio
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError, ensure_workspace
from .config import (
    ConfigOverrides,
    LoadResult,
    QuizConfigError,
    default_config_path,
    load_config,
    write_template,
)
from .console import choose_part, prompt_next_step, run_console_quiz
from .controller import QuizController
from .errors import QuizError
from .models import SessionMode


def _load(args: argparse.Namespace) -> LoadResult:
    overrides = ConfigOverrides(
        mode=getattr(args, "mode", None),
        simulation_size=getattr(args, "count", None),
        log_level=getattr(args, "log_level", None),
        verbose=True if getattr(args, "verbose", False) else None,
    )
    return load_config(
        config_path=args.config,
        overrides=overrides,
        workspace_path=args.workspace,
    )


def _error(message: str) -> None:
    sys.stderr.write(f"Error: {message}\n")


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        layout = ensure_workspace(path=args.workspace)
    except WorkspaceError as exc:
        _error(str(exc))
        return 2
    path = args.config or default_config_path(layout)
    if path.exists() and not args.force:
        print(f"quizbank.toml already exists at {path}")
        return 0
    try:
        write_template(path, overwrite=args.force)
    except QuizConfigError as exc:
        _error(str(exc))
        return 2
    print(f"Created template {path}")
    return 0


def _cmd_parts(args: argparse.Namespace) -> int:
    try:
        result = _load(args)
    except QuizConfigError as exc:
        _error(str(exc))
        return 2
    parts = result.config.parts
    if not parts:
        where = result.config_path or default_config_path(result.layout)
        print(f"No parts configured. Add [parts.<name>] tables to {where}.")
        return 1
    for name, part in parts.items():
        print(f"- {name}: {part.title} ({part.source})")
    return 0


def _cmd_start(args: argparse.Namespace) -> int:
    try:
        result = _load(args)
    except QuizConfigError as exc:
        _error(str(exc))
        return 2

    config = result.config
    logger, log_path = configure_logger(
        "quizbank",
        log_dir=result.layout.path_for("logs"),
        level=config.log_level,
        verbose=config.verbose,
    )
    logger.debug("quizbank start invoked", extra={"log_path": log_path})

    controller = QuizController(
        config, logger=logger.getChild("quizzer")
    )
    try:
        count = asyncio.run(controller.select_part(args.part))
    except QuizError as exc:
        _error(str(exc))
        return 1
    print(f"Loaded {count} questions from {args.part}.")

    # An explicit --mode skips the interactive mode choice.
    first_config = config.session if args.mode else None
    if args.ui == "tui":
        # Imported lazily so console-only runs skip Textual's startup cost.
        from .view.quiz import QuizApp

        if first_config is not None:
            controller.start(first_config)
        QuizApp(controller).run()
        return 0

    console = Console()
    _run_console(
        controller,
        console,
        lambda: console.input("[bold]> [/]"),
        first_config,
    )
    return 0


def _run_console(controller, console, input_provider, first_config) -> None:
    session_config = first_config
    while True:
        result = run_console_quiz(
            controller, console, input_provider, config=session_config
        )
        session_config = None
        if result.exit_action == "quit":
            return
        if result.exit_action != "home":
            step = prompt_next_step(console, input_provider)
            if step is None:
                return
            if step == "restart":
                continue
            controller.home()
        if not choose_part(controller, console, input_provider):
            return


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to quizbank.toml (defaults to the workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root holding config and logs.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizbank",
        description="Practice multiple-choice question banks.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-V", "--version", action="store_true")
    sub = p.add_subparsers(dest="command")

    sp_init = sub.add_parser("init", help="Create the quizbank.toml template")
    _add_common(sp_init)
    sp_init.add_argument("--force", action="store_true")

    sp_parts = sub.add_parser("parts", help="List configured question banks")
    _add_common(sp_parts)

    sp_start = sub.add_parser("start", help="Start a quiz session")
    _add_common(sp_start)
    sp_start.add_argument(
        "part", help="Configured part name, file path or http(s) URL"
    )
    sp_start.add_argument(
        "--mode",
        choices=[mode.value for mode in SessionMode],
        help="Session mode (defaults to session.mode in the config)",
    )
    sp_start.add_argument(
        "--count",
        help="Questions to sample in simulation mode; bad values fall "
        "back to the default",
    )
    sp_start.add_argument(
        "--ui", choices=["console", "tui"], default="console"
    )
    sp_start.add_argument("--log-level")
    sp_start.add_argument("--verbose", action="store_true")
    return p


def _version() -> str:
    try:
        return metadata.version("quizbank")
    except metadata.PackageNotFoundError:
        return "unknown"


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(_version())
        code = 0
    elif args.command == "init":
        code = _cmd_init(args)
    elif args.command == "parts":
        code = _cmd_parts(args)
    elif args.command == "start":
        code = _cmd_start(args)
    else:
        parser.print_help()
        code = 2
    raise SystemExit(code)


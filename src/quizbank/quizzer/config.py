"""Configuration loader for quiz sessions (``quizbank.toml``)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, MutableMapping, Optional

from quizbank.core import config as core_config
from quizbank.core import workspace as workspace_mod

from .loader import DEFAULT_TIMEOUT_SECONDS, is_remote
from .models import DEFAULT_SIMULATION_SIZE, SessionConfig, SessionMode

CONFIG_FILENAME = "quizbank.toml"
CONFIG_ENV = "QUIZBANK_CONFIG"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

CONFIG_TEMPLATE = """\
# quizbank configuration

[session]
# practice walks the whole bank in order; simulation samples it at random.
mode = "practice"
simulation_size = 20

[fetch]
timeout_seconds = 30

[logging]
level = "INFO"
verbose = false

# One table per question bank. Relative sources resolve against this file.
# [parts.part1]
# title = "Part 1"
# source = "./part1.json"
"""


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class PartConfig:
    """A named question bank the user can pick from the home screen."""

    name: str
    title: str
    source: str


@dataclass(frozen=True)
class QuizbankConfig:
    session: SessionConfig
    fetch_timeout: float
    log_level: str
    verbose: bool
    parts: Mapping[str, PartConfig] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def resolve_source(self, name_or_source: str) -> str:
        """Map a configured part name to its source; pass anything else."""

        part = self.parts.get(name_or_source)
        return part.source if part is not None else name_or_source


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file options."""

    mode: Optional[str] = None
    simulation_size: Optional[object] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizbankConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def default_config_path(layout: workspace_mod.WorkspaceLayout) -> Path:
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > TOML > defaults.

    A missing default config file means built-in defaults; a missing file
    that was asked for explicitly (flag or ``QUIZBANK_CONFIG``) is an error.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc

    requested_path, explicit = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_config_path(layout),
    )

    tree = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(
                tree, parsed, open_tables=frozenset({"parts"})
            )
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    elif explicit:
        raise QuizConfigError(f"Config file not found: {requested_path}")

    base_dir = (
        loaded_path.parent.resolve() if loaded_path is not None else Path.cwd()
    )
    config = _build_config(tree, overrides=overrides, base_dir=base_dir)
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=CONFIG_TEMPLATE, overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc


def _default_table() -> MutableMapping[str, Any]:
    return {
        "session": {
            "mode": SessionMode.PRACTICE.value,
            "simulation_size": DEFAULT_SIMULATION_SIZE,
        },
        "fetch": {"timeout_seconds": DEFAULT_TIMEOUT_SECONDS},
        "logging": {"level": "INFO", "verbose": False},
        "parts": {},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> tuple[Path, bool]:
    if config_path is not None:
        return config_path.expanduser(), True
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser(), True
    return default_path, False


def _build_config(
    tree: Mapping[str, Any],
    *,
    overrides: ConfigOverrides,
    base_dir: Path,
) -> QuizbankConfig:
    session = tree["session"]
    mode_value = (
        overrides.mode if overrides.mode is not None else session["mode"]
    )
    try:
        mode = SessionMode.parse(mode_value)
    except ValueError as exc:
        raise QuizConfigError(f"session.mode: {exc}") from exc

    size_value = (
        overrides.simulation_size
        if overrides.simulation_size is not None
        else session["simulation_size"]
    )
    timeout = tree["fetch"]["timeout_seconds"]
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise QuizConfigError("fetch.timeout_seconds must be a number.")
    if timeout <= 0:
        raise QuizConfigError("fetch.timeout_seconds must be positive.")

    log_level = str(
        overrides.log_level
        if overrides.log_level is not None
        else tree["logging"]["level"]
    ).strip().upper()
    if log_level not in _LOG_LEVELS:
        raise QuizConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = (
        overrides.verbose
        if overrides.verbose is not None
        else tree["logging"]["verbose"]
    )
    if not isinstance(verbose, bool):
        raise QuizConfigError("logging.verbose must be a boolean.")

    return QuizbankConfig(
        session=SessionConfig.from_values(mode, size_value),
        fetch_timeout=float(timeout),
        log_level=log_level,
        verbose=verbose,
        parts=MappingProxyType(_build_parts(tree["parts"], base_dir)),
    )


def _build_parts(
    section: Mapping[str, Any], base_dir: Path
) -> dict[str, PartConfig]:
    parts: dict[str, PartConfig] = {}
    for name, table in section.items():
        if not isinstance(table, Mapping):
            raise QuizConfigError(f"parts.{name} must be a table.")
        unknown = set(table) - {"title", "source"}
        if unknown:
            raise QuizConfigError(
                "Unknown configuration key 'parts.{0}.{1}'.".format(
                    name, sorted(unknown)[0]
                )
            )
        source = table.get("source")
        if not isinstance(source, str) or not source.strip():
            raise QuizConfigError(
                f"parts.{name}.source must be a non-empty string."
            )
        title = table.get("title", name)
        if not isinstance(title, str) or not title.strip():
            raise QuizConfigError(
                f"parts.{name}.title must be a non-empty string."
            )
        parts[name] = PartConfig(
            name=name,
            title=title.strip(),
            source=_resolve_source(source.strip(), base_dir),
        )
    return parts


def _resolve_source(source: str, base_dir: Path) -> str:
    if is_remote(source) or source.startswith("file://"):
        return source
    path = Path(source).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return str(path)

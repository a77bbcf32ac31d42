from ._main import build_arg_parser, main
from .config import (
    ConfigOverrides,
    PartConfig,
    QuizbankConfig,
    QuizConfigError,
    load_config,
)
from .controller import QuizController, Stage
from .errors import (
    EmptyBankError,
    FetchError,
    InvalidOptionError,
    MalformedBankError,
    NoAnswerKeyError,
    QuizError,
    QuizStateError,
    SessionFinishedError,
)
from .loader import fetch_bank, load_bank
from .models import (
    QuestionRecord,
    SessionConfig,
    SessionMode,
    index_for,
    letter_for,
)
from .normalize import normalize
from .selector import select
from .session import (
    QuestionView,
    QuizSession,
    QuizSummary,
    RevealResult,
    SessionState,
    summarize,
)

__all__ = [
    "build_arg_parser",
    "main",
    "ConfigOverrides",
    "PartConfig",
    "QuizbankConfig",
    "QuizConfigError",
    "load_config",
    "QuizController",
    "Stage",
    "QuizError",
    "FetchError",
    "MalformedBankError",
    "EmptyBankError",
    "NoAnswerKeyError",
    "InvalidOptionError",
    "SessionFinishedError",
    "QuizStateError",
    "fetch_bank",
    "load_bank",
    "QuestionRecord",
    "SessionConfig",
    "SessionMode",
    "index_for",
    "letter_for",
    "normalize",
    "select",
    "QuestionView",
    "QuizSession",
    "QuizSummary",
    "RevealResult",
    "SessionState",
    "summarize",
]

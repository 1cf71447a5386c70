"""
Rendering of prompts, results and errors for the console.

The Formatter is the strategy a Context consults for every piece of text it
shows. Any object with the same methods can be swapped in.
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import EvaluationConfig, IRBConfig, PromptConfig

if TYPE_CHECKING:
    from .context import Context

# Frames from these files are internal to the console and never shown
_PACKAGE_DIR = Path(__file__).resolve().parent


def safe_repr(value: Any) -> str:
    """repr() that never raises."""
    try:
        return repr(value)
    except Exception as e:
        return f"#<{type(value).__name__} (repr raised {type(e).__name__})>"


def describe_exception(exc: BaseException) -> str:
    """'Kind: message' for an exception, even one whose str() raises."""
    try:
        message = str(exc)
    except Exception:
        message = "<exception str() failed>"
    return f"{type(exc).__name__}: {message}"


class Formatter:
    """
    Default formatter.

    Example:
        >>> formatter = Formatter()
        >>> formatter.result([1, 2])
        '=> [1, 2]'
        >>> formatter.syntax_error(3, "invalid syntax")
        'SyntaxError: compile error\\n(irb):3: invalid syntax'
    """

    def __init__(self, config: IRBConfig | None = None):
        config = config or IRBConfig()
        self.prompt_config: PromptConfig = config.prompt
        self.evaluation_config: EvaluationConfig = config.evaluation

    def prompt(self, context: Context) -> str:
        """Prompt showing the session object, logical line and block level."""
        width = self.prompt_config.line_number_width
        return (
            f"{self.prompt_config.session_label}"
            f"({self.describe(context.object)})"
            f":{context.line:0{width}d}"
            f":{context.source.level}> "
        )

    def describe(self, obj: Any) -> str:
        """repr() of obj, or its class name when the repr is too long or fails."""
        try:
            description = repr(obj)
        except Exception:
            return type(obj).__name__
        if len(description) > self.prompt_config.max_description_length:
            description = type(obj).__name__
        return description

    def add_input_to_context(self, context: Context, line: str) -> bool:
        """
        Append a line to the context's source buffer.

        Returns:
            True if the line changed the block level
        """
        before = context.source.level
        context.source.append(line)
        return context.source.level != before

    def result(self, value: Any) -> str:
        return f"{self.evaluation_config.result_prefix}{safe_repr(value)}"

    def exception(self, exc: BaseException) -> str:
        """
        Render an exception and its frames, innermost frame first.

        Frames belonging to the console itself are left out.
        """
        message = describe_exception(exc)
        frames = [
            f"{frame.filename}:{frame.lineno}:in `{frame.name}'"
            for frame in reversed(traceback.extract_tb(exc.__traceback__))
            if not _is_internal(frame.filename)
        ]
        if not frames:
            return message
        return message + "\n\t" + "\n\t".join(frames)

    def syntax_error(self, line: int, detail: str | None) -> str:
        return (
            "SyntaxError: compile error\n"
            f"{self.evaluation_config.filename}:{line}: {detail}"
        )


def _is_internal(filename: str) -> bool:
    path = Path(filename)
    if not path.is_absolute():
        return False
    try:
        return path.resolve().parent == _PACKAGE_DIR
    except OSError:
        return False


# Default formatter instance
default_formatter = Formatter()

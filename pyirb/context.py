"""
Console context: the read-eval-print state machine.

A Context owns the source buffer, the evaluation environment and the logical
line counter. Each input line is fed through the formatter into the buffer,
and the buffer's classification decides what happens next:

- TERMINATE: stop the run loop (only possible at block level 0)
- ERROR: report the syntax error and drop the offending line
- READY: evaluate the buffered block and start a fresh buffer
- WAITING: wait for more input

Example:
    >>> context = Context()
    >>> context.process_line("def double(x):")
    True
    >>> context.process_line("    return x * 2")
    True
    >>> context.process_line("")
    True
    >>> context.process_line("double(21)")
    => 42
    True
"""

from __future__ import annotations

import logging
import types
from typing import Any

from . import driver as drivers
from .config import IRBConfig
from .environment import EvaluationEnvironment
from .formatter import Formatter, default_formatter
from .source import SourceBuffer
from .types import IGNORE_RESULT

logger = logging.getLogger(__name__)

# Names the last result and the last exception are bound to
LAST_RESULT_NAME = "_"
LAST_EXCEPTION_NAMES = ("e", "exception")


class _Main:
    """Default session object, shown as `main` in the prompt."""

    def __repr__(self) -> str:
        return "main"


main = _Main()


class Context:
    """
    State of one console session.

    Attributes:
        object: The session's target object (bound as `self`)
        environment: Persistent evaluation environment
        line: Logical line number, incremented once per processed line
        source: Buffer of lines not yet evaluated
        last_result: Value of the last evaluation that produced one
        last_exception: Exception raised by the last failed evaluation
    """

    def __init__(
        self,
        target: Any = main,
        namespace: dict[str, Any] | None = None,
        formatter: Formatter | None = None,
        driver: drivers.Driver | None = None,
        config: IRBConfig | None = None,
    ):
        """
        Initialize a context.

        Args:
            target: Object the session is about
            namespace: Existing scope to evaluate in; derived from target
                       when omitted
            formatter: Rendering strategy; the default formatter when omitted
            driver: Output fallback when no driver is active
            config: Settings; defaults when omitted
        """
        self.config = config or IRBConfig()
        self.object = target
        if namespace is None:
            namespace = self._namespace_for(target)
        self.environment = EvaluationEnvironment(
            namespace, config=self.config.evaluation
        )
        self.line = 1
        self.formatter = formatter or (
            default_formatter if config is None else Formatter(self.config)
        )
        self._driver = driver
        self.last_result: Any = None
        self.last_exception: BaseException | None = None
        self.clear_buffer()

        self.environment.set_binding(LAST_RESULT_NAME, None)
        for name in LAST_EXCEPTION_NAMES:
            self.environment.set_binding(name, None)

    @staticmethod
    def _namespace_for(target: Any) -> dict[str, Any]:
        namespace: dict[str, Any] = {"__name__": "__main__", "__doc__": None}
        if isinstance(target, types.ModuleType):
            namespace.update(vars(target))
        namespace["self"] = target
        return namespace

    def __repr__(self) -> str:
        try:
            description = f"`{self.object!r}'"
        except Exception:
            description = None
        if description is None or len(description) > self.config.prompt.max_description_length:
            description = f"of class `{type(self.object).__name__}'"
        return f"<pyirb.Context for object {description}>"

    @property
    def driver(self) -> drivers.Driver | None:
        # Looked up on every call, the active driver changes with nested sessions
        return drivers.current() or self._driver

    def clear_buffer(self) -> None:
        self.source = SourceBuffer(self.config.source.terminate_tokens)

    def process_line(self, line: str) -> bool:
        """
        Feed one input line to the session.

        The logical line number always advances, whatever the line did.

        Returns:
            False if the line asked to end the run loop, True otherwise

        For instance, `quit` only ends the loop at block level 0:

            process_line("def foo():")    # => True
            process_line("    quit")      # => True
            process_line("")              # => True
            process_line("quit")          # => False
        """
        reindented = self.formatter.add_input_to_context(self, line)
        if reindented:
            logger.debug("Block level now %d at line %d", self.source.level, self.line)

        if self.source.is_terminate_sentinel():
            return False

        if self.source.has_syntax_error():
            self.output(
                self.formatter.syntax_error(self.line, self.source.syntax_error_detail())
            )
            self.source.drop_last_line()
        elif self.source.is_complete_block():
            self.evaluate(self.source)
            self.clear_buffer()
        self.line += 1

        return True

    def evaluate(self, source: Any) -> Any:
        """
        Evaluate a block and show its result.

        The block is attributed to the line it started on. Failures of any
        kind, KeyboardInterrupt included, are stored and shown, never raised.
        Rendering the result happens inside the same boundary.

        Returns:
            The result, or None if the evaluation failed or was ignored
        """
        start_line = self.line - len(self.source) + 1
        try:
            result = self.environment.run(
                str(source), self.config.evaluation.filename, start_line
            )
            if result is IGNORE_RESULT:
                return None
            self.store_result(result)
            self.output(self.formatter.result(result))
        except BaseException as e:
            logger.debug("Evaluation at line %d raised %s", start_line, type(e).__name__)
            self.store_exception(e)
            self.environment.register_source()
            self.output(self.formatter.exception(e))
            return None

        return result

    def output(self, text: str) -> None:
        """
        Write a line of output.

        Goes to the active driver's output, else this context's own driver,
        else standard output.
        """
        driver = self.driver
        if driver is not None:
            driver.output.write(f"{text}\n")
        else:
            print(text)

    def prompt(self) -> str:
        return self.formatter.prompt(self)

    def input_line(self, line: str) -> bool:
        """Echo the prompt and line, then process the line."""
        self.output(self.prompt() + line)
        return self.process_line(line)

    def store_result(self, result: Any) -> None:
        self.last_result = result
        self.environment.set_binding(LAST_RESULT_NAME, result)

    def store_exception(self, exception: BaseException) -> None:
        self.last_exception = exception
        for name in LAST_EXCEPTION_NAMES:
            self.environment.set_binding(name, exception)

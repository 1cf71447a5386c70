"""
Source buffer for the console.

Accumulates raw input lines until they form a runnable statement. After every
change the buffer is classified with the incremental compiler from
``codeop`` in "single" mode, the same check the interactive interpreter makes,
into one of the ``BufferState`` values. A compound statement is complete once
a blank line closes it. The block depth shown in the prompt is derived from the
``tokenize`` stream.
"""

from __future__ import annotations

import codeop
import io
import logging
import tokenize
import warnings
from collections.abc import Iterable

from .types import BufferState

logger = logging.getLogger(__name__)

OPENING_BRACKETS = frozenset("([{")
CLOSING_BRACKETS = frozenset(")]}")

# Tokens that do not end a logical line with meaningful content
_LAYOUT_TOKENS = frozenset(
    {tokenize.NL, tokenize.COMMENT, tokenize.INDENT, tokenize.DEDENT}
)


class SourceBuffer:
    """
    Ordered raw input lines plus their classification.

    The classification is recomputed from the buffered lines alone every time
    a line is appended or dropped:

    - TERMINATE: a single line holding an exit token at block depth 0
    - ERROR: the text can never become valid by adding lines
    - READY: the text compiles as one complete interactive statement
    - WAITING: anything else (an open suite, bracket or string)
    """

    def __init__(
        self, terminate_tokens: Iterable[str] = ("quit", "exit", "quit()", "exit()")
    ):
        self.terminate_tokens = frozenset(terminate_tokens)
        self._lines: list[str] = []
        self._state = BufferState.WAITING
        self._error: str | None = None
        self._level = 0

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def state(self) -> BufferState:
        return self._state

    @property
    def level(self) -> int:
        """Number of constructs still open at the end of the buffer."""
        return self._level

    def append(self, line: str) -> None:
        """Add a line at the end and reclassify."""
        self._lines.append(line.rstrip("\r\n"))
        self._classify()

    def drop_last_line(self) -> None:
        """Remove the most recently appended line and reclassify."""
        if self._lines:
            self._lines.pop()
            self._classify()

    def is_terminate_sentinel(self) -> bool:
        return self._state is BufferState.TERMINATE

    def has_syntax_error(self) -> bool:
        return self._state is BufferState.ERROR

    def syntax_error_detail(self) -> str | None:
        return self._error

    def is_complete_block(self) -> bool:
        return self._state is BufferState.READY

    def render(self) -> str:
        return "\n".join(self._lines)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"SourceBuffer({self._lines!r}, state={self._state.name})"

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)

    def _classify(self) -> None:
        self._error = None

        if not self._lines:
            self._state = BufferState.WAITING
            self._level = 0
            return

        source = self.render()
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                code = codeop.compile_command(source, "<input>", "single")
        except (SyntaxError, ValueError, OverflowError) as e:
            self._state = BufferState.ERROR
            self._error = getattr(e, "msg", None) or str(e)
            self._level = self._measure_level()
            logger.debug("Syntax error in buffer: %s", self._error)
            return

        if code is None:
            self._state = BufferState.WAITING
            self._level = self._measure_level()
            return

        # A compiled block has every suite closed
        self._level = 0
        if len(self._lines) == 1 and self._lines[0].strip() in self.terminate_tokens:
            self._state = BufferState.TERMINATE
        else:
            self._state = BufferState.READY

    def _measure_level(self) -> int:
        """
        Count open suites, brackets and strings at the end of the buffer.

        DEDENT tokens the tokenizer synthesizes at end of input are ignored,
        so a suite whose body has been typed but not closed still counts.
        """
        physical_lines = len(self._lines)
        readline = io.StringIO(self.render() + "\n").readline

        indents = 0
        brackets = 0
        pending_suite = False
        unterminated = False
        last: tokenize.TokenInfo | None = None

        try:
            for token in tokenize.generate_tokens(readline):
                if token.start[0] > physical_lines:
                    break
                if token.type == tokenize.INDENT:
                    indents += 1
                    pending_suite = False
                elif token.type == tokenize.DEDENT:
                    indents = max(indents - 1, 0)
                elif token.type == tokenize.OP:
                    if token.string in OPENING_BRACKETS:
                        brackets += 1
                    elif token.string in CLOSING_BRACKETS:
                        brackets = max(brackets - 1, 0)

                if token.type == tokenize.NEWLINE:
                    pending_suite = (
                        last is not None
                        and last.type == tokenize.OP
                        and last.string == ":"
                    )
                elif token.type not in _LAYOUT_TOKENS:
                    last = token
        except tokenize.TokenError:
            # EOF inside a bracket or a triple-quoted string
            unterminated = brackets == 0
        except SyntaxError:
            pass

        return indents + brackets + int(pending_suite) + int(unterminated)

"""
Drivers connect a Context to actual input and output streams.

The innermost active driver receives all console output. Drivers are
activated for a scope with ``activate()``; nested sessions push their own
driver and the previous one is restored when the scope exits.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from .context import Context

logger = logging.getLogger(__name__)

_active_drivers: ContextVar[tuple[Driver, ...]] = ContextVar(
    "active_drivers", default=()
)


def current() -> Driver | None:
    """Innermost active driver, or None outside any driver scope."""
    stack = _active_drivers.get()
    return stack[-1] if stack else None


@contextmanager
def activate(driver: Driver) -> Iterator[Driver]:
    token = _active_drivers.set(_active_drivers.get() + (driver,))
    try:
        yield driver
    finally:
        _active_drivers.reset(token)


class Driver:
    """
    Line-oriented driver over a pair of text streams.

    With echo enabled every line read is written back after its prompt,
    which keeps transcripts readable when input is piped in.
    """

    def __init__(
        self,
        input: TextIO | None = None,
        output: TextIO | None = None,
        echo: bool = False,
    ):
        self.input = input if input is not None else sys.stdin
        self.output = output if output is not None else sys.stdout
        self.echo = echo

    def readline(self, context: Context) -> str | None:
        """
        Read one line of input.

        Returns:
            The line without its newline, or None at end of input
        """
        if not self.echo:
            self.output.write(context.prompt())
            self.output.flush()

        line = self.input.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def run(self, context: Context) -> None:
        """Feed lines to the context until end of input or a terminate token."""
        with activate(self):
            while True:
                try:
                    line = self.readline(context)
                    if line is None:
                        self.output.write("\n")
                        break
                    if self.echo:
                        keep_going = context.input_line(line)
                    else:
                        keep_going = context.process_line(line)
                    if not keep_going:
                        break
                except KeyboardInterrupt:
                    logger.debug("Interrupted, discarding %d buffered lines", len(context.source))
                    self.output.write("\nKeyboardInterrupt\n")
                    context.clear_buffer()

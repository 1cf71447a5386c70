"""
Evaluation environment for the console.

A persistent namespace that runs blocks of source text and hands back the
value of a trailing expression. Bindings survive between runs. Optionally
every block is compiled through RestrictedPython instead of the plain
compiler.
"""

from __future__ import annotations

import ast
import builtins
import linecache
import logging
import operator
import sys
import time
from typing import Any

from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getiter
from RestrictedPython.Guards import (
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from .config import EvaluationConfig
from .formatter import describe_exception, safe_repr
from .types import IGNORE_RESULT, EvaluationRecord, SandboxViolationError

logger = logging.getLogger(__name__)

# Blocked builtins that could be dangerous
BLOCKED_BUILTINS = frozenset(
    {
        "open",
        "exec",
        "eval",
        "compile",
        "__import__",
        "input",
        "breakpoint",
    }
)

# Everyday builtins RestrictedPython leaves out of safe_builtins
CONSOLE_BUILTINS = (
    "all",
    "any",
    "bin",
    "dict",
    "enumerate",
    "filter",
    "format",
    "frozenset",
    "hasattr",
    "list",
    "map",
    "max",
    "min",
    "reversed",
    "set",
    "sum",
    "type",
)

# Containers restricted code may assign items and attributes into
WRITABLE_TYPES = (dict, list, set)

# Operators RestrictedPython rewrites augmented assignment into
INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
    "@=": operator.imatmul,
}

# Restricted blocks store their trailing expression here; RestrictedPython
# rejects names with a leading underscore
RESTRICTED_RESULT_NAME = "irb_block_value"


class _StdoutPrintCollector:
    """Print collector for RestrictedPython that forwards to sys.stdout."""

    def __init__(self, _getattr_: Any = None):
        self._printed: list[str] = []

    def _call_print(self, *objects: Any, **kwargs: Any) -> None:
        """Called by RestrictedPython for print() statements."""
        kwargs.pop("file", None)
        sep = kwargs.get("sep", " ")
        self._printed.append(sep.join(str(obj) for obj in objects))
        print(*objects, file=sys.stdout, **kwargs)

    def __call__(self) -> str:
        # Value of the `printed` name inside restricted code
        return "\n".join(self._printed)


def _guard_getitem(obj: Any, key: Any) -> Any:
    if not hasattr(obj, "__getitem__"):
        raise SandboxViolationError(f"{type(obj).__name__} object is not subscriptable here")
    return obj[key]


def _guard_write(obj: Any) -> Any:
    if not isinstance(obj, WRITABLE_TYPES):
        raise SandboxViolationError(f"Cannot modify {type(obj).__name__} objects")
    return obj


def _guard_inplacevar(op: str, target: Any, value: Any) -> Any:
    try:
        func = INPLACE_OPERATORS[op]
    except KeyError:
        raise SandboxViolationError(f"Operator {op} not allowed") from None
    return func(target, value)


RESTRICTED_GUARDS = {
    "_getiter_": default_guarded_getiter,
    "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
    "_unpack_sequence_": guarded_unpack_sequence,
    "_getattr_": safer_getattr,
    "_getitem_": _guard_getitem,
    "_write_": _guard_write,
    "_inplacevar_": _guard_inplacevar,
    "_print_": _StdoutPrintCollector,
}


def restricted_builtins() -> dict[str, Any]:
    """RestrictedPython's safe builtins plus CONSOLE_BUILTINS, minus the blocked ones."""
    allowed = dict(safe_builtins)
    allowed.update((name, getattr(builtins, name)) for name in CONSOLE_BUILTINS)
    for blocked in BLOCKED_BUILTINS:
        allowed.pop(blocked, None)
    return allowed


class EvaluationEnvironment:
    """
    Persistent scope that user blocks are run against.

    Every block is parsed, shifted to the line it was typed on, and executed
    statement by statement. A trailing expression statement provides the
    block's value; blocks without one produce IGNORE_RESULT. Restricted mode
    runs the same tree through RestrictedPython.
    """

    def __init__(
        self,
        namespace: dict[str, Any] | None = None,
        use_restricted: bool | None = None,
        config: EvaluationConfig | None = None,
    ):
        """
        Initialize the environment.

        Args:
            namespace: Existing scope to run against; a fresh one when omitted
            use_restricted: Compile through RestrictedPython; defaults to
                            the configured value
            config: Evaluation settings (filename, history)
        """
        self.config = config or EvaluationConfig()
        self.use_restricted = (
            self.config.use_restricted if use_restricted is None else use_restricted
        )

        if namespace is None:
            namespace = {"__name__": "__main__", "__doc__": None}
        self.namespace = namespace

        if self.use_restricted:
            self.namespace["__builtins__"] = restricted_builtins()
            self.namespace.update(RESTRICTED_GUARDS)
        else:
            self.namespace.setdefault("__builtins__", builtins)

        self.namespace["IGNORE_RESULT"] = IGNORE_RESULT

        # Execution history for debugging
        self.history: list[EvaluationRecord] = []

        # Text typed into this environment, per filename, as linecache lines
        self._sources: dict[str, list[str]] = {}
        self._source_sizes: dict[str, int] = {}
        self._last_filename = self.config.filename

    def __repr__(self) -> str:
        mode = "restricted" if self.use_restricted else "unrestricted"
        return f"<EvaluationEnvironment {mode} ({len(self.namespace)} names)>"

    def set_binding(self, name: str, value: Any) -> None:
        self.namespace[name] = value

    def get_binding(self, name: str, default: Any = None) -> Any:
        return self.namespace.get(name, default)

    def run(self, source: str, filename: str | None = None, line: int = 1) -> Any:
        """
        Run a block of source text.

        Args:
            source: Python code, possibly spanning several lines
            filename: Name reported in tracebacks and syntax errors
            line: Physical line number of the first line of source

        Returns:
            Value of a trailing expression, or IGNORE_RESULT

        Raises:
            Whatever the code raises; nothing is caught here.
        """
        if filename is None:
            filename = self.config.filename
        line = max(line, 1)
        self._remember_source(source, filename, line)
        logger.debug("Running %d line(s) at %s:%d", source.count("\n") + 1, filename, line)

        start_time = time.time()
        try:
            tree = self._parse(source, filename, line)
            if self.use_restricted:
                result = self._run_restricted(tree, filename)
            else:
                result = self._run_unrestricted(tree, filename)
        except BaseException as e:
            self._record(source, line, start_time, error=describe_exception(e))
            raise

        self._record(source, line, start_time, result=result)
        return result

    def register_source(self, filename: str | None = None) -> None:
        """
        Point linecache at this environment's text for filename.

        Sessions sharing a filename overwrite each other's entry, so this is
        called again before one of our tracebacks is rendered.
        """
        filename = filename or self._last_filename
        lines = self._sources.get(filename)
        if lines is None:
            return
        # mtime None keeps linecache.checkcache from discarding the entry
        linecache.cache[filename] = (self._source_sizes[filename], None, lines, filename)

    @staticmethod
    def _parse(source: str, filename: str, line: int) -> ast.Module:
        offset = line - 1
        try:
            tree = ast.parse(source, filename=filename, mode="exec")
        except SyntaxError as e:
            if e.lineno is not None:
                e.lineno += offset
            if getattr(e, "end_lineno", None) is not None:
                e.end_lineno += offset
            raise
        return ast.increment_lineno(tree, offset)

    def _run_unrestricted(self, tree: ast.Module, filename: str) -> Any:
        body = list(tree.body)

        last = None
        if body and isinstance(body[-1], ast.Expr):
            last = ast.Expression(body.pop().value)

        if body:
            compiled = compile(
                ast.Module(body=body, type_ignores=[]), filename, mode="exec"
            )
            exec(compiled, self.namespace)

        if last is None:
            return IGNORE_RESULT

        compiled = compile(last, filename, mode="eval")
        return eval(compiled, self.namespace)

    def _run_restricted(self, tree: ast.Module, filename: str) -> Any:
        # Always exec mode: print() only works where RestrictedPython can
        # set up its collector
        captures = bool(tree.body) and isinstance(tree.body[-1], ast.Expr)
        if captures:
            last = tree.body.pop()
            store = ast.Assign(
                targets=[ast.Name(id=RESTRICTED_RESULT_NAME, ctx=ast.Store())],
                value=last.value,
            )
            tree.body.append(ast.fix_missing_locations(ast.copy_location(store, last)))

        byte_code = compile_restricted(tree, filename=filename, mode="exec")
        try:
            exec(byte_code, self.namespace)
        finally:
            value = self.namespace.pop(RESTRICTED_RESULT_NAME, IGNORE_RESULT)

        return value if captures else IGNORE_RESULT

    def _remember_source(self, source: str, filename: str, line: int) -> None:
        """Expose the session's text to linecache so frames show user code."""
        lines = self._sources.setdefault(filename, [])
        size = self._source_sizes.get(filename, 0)

        texts = source.split("\n")
        first = line - 1
        missing = first + len(texts) - len(lines)
        if missing > 0:
            lines.extend(["\n"] * missing)
            size += missing

        for index, text in enumerate(texts, start=first):
            size += len(text) + 1 - len(lines[index])
            lines[index] = text + "\n"

        self._source_sizes[filename] = size
        self._last_filename = filename
        self.register_source(filename)

    def _record(
        self,
        source: str,
        line: int,
        start_time: float,
        result: Any = IGNORE_RESULT,
        error: str | None = None,
    ) -> None:
        if not self.config.keep_history:
            return

        execution_time = (time.time() - start_time) * 1000
        self.history.append(
            EvaluationRecord(
                source=source,
                line=line,
                success=error is None,
                result=None if result is IGNORE_RESULT else safe_repr(result),
                error=error,
                execution_time_ms=execution_time,
            )
        )
        overflow = len(self.history) - self.config.max_history
        if overflow > 0:
            del self.history[:overflow]

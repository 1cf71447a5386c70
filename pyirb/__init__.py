"""
pyirb: an interactive console evaluation loop for Python.

Lines typed by the user are accumulated into a source buffer until they form
a complete block, evaluated against a persistent namespace, and the result or
failure is reported back without ever ending the session.
"""

__version__ = "0.1.0"

# Configuration
from .config import (
    EvaluationConfig,
    IRBConfig,
    PromptConfig,
    SourceConfig,
    default_config,
)

# Core state machine
from .context import Context, main
from .driver import Driver, activate, current
from .environment import EvaluationEnvironment
from .formatter import Formatter, default_formatter
from .source import SourceBuffer

# Shared types
from .types import (
    IGNORE_RESULT,
    BufferState,
    EvaluationRecord,
    IRBError,
    SandboxViolationError,
)

__all__ = [
    "__version__",
    # Configuration
    "EvaluationConfig",
    "IRBConfig",
    "PromptConfig",
    "SourceConfig",
    "default_config",
    # Core
    "Context",
    "Driver",
    "EvaluationEnvironment",
    "Formatter",
    "SourceBuffer",
    "activate",
    "current",
    "default_formatter",
    "main",
    # Types
    "BufferState",
    "EvaluationRecord",
    "IGNORE_RESULT",
    "IRBError",
    "SandboxViolationError",
]

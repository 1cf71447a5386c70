"""
Shared type definitions for pyirb.

Buffer states, the ignore-result sentinel, evaluation history records and
the library's error classes.
"""

from enum import Enum

from pydantic import BaseModel


class _IgnoreResult:
    """
    Marker returned by an evaluation that has nothing worth showing.

    The console neither prints it nor stores it as the last result.
    """

    _instance = None

    def __new__(cls) -> "_IgnoreResult":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "IGNORE_RESULT"

    def __reduce__(self) -> str:
        return "IGNORE_RESULT"


IGNORE_RESULT = _IgnoreResult()


class BufferState(str, Enum):
    """Classification of the source buffer after a line was added."""

    WAITING = "waiting"
    ERROR = "error"
    READY = "ready"
    TERMINATE = "terminate"


class EvaluationRecord(BaseModel):
    """One evaluated block, as kept in the environment history."""

    source: str
    line: int
    success: bool
    result: str | None = None
    error: str | None = None
    execution_time_ms: float = 0.0


# pyirb Error Classes


class IRBError(Exception):
    """Base class for pyirb errors."""

    pass


class SandboxViolationError(IRBError):
    """Raised when restricted code touches something the sandbox forbids."""

    pass

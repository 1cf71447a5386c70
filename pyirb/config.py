"""
Configuration management for pyirb.

Settings are plain dataclasses, persisted as JSON in ``~/.pyirb/config.json``.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class PromptConfig:
    """Configuration for the prompt line."""

    session_label: str = "irb"
    # Longer object reprs are replaced by the class name
    max_description_length: int = 32
    line_number_width: int = 3


@dataclass
class SourceConfig:
    """Configuration for input buffering."""

    terminate_tokens: list[str] = field(
        default_factory=lambda: ["quit", "exit", "quit()", "exit()"]
    )


@dataclass
class EvaluationConfig:
    """
    Configuration for the evaluation environment.

    use_restricted runs every block through RestrictedPython instead of the
    plain compiler.
    """

    filename: str = "(irb)"
    use_restricted: bool = False
    result_prefix: str = "=> "
    keep_history: bool = True
    max_history: int = 1000


@dataclass
class IRBConfig:
    """Complete pyirb configuration."""

    prompt: PromptConfig = field(default_factory=PromptConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "IRBConfig":
        """Load configuration from file."""
        if path is None:
            path = default_config_path()

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls(
            prompt=PromptConfig(**data.get("prompt", {})),
            source=SourceConfig(**data.get("source", {})),
            evaluation=EvaluationConfig(**data.get("evaluation", {})),
        )

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = default_config_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(
                {
                    "prompt": self.prompt.__dict__,
                    "source": self.source.__dict__,
                    "evaluation": self.evaluation.__dict__,
                },
                f,
                indent=2,
            )


def default_config_path() -> Path:
    return Path.home() / ".pyirb" / "config.json"


# Default configuration instance
default_config = IRBConfig()

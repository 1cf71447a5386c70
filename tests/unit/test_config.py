"""
Unit tests for config module.
"""

import json
import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pyirb.config import (
    EvaluationConfig,
    IRBConfig,
    PromptConfig,
    SourceConfig,
    default_config,
)


class TestPromptConfig:
    """Tests for PromptConfig."""

    def test_default_values(self):
        """Has expected default values."""
        config = PromptConfig()

        assert config.session_label == "irb"
        assert config.max_description_length == 32
        assert config.line_number_width == 3

    def test_custom_values(self):
        config = PromptConfig(session_label="py", max_description_length=10)

        assert config.session_label == "py"
        assert config.max_description_length == 10


class TestSourceConfig:
    """Tests for SourceConfig."""

    def test_default_values(self):
        config = SourceConfig()

        assert config.terminate_tokens == ["quit", "exit", "quit()", "exit()"]

    def test_defaults_not_shared(self):
        """Each instance gets its own token list."""
        first = SourceConfig()
        first.terminate_tokens.append("bye")

        assert "bye" not in SourceConfig().terminate_tokens


class TestEvaluationConfig:
    """Tests for EvaluationConfig."""

    def test_default_values(self):
        config = EvaluationConfig()

        assert config.filename == "(irb)"
        assert config.use_restricted is False
        assert config.result_prefix == "=> "
        assert config.keep_history is True
        assert config.max_history == 1000


class TestIRBConfig:
    """Tests for IRBConfig."""

    def test_default_values(self):
        config = IRBConfig()

        assert isinstance(config.prompt, PromptConfig)
        assert isinstance(config.source, SourceConfig)
        assert isinstance(config.evaluation, EvaluationConfig)

    def test_load_missing_file_returns_defaults(self):
        """Loading from a missing file gives the defaults."""
        config = IRBConfig.load(Path("/nonexistent/pyirb.json"))

        assert config == IRBConfig()

    def test_load_partial_file(self):
        """Sections missing from the file keep their defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            path.write_text(json.dumps({"evaluation": {"use_restricted": True}}))

            config = IRBConfig.load(path)

        assert config.evaluation.use_restricted is True
        assert config.evaluation.filename == "(irb)"
        assert config.prompt == PromptConfig()

    def test_save_and_load(self):
        """Saved configuration loads back equal."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "config.json"
            config = IRBConfig(
                prompt=PromptConfig(session_label="py"),
                source=SourceConfig(terminate_tokens=["bye"]),
                evaluation=EvaluationConfig(max_history=5),
            )

            config.save(path)
            loaded = IRBConfig.load(path)

        assert loaded == config

    def test_save_writes_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            IRBConfig().save(path)

            data = json.loads(path.read_text())

        assert data["prompt"]["session_label"] == "irb"
        assert data["source"]["terminate_tokens"] == ["quit", "exit", "quit()", "exit()"]

    def test_default_path_under_home(self, tmp_path, monkeypatch):
        """Without a path the file lives under ~/.pyirb."""
        monkeypatch.setenv("HOME", str(tmp_path))

        IRBConfig().save()

        assert (tmp_path / ".pyirb" / "config.json").exists()
        assert IRBConfig.load() == IRBConfig()

    def test_default_config_instance(self):
        assert isinstance(default_config, IRBConfig)

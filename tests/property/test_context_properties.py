"""
Property-based tests for the console state machine.
"""

import io
import sys
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from pyirb.context import Context
from pyirb.driver import Driver

# =============================================================================
# Strategies
# =============================================================================

# Lines mixing every buffer state except termination
line_strategy = st.sampled_from(
    [
        "x = 1",
        "x + 1",
        "def f():",
        "    return 2",
        "",
        "items = [",
        "1,",
        "]",
        "1 +",
        "y = )",
        "undefined_name",
        "1 / 0",
        "pass",
    ]
)
small_ints = st.integers(min_value=-10_000, max_value=10_000)


def make_context():
    """Create a context writing to an in-memory stream."""
    output = io.StringIO()
    return Context(driver=Driver(input=io.StringIO(""), output=output)), output


@pytest.mark.hypothesis
class TestLogicalLineProperties:
    """Properties of the logical line counter."""

    @given(lines=st.lists(line_strategy, max_size=30))
    @settings(max_examples=100, deadline=None)
    def test_line_advances_once_per_line(self, lines):
        """Every processed line advances the counter by exactly one."""
        context, _ = make_context()

        for index, line in enumerate(lines):
            assert context.process_line(line) is True
            assert context.line == index + 2

    @given(count=st.integers(min_value=0, max_value=40))
    @settings(max_examples=30, deadline=None)
    def test_prompt_tracks_line(self, count):
        """The prompt shows the zero padded logical line."""
        context, _ = make_context()
        for _ in range(count):
            context.process_line("pass")

        assert context.prompt() == f"irb(main):{count + 1:03d}:0> "


@pytest.mark.hypothesis
class TestEvaluationProperties:
    """Properties of evaluation dispatch."""

    @given(a=small_ints, b=small_ints)
    @settings(max_examples=50, deadline=None)
    def test_single_line_evaluates_immediately(self, a, b):
        """A complete single line is evaluated at once and the buffer cleared."""
        context, output = make_context()

        context.process_line(f"{a} + {b}")

        assert context.last_result == a + b
        assert output.getvalue() == f"=> {a + b}\n"
        assert len(context.source) == 0

    @given(values=st.lists(small_ints, min_size=1, max_size=10))
    @settings(max_examples=50, deadline=None)
    def test_block_accumulates_then_evaluates_once(self, values):
        """Lines of one block accumulate verbatim and evaluate once."""
        context, output = make_context()
        typed = ["["] + [f"    {v}," for v in values]

        for count, line in enumerate(typed, start=1):
            context.process_line(line)
            assert context.source.lines == typed[:count]
            assert output.getvalue() == ""

        context.process_line("]")

        assert context.last_result == values
        assert output.getvalue().count("=> ") == 1
        assert len(context.source) == 0

    @given(values=st.lists(small_ints, min_size=1, max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_indented_suite_accumulates_until_blank_line(self, values):
        """A function body of any length waits for the closing blank line."""
        context, output = make_context()
        typed = ["def total():", "    acc = 0"]
        typed += [f"    acc += {v}" for v in values]
        typed += ["    return acc"]

        for count, line in enumerate(typed, start=1):
            context.process_line(line)
            assert context.source.lines == typed[:count]
            assert context.source.level == 1
            assert output.getvalue() == ""

        context.process_line("")
        assert len(context.source) == 0
        assert output.getvalue() == ""

        context.process_line("total()")

        assert context.last_result == sum(values)
        assert output.getvalue() == f"=> {sum(values)}\n"

    @given(value=small_ints)
    @settings(max_examples=30, deadline=None)
    def test_last_result_round_trip(self, value):
        """The last result reads back through `_`."""
        context, _ = make_context()

        context.process_line(str(value))
        context.process_line("_")

        assert context.last_result == value

    @given(values=st.lists(small_ints, max_size=5))
    @settings(max_examples=30, deadline=None)
    def test_syntax_error_drops_one_line(self, values):
        """A syntax error removes exactly the offending line."""
        context, _ = make_context()
        typed = ["("] + [f"{v}," for v in values]
        for line in typed:
            context.process_line(line)

        context.process_line("]")

        assert context.source.lines == typed

    @given(divisor=small_ints)
    @settings(max_examples=30, deadline=None)
    def test_failures_never_end_session(self, divisor):
        """Evaluation failures leave the session running."""
        context, output = make_context()

        assert context.process_line(f"1 / {divisor} / 0") is True
        assert context.process_line("40 + 2") is True

        assert output.getvalue().endswith("=> 42\n")

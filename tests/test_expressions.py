"""Tests for expression validation and translation."""

import pytest

from flowgen.workflow.errors import ExpressionParseError, ParseError
from flowgen.workflow.expressions import (
    EXPECTED_TOKENS,
    ensure_all_valid,
    ensure_valid,
    is_valid_expression,
    literal_or_expression,
    strip_quotes,
    to_dotted,
    translate_expression,
)


class TestTranslate:
    """Dotted references become indexing expressions."""

    def test_workflow_reference(self):
        assert translate_expression("workflow.input_as_text") == 'workflow["input_as_text"]'

    def test_state_reference_in_comparison(self):
        assert translate_expression("state.count < 3") == 'state["count"] < 3'

    def test_nested_path(self):
        assert translate_expression("workflow.user.name") == 'workflow["user"]["name"]'

    def test_input_resolves_against_previous_result(self):
        """`input.*` reads the result bound by the previous node."""
        assert translate_expression("input.x > 0", "agent_result") == 'agent_result["x"] > 0'

    def test_input_without_previous_result_reads_workflow(self):
        assert translate_expression("input.x > 0") == 'workflow["x"] > 0'

    def test_literals_and_operators(self):
        """undefined/null/true/false and &&, ||, ! map to Python."""
        assert (
            translate_expression("workflow.a == undefined && !state.b")
            == 'workflow["a"] == None and not state["b"]'
        )
        assert translate_expression("true || false") == "True or False"
        assert translate_expression("state.x != null") == 'state["x"] != None'

    def test_string_literals_untouched(self):
        """References inside quotes are text, not references."""
        assert (
            translate_expression('workflow.name == "workflow.x"')
            == 'workflow["name"] == "workflow.x"'
        )

    def test_method_call_stays_attribute(self):
        assert translate_expression("workflow.text.upper()") == 'workflow["text"].upper()'

    def test_bare_root_untouched(self):
        assert translate_expression("len(workflow)") == "len(workflow)"

    def test_empty(self):
        assert translate_expression("") == ""
        assert translate_expression(None) == ""


class TestRoundTrip:
    """Indexing form decodes back to the dotted path."""

    def test_workflow_round_trip(self):
        dotted = "workflow.input_as_text"
        assert to_dotted(translate_expression(dotted)) == dotted

    def test_compound_round_trip(self):
        dotted = "state.count < 3 and workflow.user.name"
        assert to_dotted(translate_expression(dotted)) == dotted


class TestValidation:
    """The validator rejects empty and malformed expressions."""

    def test_valid(self):
        assert is_valid_expression("state.count < 3")

    def test_invalid(self):
        assert not is_valid_expression("")
        assert not is_valid_expression("   ")
        assert not is_valid_expression(None)
        assert not is_valid_expression("x syntax error")

    def test_single_expression_message(self):
        """While conditions report with the single-expression prefix."""
        with pytest.raises(ExpressionParseError) as exc_info:
            ensure_valid("")
        assert str(exc_info.value) == (
            f"Failed to parse expression : {EXPECTED_TOKENS} but found: ''"
        )
        assert exc_info.value.expressions == [""]

    def test_multiple_expression_message(self):
        """IfElse predicates report every failure, joined by ', '."""
        with pytest.raises(ParseError) as exc_info:
            ensure_all_valid(["state.ok", "", "a unexpected token"])
        assert str(exc_info.value) == (
            "Failed to parse expressions: "
            f"{EXPECTED_TOKENS} but found: '', "
            f"{EXPECTED_TOKENS} but found: 'a unexpected token'"
        )

    def test_grammar_description(self):
        assert EXPECTED_TOKENS.startswith(
            "Expecting: one of these possible Token sequences: 1. [OpenParenthesis]"
        )
        assert EXPECTED_TOKENS.endswith("12. [ObjectIdentifier]")

    def test_valid_passes_through(self):
        assert ensure_valid("state.count < 3") == "state.count < 3"
        ensure_all_valid(["true", "workflow.x"])


class TestLiteralOrExpression:
    """Fields that hold either plain text or a reference."""

    def test_reference(self):
        assert literal_or_expression("workflow.input_as_text") == 'workflow["input_as_text"]'

    def test_quoted_literal(self):
        assert literal_or_expression('"Approve this?"') == '"Approve this?"'

    def test_plain_text(self):
        assert literal_or_expression("Approve this?") == '"Approve this?"'

    def test_empty(self):
        assert literal_or_expression(None) == '""'

    def test_strip_quotes(self):
        assert strip_quotes('"gpt-5"') == "gpt-5"
        assert strip_quotes("'x'") == "x"
        assert strip_quotes("plain") == "plain"

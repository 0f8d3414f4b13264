"""Tests for the code tree renderer and literal helpers."""

from flowgen.workflow.code_builder import (
    Blank,
    Block,
    BranchSlot,
    Line,
    py_dict,
    py_literal,
    py_string,
    py_text,
    render,
    render_text,
)


class TestRender:
    """Indentation is two spaces per level, decided in one place."""

    def test_nested_blocks(self):
        tree = [Block("while x:", [Block("if y:", [Line("z = 1")])])]
        assert render(tree) == ["while x:", "  if y:", "    z = 1"]

    def test_level_offset(self):
        assert render([Line("a = 1")], level=2) == ["    a = 1"]

    def test_empty_block_gets_pass(self):
        assert render([Block("if x:", []), Block("else:", [])]) == [
            "if x:", "  pass", "else:", "  pass",
        ]

    def test_unfilled_slot_is_empty(self):
        assert render([Block("if x:", [BranchSlot("case-0")])]) == ["if x:", "  pass"]

    def test_slot_default_rendered(self):
        tree = [Block("else:", [BranchSlot("on_pass", default=[Line("return out")])])]
        assert render(tree) == ["else:", "  return out"]

    def test_blank_separators_collapse(self):
        tree = [Blank(), Line("a"), Blank(), Blank(), Line("b"), Blank()]
        assert render(tree) == ["a", "", "b"]

    def test_multiline_statement_keeps_inner_blank_lines(self):
        tree = [Line('text = """one\n\ntwo"""')]
        assert render(tree) == ['text = """one', "", 'two"""']

    def test_multiline_statement_indented(self):
        tree = [Block("if x:", [Line("y = {\n  \"a\": 1\n}")])]
        assert render_text(tree) == 'if x:\n  y = {\n    "a": 1\n  }'


class TestLiterals:
    def test_py_string(self):
        assert py_string('say "hi"') == '"say \\"hi\\""'
        assert py_string("café") == '"café"'

    def test_py_text_multiline(self):
        assert py_text("a\nb") == '"""a\nb"""'
        assert py_text("one line") == '"one line"'

    def test_py_text_escapes_closing_quote(self):
        assert py_text('a\nsays "x"') == '"""a\nsays "x\\""""'

    def test_py_literal_nested(self):
        assert py_literal({"a": [1, True, None]}) == (
            '{\n  "a": [\n    1,\n    True,\n    None\n  ]\n}'
        )

    def test_py_literal_empty_containers(self):
        assert py_literal({}) == "{}"
        assert py_literal([]) == "[]"

    def test_py_literal_level(self):
        assert py_literal({"k": "v"}, 1) == '{\n    "k": "v"\n  }'

    def test_py_dict_values_are_source(self):
        assert py_dict({"summary": 'agent_result["output_text"]'}) == (
            '{\n  "summary": agent_result["output_text"]\n}'
        )

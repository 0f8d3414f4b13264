"""
Expression Translator — builder expressions to Python source.

Node configs carry small CEL-style expressions (``workflow.x > 0``,
``state.count + 1``). This module validates them and rewrites them
into Python that runs against the generated procedure's locals:

* ``workflow.a.b``  → ``workflow["a"]["b"]``
* ``state.a``       → ``state["a"]``
* ``input.a``       → ``<previous result>["a"]`` (or ``workflow["a"]``)
* ``undefined`` / ``null`` → ``None``, ``true``/``false`` → ``True``/``False``
* ``&&`` / ``||`` / ``!`` → ``and`` / ``or`` / ``not``

String literals are copied through untouched.
"""

from __future__ import annotations

import json
import re
from logging import getLogger
from typing import Iterable, List, Optional, Tuple

from flowgen.workflow.errors import ExpressionParseError

logger = getLogger(__name__)

EXPECTED_TOKENS = (
    "Expecting: one of these possible Token sequences: "
    "1. [OpenParenthesis] 2. [BooleanLiteral] 3. [Null] 4. [StringLiteral] "
    "5. [Float] 6. [Integer] 7. [OpenBracket] 8. [OpenCurlyBracket] "
    "9. [Identifier, OpenParenthesis] 10. [ObjectIdentifier, Dot] "
    "11. [ObjectIdentifier, OpenBracket] 12. [ObjectIdentifier]"
)

_ERROR_MARKERS = re.compile(
    r"invalid syntax|syntax error|undefined variable|missing operand|unexpected token",
    re.IGNORECASE,
)

_ROOTS = ("workflow", "state")
_INPUT_ROOT = "input"

_LITERALS = {
    "undefined": "None",
    "null": "None",
    "true": "True",
    "false": "False",
}

_TOKEN_RE = re.compile(
    r"""
    (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<op>&&|\|\||!=|==|<=|>=|!)
  | (?P<space>\s+)
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_BARE_REFERENCE = re.compile(
    r"^(?:workflow|state|input)(?:\.[A-Za-z_][A-Za-z0-9_]*)+$"
)
_QUOTED = re.compile(r"""^(?:"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')$""", re.DOTALL)
_INDEXED = re.compile(r'\b(workflow|state)((?:\["[A-Za-z_][A-Za-z0-9_]*"\])+)')
_INDEX_SEGMENT = re.compile(r'\["([A-Za-z_][A-Za-z0-9_]*)"\]')


# ====================================================================
# Validation
# ====================================================================


def is_valid_expression(expression: Optional[str]) -> bool:
    """Reject empty expressions and ones carrying known error markers."""
    if expression is None or not expression.strip():
        return False
    return _ERROR_MARKERS.search(expression) is None


def parse_error_detail(expression: str) -> str:
    return f"{EXPECTED_TOKENS} but found: '{expression}'"


def ensure_valid(expression: Optional[str]) -> str:
    """Validate a single expression (While conditions).

    Raises:
        ExpressionParseError: with the single-expression message shape.
    """
    text = expression or ""
    if not is_valid_expression(text):
        raise ExpressionParseError(
            f"Failed to parse expression : {parse_error_detail(text)}", [text]
        )
    return text


def ensure_all_valid(expressions: Iterable[str]) -> None:
    """Validate several expressions at once (IfElse predicates).

    Every invalid expression is reported, joined by ``", "``.
    """
    invalid = [e for e in expressions if not is_valid_expression(e)]
    if invalid:
        details = ", ".join(parse_error_detail(e) for e in invalid)
        raise ExpressionParseError(f"Failed to parse expressions: {details}", invalid)


# ====================================================================
# Translation
# ====================================================================


def _tokens(expression: str) -> List[Tuple[str, str]]:
    return [(m.lastgroup, m.group()) for m in _TOKEN_RE.finditer(expression)]


def _read_path(tokens: List[Tuple[str, str]], start: int) -> Tuple[List[str], int]:
    """Collect ``.segment`` names after a root, skipping method calls."""
    segments: List[str] = []
    i = start
    while (
        i + 1 < len(tokens)
        and tokens[i] == ("other", ".")
        and tokens[i + 1][0] == "name"
    ):
        follows_call = i + 2 < len(tokens) and tokens[i + 2] == ("other", "(")
        if follows_call:
            break
        segments.append(tokens[i + 1][1])
        i += 2
    return segments, i


def translate_expression(expression: Optional[str], input_binding: Optional[str] = None) -> str:
    """Rewrite a builder expression into Python source.

    ``input_binding`` names the variable holding the previous node's
    result; ``input.*`` references resolve against it.
    """
    if not expression:
        return ""
    tokens = _tokens(expression)
    out: List[str] = []
    i = 0
    while i < len(tokens):
        kind, text = tokens[i]
        prev = tokens[i - 1] if i else None
        after_dot = prev == ("other", ".")

        if kind == "name" and not after_dot and text in _ROOTS + (_INPUT_ROOT,):
            segments, end = _read_path(tokens, i + 1)
            if segments:
                root = text
                if text == _INPUT_ROOT:
                    root = input_binding or "workflow"
                out.append(root + "".join(f'["{s}"]' for s in segments))
                i = end
                continue
            out.append(text)
        elif kind == "name" and not after_dot and text in _LITERALS:
            out.append(_LITERALS[text])
        elif kind == "op" and text in ("&&", "||"):
            word = "and" if text == "&&" else "or"
            if out and not out[-1].isspace():
                out.append(" ")
            out.append(word)
            if i + 1 < len(tokens) and tokens[i + 1][0] != "space":
                out.append(" ")
        elif kind == "op" and text == "!":
            out.append("not ")
            # "!  x" keeps a single separator
            while i + 1 < len(tokens) and tokens[i + 1][0] == "space":
                i += 1
        else:
            out.append(text)
        i += 1

    return "".join(out).strip()


def to_dotted(python_expr: str) -> str:
    """Inverse of the reference rewrite: ``workflow["x"]`` → ``workflow.x``."""

    def _dotted(match: re.Match) -> str:
        names = _INDEX_SEGMENT.findall(match.group(2))
        return match.group(1) + "".join(f".{n}" for n in names)

    return _INDEXED.sub(_dotted, python_expr)


def strip_quotes(text: str) -> str:
    """Drop one pair of surrounding quotes from a literal."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def literal_or_expression(text: Optional[str], input_binding: Optional[str] = None) -> str:
    """Python source for a field that holds either text or a reference.

    Bare references and quoted literals are translated as expressions;
    anything else is taken as plain text and quoted.
    """
    raw = (text or "").strip()
    if _BARE_REFERENCE.match(raw):
        return translate_expression(raw, input_binding)
    if _QUOTED.match(raw):
        return json.dumps(strip_quotes(raw), ensure_ascii=False)
    return json.dumps(text or "", ensure_ascii=False)

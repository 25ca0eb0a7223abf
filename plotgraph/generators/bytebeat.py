"""Bytebeat formulas: a tiny integer expression language over ``t``.

Provides:
    - parse_formula(): source -> postfix Program (raises ParseError)
    - evaluate_sequence(): values of a formula for t = 0..count-1
    - evaluate_bytebeat(): node evaluator (instances or a waveform plot)

Grammar (lowest to highest precedence)::

    expr    := xor ('|' xor)*
    xor     := and ('^' and)*
    and     := shift ('&' shift)*
    shift   := sum (('<<' | '>>' | '>>>') sum)*
    sum     := product (('+' | '-') product)*
    product := unary (('*' | '/' | '%') unary)*
    unary   := ('-' | '~' | '+') unary | atom
    atom    := INT | HEX | 't' | '(' expr ')'

Arithmetic is 32-bit signed with wraparound after every operation.
Division truncates toward zero and ``x / 0 == x % 0 == 0``.  Shift counts
use their low 5 bits; ``>>>`` shifts in zeros.  The final value is folded
to a byte with ``& 0xFF``.

Used by:
    - plotgraph.engine.dispatch (bytebeat node)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Tuple, Union

import numpy as np

from plotgraph.graph.errors import ParseError
from plotgraph.graph.params import BytebeatParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.utils.geometry import apply_affine, paths_centroid, pivot_transform

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Integer semantics
# ---------------------------------------------------------------------------


def _wrap32(v: int) -> int:
    return ((v + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def _div(a: int, b: int) -> int:
    if b == 0:
        return 0
    q = abs(a) // abs(b)
    return _wrap32(q if (a < 0) == (b < 0) else -q)


def _mod(a: int, b: int) -> int:
    if b == 0:
        return 0
    r = abs(a) % abs(b)
    return -r if a < 0 else r


_BINARY = {
    "+": lambda a, b: _wrap32(a + b),
    "-": lambda a, b: _wrap32(a - b),
    "*": lambda a, b: _wrap32(a * b),
    "/": _div,
    "%": _mod,
    "&": lambda a, b: a & b,
    "|": lambda a, b: a | b,
    "^": lambda a, b: a ^ b,
    "<<": lambda a, b: _wrap32(a << (b & 31)),
    ">>": lambda a, b: a >> (b & 31),
    ">>>": lambda a, b: _wrap32((a & 0xFFFFFFFF) >> (b & 31)),
}

_UNARY = {
    "-": lambda a: _wrap32(-a),
    "~": lambda a: ~a,
    "+": lambda a: a,
}


# ---------------------------------------------------------------------------
# Compiled program
# ---------------------------------------------------------------------------

# Parentheses plus unary prefixes; keeps the recursive parser shallow
MAX_NESTING = 32


@dataclass(frozen=True)
class Instr:
    """One postfix instruction: push a number, push ``t``, or apply an operator."""

    kind: str  # "num" | "var" | "unary" | "binary"
    value: Union[int, str, None] = None


@dataclass(frozen=True)
class Program:
    """Postfix form of a formula, evaluated with an explicit stack."""

    code: Tuple[Instr, ...]

    def eval(self, t: int) -> int:
        stack: List[int] = []
        for ins in self.code:
            if ins.kind == "num":
                stack.append(ins.value)
            elif ins.kind == "var":
                stack.append(t)
            elif ins.kind == "unary":
                stack.append(_UNARY[ins.value](stack.pop()))
            else:
                b = stack.pop()
                a = stack.pop()
                stack.append(_BINARY[ins.value](a, b))
        return stack[-1]


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass
class Token:
    kind: str
    value: str
    col: int


TOKEN_RE = re.compile(
    r"""
    (?P<HEX>0[xX][0-9a-fA-F]+)
  | (?P<INT>\d+)
  | (?P<VAR>t\b)
  | (?P<OP>>>>|<<|>>|[+\-*/%&|^~()])
  | (?P<SKIP>\s+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE,
)


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    for m in TOKEN_RE.finditer(source):
        kind = m.lastgroup
        value = m.group()
        col = m.start() + 1
        if kind == "SKIP":
            continue
        if kind == "MISMATCH":
            raise ParseError(f"unexpected character {value!r} at column {col}")
        tokens.append(Token(kind, value, col))
    tokens.append(Token("EOF", "", len(source) + 1))
    return tokens


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

# Binary levels, loosest first
_LEVELS = (
    ("|",),
    ("^",),
    ("&",),
    ("<<", ">>", ">>>"),
    ("+", "-"),
    ("*", "/", "%"),
)



class Parser:
    """Precedence-climbing parser that emits postfix instructions.

    Chains of one operator loop instead of recursing, so only parentheses
    and unary prefixes add stack depth; both count against
    ``MAX_NESTING``.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.i = 0
        self.depth = 0
        self.code: List[Instr] = []

    def peek(self) -> Token:
        return self.tokens[self.i]

    def advance(self) -> Token:
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def expect(self, value: str) -> Token:
        tok = self.peek()
        if tok.kind != "OP" or tok.value != value:
            found = tok.value or "end of formula"
            raise ParseError(f"expected {value!r} at column {tok.col}, found {found!r}")
        return self.advance()

    def parse(self) -> Program:
        self.parse_level(0)
        tok = self.peek()
        if tok.kind != "EOF":
            raise ParseError(f"unexpected {tok.value!r} at column {tok.col}")
        return Program(tuple(self.code))

    def nest(self, tok: Token) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ParseError(
                f"formula nests deeper than {MAX_NESTING} levels at column {tok.col}"
            )

    def parse_level(self, level: int) -> None:
        if level == len(_LEVELS):
            self.parse_unary()
            return
        self.parse_level(level + 1)
        while self.peek().kind == "OP" and self.peek().value in _LEVELS[level]:
            op = self.advance().value
            self.parse_level(level + 1)
            self.code.append(Instr("binary", op))

    def parse_unary(self) -> None:
        tok = self.peek()
        if tok.kind == "OP" and tok.value in _UNARY:
            self.advance()
            self.nest(tok)
            self.parse_unary()
            self.depth -= 1
            self.code.append(Instr("unary", tok.value))
            return
        self.parse_atom()

    def parse_atom(self) -> None:
        tok = self.advance()
        if tok.kind == "INT":
            self.code.append(Instr("num", _wrap32(int(tok.value))))
        elif tok.kind == "HEX":
            self.code.append(Instr("num", _wrap32(int(tok.value, 16))))
        elif tok.kind == "VAR":
            self.code.append(Instr("var"))
        elif tok.kind == "OP" and tok.value == "(":
            self.nest(tok)
            self.parse_level(0)
            self.expect(")")
            self.depth -= 1
        else:
            found = tok.value or "end of formula"
            raise ParseError(f"expected a number, 't' or '(' at column {tok.col}, found {found!r}")


def parse_formula(source: str) -> Program:
    """Parse a bytebeat formula.

    Raises
    ------
    ParseError
        On unknown characters, unbalanced parentheses, a dangling operator
        or nesting deeper than ``MAX_NESTING``.
    """
    if not source.strip():
        raise ParseError("formula is empty")
    return Parser(tokenize(source)).parse()


def evaluate_sequence(formula: str | Program, count: int) -> List[int]:
    """Byte values of *formula* for ``t = 0 .. count - 1``.

    >>> evaluate_sequence("t*2", 4)
    [0, 2, 4, 6]
    """
    program = parse_formula(formula) if isinstance(formula, str) else formula
    return [program.eval(t) & 0xFF for t in range(count)]


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


def _instance_transform(val: int, params: BytebeatParams) -> tuple[float, float, float, float]:
    """(dx, dy, rotation_deg, scale) for one value; offsets are from the base point."""
    if params.mode == "position":
        return val * params.x_scale, (val >> 4) * params.y_scale, 0.0, 1.0
    if params.mode == "rotation":
        return 0.0, 0.0, val * params.rot_scale, 1.0
    if params.mode == "scale":
        return 0.0, 0.0, 0.0, 0.5 + val * params.scl_scale
    # all: low nibble moves x, high nibble moves y
    return (
        (val & 0x0F) * params.x_scale,
        ((val >> 4) & 0x0F) * params.y_scale,
        (val & 0x1F) * params.rot_scale,
        0.5 + (val >> 5) * params.scl_scale,
    )


def evaluate_bytebeat(params: BytebeatParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """One transformed copy of the input per ``t``, or a plot of the sequence.

    Each copy is scaled and rotated about the input centroid, and the
    centroid is moved to ``(base_x, base_y)`` plus the mode's offset.
    """
    values = evaluate_sequence(params.formula, params.count)
    paths = inputs.paths()

    if not paths:
        t = np.arange(params.count, dtype=np.float64)
        wave = np.column_stack([
            params.base_x + t * params.x_scale,
            params.base_y + np.asarray(values, dtype=np.float64) * params.y_scale,
        ])
        return paths_output([wave])

    cx, cy = paths_centroid(paths)
    out = []
    for val in values:
        dx, dy, rot, scl = _instance_transform(val, params)
        m = pivot_transform(
            params.base_x + dx - cx, params.base_y + dy - cy, rot, scl, cx, cy
        )
        out.extend(apply_affine(paths, m))
    logger.debug("bytebeat %r -> %d instances", params.formula, len(values))
    return paths_output(out)

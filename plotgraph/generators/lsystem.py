"""Lindenmayer systems: string rewriting plus a turtle interpreter.

Provides:
    - parse_rules(): "F=F+F,X=FX" -> {"F": "F+F", "X": "FX"}
    - expand(): rewrite the axiom, bounded by a maximum length
    - run_turtle(): walk the expanded string, yielding drawn segments
    - evaluate_lsystem(): node evaluator (turtle lines or stamped input)

Turtle alphabet:
    F G A B 0 1 6 7 8 9   move forward and draw
    f                     move forward without drawing
    + / -                 turn by +angle / -angle
    |                     turn around
    [ / ]                 push / pop (x, y, heading, scale)

Other characters are ignored.  Headings are degrees with 0 along +x;
positive turns are clockwise on a y-down screen.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np

from plotgraph.graph.errors import ParseError
from plotgraph.graph.params import LSystemParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.utils.geometry import PathSet, apply_affine, paths_centroid, pivot_transform

logger = logging.getLogger(__name__)

DRAW_CHARS = frozenset("FGAB016789")

_RULE_SPLIT_RE = re.compile(r"[,;\n]")


def parse_rules(source: str) -> Dict[str, str]:
    """Parse ``key=replacement`` rules separated by ``,``, ``;`` or newlines.

    Blank entries are skipped.  Later rules for the same key win.

    Raises
    ------
    ParseError
        If an entry has no ``=`` or its key is not a single character.
    """
    rules: Dict[str, str] = {}
    for entry in _RULE_SPLIT_RE.split(source):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ParseError(f"rule {entry!r} has no '='")
        key, replacement = entry.split("=", 1)
        key = key.strip()
        if len(key) != 1:
            raise ParseError(f"rule key must be one character, got {key!r}")
        rules[key] = replacement.strip()
    return rules


def expand(axiom: str, rules: Dict[str, str], iterations: int, max_length: int) -> str:
    """Apply *rules* to *axiom* up to *iterations* times.

    Rewriting stops after the generation in which the string first exceeds
    *max_length*, and the result is cut to *max_length* characters.
    """
    current = axiom
    for i in range(iterations):
        current = "".join(rules.get(ch, ch) for ch in current)
        if len(current) > max_length:
            logger.warning(
                "L-system expansion truncated at %d characters after %d of %d iterations",
                max_length, i + 1, iterations,
            )
            return current[:max_length]
    return current


@dataclass
class TurtleState:
    x: float
    y: float
    heading: float
    scale: float = 1.0


@dataclass(frozen=True)
class Stroke:
    """One forward move; ``draw`` is False for ``f``."""

    start: Tuple[float, float]
    end: Tuple[float, float]
    heading: float
    scale: float
    draw: bool


def run_turtle(
    program: str,
    start: TurtleState,
    angle: float,
    step_size: float,
    scale_per_iter: float,
) -> Iterator[Tuple[str, object]]:
    """Interpret *program*, yielding ``("move", Stroke)`` and ``("break", None)``.

    A ``break`` is emitted on every push and pop so callers can start a new
    polyline there.

    Raises
    ------
    ParseError
        On ``]`` with an empty stack.
    """
    state = TurtleState(start.x, start.y, start.heading, start.scale)
    stack: List[TurtleState] = []
    for pos, ch in enumerate(program):
        if ch in DRAW_CHARS or ch == "f":
            rad = math.radians(state.heading)
            length = step_size * state.scale
            nx = state.x + math.cos(rad) * length
            ny = state.y + math.sin(rad) * length
            yield "move", Stroke((state.x, state.y), (nx, ny), state.heading, state.scale, ch != "f")
            state.x, state.y = nx, ny
        elif ch == "+":
            state.heading += angle
        elif ch == "-":
            state.heading -= angle
        elif ch == "|":
            state.heading += 180.0
        elif ch == "[":
            stack.append(TurtleState(state.x, state.y, state.heading, state.scale))
            state.scale *= scale_per_iter
            yield "break", None
        elif ch == "]":
            if not stack:
                raise ParseError(f"unbalanced ']' at position {pos}")
            state = stack.pop()
            yield "break", None


def _turtle_lines(events: Iterator[Tuple[str, object]]) -> PathSet:
    paths: PathSet = []
    current: List[Tuple[float, float]] = []

    def flush() -> None:
        if len(current) >= 2:
            paths.append(np.array(current, dtype=np.float64))
        current.clear()

    for kind, stroke in events:
        if kind == "break" or not stroke.draw:
            flush()
            continue
        if not current:
            current.append(stroke.start)
        current.append(stroke.end)
    flush()
    return paths


def _stamp(events: Iterator[Tuple[str, object]], shapes: PathSet, limit: int) -> PathSet:
    cx, cy = paths_centroid(shapes)
    out: PathSet = []
    for kind, stroke in events:
        if kind != "move" or not stroke.draw:
            continue
        if len(out) + len(shapes) > limit:
            logger.warning("L-system stamping stopped at %d paths", len(out))
            break
        x, y = stroke.start
        m = pivot_transform(x - cx, y - cy, stroke.heading + 90.0, stroke.scale, cx, cy)
        out.extend(apply_affine(shapes, m))
    return out


def evaluate_lsystem(params: LSystemParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    """Draw the turtle path, or stamp the input shapes along it."""
    limits = ctx.config.limits
    rules = parse_rules(params.rules)
    program = expand(params.axiom, rules, params.iterations, limits.max_lsystem_length)
    events = run_turtle(
        program,
        TurtleState(params.start_x, params.start_y, params.start_angle),
        params.angle,
        params.step_size,
        params.scale_per_iter,
    )

    shapes = inputs.paths()
    if shapes:
        return paths_output(_stamp(events, shapes, limits.max_stamped_paths))
    return paths_output(_turtle_lines(events))

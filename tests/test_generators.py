"""Test the algorithmic generators.

Tests for plotgraph.generators:
    - bytebeat: integer semantics, precedence, parse errors, node modes
    - attractor: determinism, start point, divergence, recentring, presets
    - l-system: rule parsing, bounded expansion, turtle, stamping cap

Run:
    pytest tests/test_generators.py -v
"""

from __future__ import annotations

import logging

import numpy as np
import pytest

from plotgraph.configs.loader import EngineConfig, LimitsConfig
from plotgraph.generators.attractor import (
    PRESETS,
    START_POINTS,
    evaluate_attractor,
    resolve_coefficients,
    trace,
)
from plotgraph.generators.bytebeat import MAX_NESTING, evaluate_bytebeat, evaluate_sequence, parse_formula
from plotgraph.generators.lsystem import (
    TurtleState,
    evaluate_lsystem,
    expand,
    parse_rules,
    run_turtle,
)
from plotgraph.graph.errors import ParameterError, ParseError
from plotgraph.graph.model import NodeType
from plotgraph.graph.params import validate_params
from plotgraph.nodes.base import EvalContext, NodeInputs
from plotgraph.utils.geometry import paths_bbox, paths_centroid


def _params(node_type: NodeType, **raw):
    return validate_params(node_type, raw)


# ---------------------------------------------------------------------------
# Bytebeat
# ---------------------------------------------------------------------------


class TestBytebeatLanguage:
    def test_matches_reference_formula(self) -> None:
        got = evaluate_sequence("t & t>>8", 1000)
        assert got == [(t & (t >> 8)) & 0xFF for t in range(1000)]

    def test_classic_formula(self) -> None:
        got = evaluate_sequence("t*(t>>5|t>>8)", 4000)
        assert got == [(t * ((t >> 5) | (t >> 8))) & 0xFF for t in range(4000)]

    @pytest.mark.parametrize(
        "source, value",
        [
            ("1+2*3", 7),
            ("(1+2)*3", 9),
            ("1|2^3&4", 3),
            ("2+3<<1", 10),
            ("10-4-3", 3),
            ("-2*3", -6),
            ("~0", -1),
            ("0xFF+1", 256),
            ("0x10", 16),
        ],
    )
    def test_precedence_and_literals(self, source: str, value: int) -> None:
        assert parse_formula(source).eval(0) == value

    def test_division_truncates(self) -> None:
        assert parse_formula("-7/2").eval(0) == -3
        assert parse_formula("7/-2").eval(0) == -3

    def test_modulo_takes_dividend_sign(self) -> None:
        assert parse_formula("-7%2").eval(0) == -1
        assert parse_formula("7%-2").eval(0) == 1

    def test_divide_by_zero_is_zero(self) -> None:
        assert evaluate_sequence("t/0", 5) == [0] * 5
        assert evaluate_sequence("t%0", 5) == [0] * 5

    def test_int32_wraparound(self) -> None:
        assert parse_formula("2147483647+1").eval(0) == -2147483648
        assert parse_formula("65536*65536").eval(0) == 0

    def test_shifts(self) -> None:
        assert parse_formula("-1>>28").eval(0) == -1
        assert parse_formula("-1>>>28").eval(0) == 15
        assert parse_formula("1<<33").eval(0) == 2

    def test_byte_fold(self) -> None:
        assert evaluate_sequence("t*100", 4) == [0, 100, 200, 44]
        assert evaluate_sequence("-1", 1) == [255]

    def test_parsed_expr_reusable(self) -> None:
        expr = parse_formula("t*3")
        assert evaluate_sequence(expr, 3) == [0, 3, 6]

    @pytest.mark.parametrize("source", ["", "   ", "t+", "(t", "t)", "t $ 2", "tt", "2 3"])
    def test_parse_errors(self, source: str) -> None:
        with pytest.raises(ParseError):
            parse_formula(source)

    def test_parse_error_reports_column(self) -> None:
        with pytest.raises(ParseError, match="column 3"):
            parse_formula("t $ 2")

    def test_long_operator_chain_evaluates(self) -> None:
        source = "+".join(["t"] * 3000)
        assert evaluate_sequence(source, 3) == [0, 3000 & 0xFF, 6000 & 0xFF]

    @pytest.mark.parametrize("source", ["(" * 300 + "t" + ")" * 300, "-" * 300 + "t", "~(" * 40 + "t" + ")" * 40])
    def test_deep_nesting_is_a_parse_error(self, source: str) -> None:
        with pytest.raises(ParseError, match="nests deeper"):
            parse_formula(source)

    def test_nesting_at_limit(self) -> None:
        source = "(" * MAX_NESTING + "t" + ")" * MAX_NESTING
        assert evaluate_sequence(source, 2) == [0, 1]

    def test_formula_length_capped(self) -> None:
        with pytest.raises(ParameterError):
            _params(NodeType.BYTEBEAT, formula="t+" * 1500 + "t")


class TestBytebeatNode:
    def test_waveform_without_input(self, ctx) -> None:
        params = _params(NodeType.BYTEBEAT, formula="t", count=8, baseX=0, baseY=0, xScale=1, yScale=2)
        (wave,) = evaluate_bytebeat(params, NodeInputs(), ctx).paths
        assert wave.shape == (8, 2)
        assert wave[:, 0] == pytest.approx(np.arange(8))
        assert wave[:, 1] == pytest.approx(np.arange(8) * 2.0)

    def test_one_instance_per_value(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.BYTEBEAT, formula="t*16", count=2, baseX=0, baseY=0, xScale=1, yScale=1)
        out = evaluate_bytebeat(params, make_inputs(square), ctx).paths
        assert len(out) == 2
        # t=0 lands on the base point; t=1 gives value 16 -> (16, 1)
        assert paths_centroid([out[0]]) == pytest.approx((0.0, 0.0))
        assert paths_centroid([out[1]]) == pytest.approx((16.0, 1.0))

    def test_rotation_mode_keeps_centroid(self, ctx, square, make_inputs) -> None:
        params = _params(NodeType.BYTEBEAT, formula="t*7", count=5, mode="rotation", baseX=3, baseY=4)
        out = evaluate_bytebeat(params, make_inputs(square), ctx).paths
        for path in out:
            assert paths_centroid([path]) == pytest.approx((3.0, 4.0))

    def test_bad_formula_fails_node(self, ctx) -> None:
        params = _params(NodeType.BYTEBEAT, formula="t +* ")
        with pytest.raises(ParseError):
            evaluate_bytebeat(params, NodeInputs(), ctx)


# ---------------------------------------------------------------------------
# Attractor
# ---------------------------------------------------------------------------


class TestAttractor:
    def test_every_family_has_classic_and_start(self) -> None:
        assert set(PRESETS) == set(START_POINTS)
        for family in PRESETS:
            assert "classic" in PRESETS[family]

    def test_deterministic(self) -> None:
        coeffs = PRESETS["clifford"]["classic"]
        a = trace("clifford", coeffs, 2000)
        b = trace("clifford", coeffs, 2000)
        assert a.shape == (2000, 2)
        assert np.array_equal(a, b)

    def test_starts_at_start_point(self) -> None:
        pts = trace("dejong", PRESETS["dejong"]["classic"], 10)
        assert tuple(pts[0]) == START_POINTS["dejong"]

    def test_divergence_stops_orbit(self) -> None:
        pts = trace("clifford", PRESETS["clifford"]["classic"], 100, divergence=0.5)
        assert pts.shape == (1, 2)

    def test_unset_coefficients_take_classic(self) -> None:
        params = _params(NodeType.ATTRACTOR, type="tinkerbell", a=0.5)
        assert resolve_coefficients(params) == (0.5, -0.6, 2.0, 0.5)

    def test_bedhead_zero_b(self, ctx) -> None:
        params = _params(NodeType.ATTRACTOR, type="bedhead", b=0)
        with pytest.raises(ParameterError, match="b != 0"):
            evaluate_attractor(params, NodeInputs(), ctx)

    def test_recentred_on_center(self, ctx) -> None:
        params = _params(NodeType.ATTRACTOR, iterations=3000, centerX=40, centerY=30, scale=10)
        (path,) = evaluate_attractor(params, NodeInputs(), ctx).paths
        x0, y0, x1, y1 = paths_bbox([path])
        assert ((x0 + x1) / 2.0, (y0 + y1) / 2.0) == pytest.approx((40.0, 30.0))

    def test_iterations_capped_by_limits(self) -> None:
        cfg = EngineConfig(limits=LimitsConfig(max_attractor_iterations=200))
        params = _params(NodeType.ATTRACTOR, iterations=5000)
        (path,) = evaluate_attractor(params, NodeInputs(), EvalContext(cfg)).paths
        assert path.shape == (200, 2)


# ---------------------------------------------------------------------------
# L-system
# ---------------------------------------------------------------------------


class TestLSystemRules:
    def test_parse_rules(self) -> None:
        assert parse_rules("F=F+F, X = FX;Y=\nG=GG") == {
            "F": "F+F", "X": "FX", "Y": "", "G": "GG",
        }

    def test_blank_rules(self) -> None:
        assert parse_rules(" , ;") == {}

    def test_missing_equals(self) -> None:
        with pytest.raises(ParseError, match="no '='"):
            parse_rules("F")

    def test_long_key(self) -> None:
        with pytest.raises(ParseError, match="one character"):
            parse_rules("FF=F")

    def test_expand(self) -> None:
        assert expand("F", {"F": "FF"}, 3, 1000) == "F" * 8
        assert expand("AB", {"A": "AB", "B": "A"}, 2, 1000) == "ABAAB"

    def test_expand_zero_iterations(self) -> None:
        assert expand("F+F", {"F": "FF"}, 0, 1000) == "F+F"

    def test_expand_truncates(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            out = expand("F", {"F": "FF"}, 3, 5)
        assert out == "FFFFF"
        assert "truncated" in caplog.text


class TestTurtle:
    def _lines(self, program: str, ctx, **raw):
        params = _params(
            NodeType.L_SYSTEM, axiom=program, rules="", iterations=0,
            angle=90, stepSize=10, startX=0, startY=0, startAngle=0, **raw,
        )
        return evaluate_lsystem(params, NodeInputs(), ctx).paths

    def test_single_polyline(self, ctx) -> None:
        (path,) = self._lines("F+F", ctx)
        # +90 turns from +x toward +y
        assert path == pytest.approx([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0]], abs=1e-9)

    def test_branches_split_polylines(self, ctx) -> None:
        out = self._lines("F[+F]F", ctx)
        assert len(out) == 3
        assert out[1] == pytest.approx([[10.0, 0.0], [10.0, 10.0]], abs=1e-9)
        assert out[2] == pytest.approx([[10.0, 0.0], [20.0, 0.0]], abs=1e-9)

    def test_pen_up_move(self, ctx) -> None:
        out = self._lines("FfF", ctx)
        assert len(out) == 2
        assert out[1][0] == pytest.approx([20.0, 0.0])

    def test_branch_scale(self, ctx) -> None:
        out = self._lines("[F]", ctx, scalePerIter=0.5)
        assert out[0][-1] == pytest.approx([5.0, 0.0])

    def test_unbalanced_bracket(self, ctx) -> None:
        with pytest.raises(ParseError, match="unbalanced"):
            self._lines("F]", ctx)

    def test_run_turtle_events(self) -> None:
        events = list(run_turtle("F[f]", TurtleState(0.0, 0.0, 0.0), 90.0, 1.0, 1.0))
        kinds = [kind for kind, _ in events]
        assert kinds == ["move", "break", "move", "break"]
        assert events[0][1].draw and not events[2][1].draw


class TestLSystemNode:
    def test_truncation_still_draws(self, small_limits_config: EngineConfig,
                                    caplog: pytest.LogCaptureFixture) -> None:
        ctx = EvalContext(small_limits_config)
        params = _params(NodeType.L_SYSTEM, iterations=3)
        with caplog.at_level(logging.WARNING):
            out = evaluate_lsystem(params, NodeInputs(), ctx).paths
        assert out
        assert "truncated" in caplog.text

    def test_stamp_at_stroke_start(self, ctx, square, make_inputs) -> None:
        params = _params(
            NodeType.L_SYSTEM, axiom="F", rules="", iterations=0,
            startX=0, startY=0, startAngle=0,
        )
        out = evaluate_lsystem(params, make_inputs(square), ctx).paths
        assert len(out) == 1
        assert paths_centroid(out) == pytest.approx((0.0, 0.0), abs=1e-9)

    def test_stamping_capped(self, small_limits_config: EngineConfig, square, make_inputs) -> None:
        ctx = EvalContext(small_limits_config)
        params = _params(NodeType.L_SYSTEM, axiom="F" * 50, rules="", iterations=0)
        out = evaluate_lsystem(params, make_inputs(square), ctx).paths
        assert len(out) == small_limits_config.limits.max_stamped_paths

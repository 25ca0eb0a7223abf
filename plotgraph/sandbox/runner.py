"""Restricted execution of custom-code scripts.

A script is the body of ``def node(input, api, math)``.  Before anything
runs, the source is parsed and checked against a whitelist:

- no ``import``, ``global``/``nonlocal``, ``try``, ``with``, ``class``,
  generators, ``yield`` or ``async``
- no name, attribute, argument or function name starting with ``_``
- no frame/generator introspection attributes or ``str.format``

The script sees a fixed set of builtins.  A line-level trace hook
enforces the wall-clock and step budget from ``SandboxConfig``; running
over raises ``ScriptTimeoutError``.  The hook only sees script lines, so
with ``SandboxConfig.isolate`` (the default) the script also runs in a
worker process that is terminated once the budget is spent, which stops
long calls into C such as ``sum(range(10**12))`` as well.  Rejected
source fails before any worker starts.

Usage:
    paths = run_script("return [api.circle(50, 50, 10)]", [], seed=1,
                       budget=SandboxConfig())
"""

from __future__ import annotations

import ast
import logging
import math
import multiprocessing
import sys
import textwrap
import time
from typing import Any, List, Optional, Tuple

import numpy as np

from plotgraph.configs.loader import SandboxConfig
from plotgraph.graph.errors import (
    ParseError,
    PlotGraphError,
    ScriptRuntimeError,
    ScriptTimeoutError,
)
from plotgraph.graph.params import CustomCodeParams
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput, paths_output
from plotgraph.sandbox.api import ScriptApi, script_math, to_script
from plotgraph.utils.geometry import PathSet

logger = logging.getLogger(__name__)

SCRIPT_FILENAME = "<script>"
ENTRY_POINT = "node"

# Wrapper adds one line above the user's code
_LINE_OFFSET = 1

_FORBIDDEN_NODES = (
    ast.Import,
    ast.ImportFrom,
    ast.Global,
    ast.Nonlocal,
    ast.Try,
    ast.With,
    ast.AsyncWith,
    ast.ClassDef,
    ast.AsyncFunctionDef,
    ast.AsyncFor,
    ast.Await,
    ast.Yield,
    ast.YieldFrom,
    ast.GeneratorExp,
) + ((ast.TryStar,) if hasattr(ast, "TryStar") else ())

_FORBIDDEN_ATTR_PREFIXES = ("_", "gi_", "f_", "tb_", "co_", "cr_", "ag_")
_FORBIDDEN_ATTRS = frozenset({"format", "format_map", "mro"})


def _script_print(*args: Any, **kwargs: Any) -> None:
    logger.debug("script: %s", " ".join(str(a) for a in args))


SAFE_BUILTINS = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "range": range,
    "reversed": reversed,
    "round": round,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
    "print": _script_print,
}


# ---------------------------------------------------------------------------
# Static checks
# ---------------------------------------------------------------------------


def _reject(node: ast.AST, what: str) -> None:
    line = getattr(node, "lineno", _LINE_OFFSET + 1) - _LINE_OFFSET
    raise ParseError(f"{what} is not allowed (line {line})")


def check_script(tree: ast.Module) -> None:
    """Walk the user's function body and reject anything off the whitelist.

    Raises
    ------
    ParseError
        At the first forbidden construct.
    """
    func = tree.body[0]
    for stmt in func.body:
        for node in ast.walk(stmt):
            if isinstance(node, _FORBIDDEN_NODES):
                _reject(node, type(node).__name__)
            elif isinstance(node, ast.Name) and node.id.startswith("_"):
                _reject(node, f"name {node.id!r}")
            elif isinstance(node, ast.Attribute) and (
                node.attr.startswith(_FORBIDDEN_ATTR_PREFIXES) or node.attr in _FORBIDDEN_ATTRS
            ):
                _reject(node, f"attribute {node.attr!r}")
            elif isinstance(node, ast.FunctionDef) and node.name.startswith("_"):
                _reject(node, f"function name {node.name!r}")
            elif isinstance(node, ast.arg) and node.arg.startswith("_"):
                _reject(node, f"argument {node.arg!r}")
            elif isinstance(node, ast.keyword) and node.arg and node.arg.startswith("_"):
                _reject(node, f"keyword {node.arg!r}")


def compile_script(code: str):
    """Wrap, parse, check and compile *code*; returns the ``node`` function.

    Raises
    ------
    ParseError
        On syntax errors or forbidden constructs.
    """
    body = textwrap.indent(textwrap.dedent(code), "    ") if code.strip() else "    pass"
    source = f"def {ENTRY_POINT}(input, api, math):\n{body}\n"
    try:
        tree = ast.parse(source, filename=SCRIPT_FILENAME)
    except SyntaxError as exc:
        line = (exc.lineno or _LINE_OFFSET + 1) - _LINE_OFFSET
        raise ParseError(f"{exc.msg} (line {line})") from None
    check_script(tree)

    namespace: dict = {"__builtins__": SAFE_BUILTINS}
    exec(compile(tree, SCRIPT_FILENAME, "exec"), namespace)
    return namespace[ENTRY_POINT]


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


class _Budget:
    """Trace hook counting script lines against a step and time limit."""

    def __init__(self, budget: SandboxConfig):
        self.max_steps = budget.max_steps
        self.time_budget_s = budget.time_budget_s
        self.steps = 0
        self.deadline = 0.0

    def start(self) -> None:
        self.steps = 0
        self.deadline = time.perf_counter() + self.time_budget_s

    def global_trace(self, frame, event, arg):
        if frame.f_code.co_filename == SCRIPT_FILENAME:
            return self.local_trace
        return None

    def local_trace(self, frame, event, arg):
        if event == "line":
            self.steps += 1
            if self.steps > self.max_steps:
                raise ScriptTimeoutError(f"script exceeded {self.max_steps} steps")
            if time.perf_counter() > self.deadline:
                raise ScriptTimeoutError(f"script exceeded {self.time_budget_s:g}s")
        return self.local_trace


def _script_line(tb) -> int | None:
    line = None
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == SCRIPT_FILENAME:
            line = tb.tb_lineno - _LINE_OFFSET
        tb = tb.tb_next
    return line


# ---------------------------------------------------------------------------
# Result coercion
# ---------------------------------------------------------------------------


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, (bool, np.bool_))


def _coerce_point(pt: Any) -> Optional[Tuple[float, float]]:
    if isinstance(pt, np.ndarray):
        if pt.ndim != 1:
            return None
    elif not isinstance(pt, (list, tuple)):
        return None
    if len(pt) < 2 or not (_is_number(pt[0]) and _is_number(pt[1])):
        return None
    try:
        x, y = float(pt[0]), float(pt[1])
    except (OverflowError, TypeError, ValueError):
        # ints beyond the float range
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return x, y


def coerce_result(result: Any) -> PathSet:
    """Turn a script's return value into engine paths.

    Malformed points (wrong shape, non-numeric, non-finite, or too large
    for a float) are skipped and paths left with fewer than two points
    are dropped.

    Raises
    ------
    ScriptRuntimeError
        If *result* is not a list or tuple.
    """
    if isinstance(result, np.ndarray):
        result = list(result) if result.ndim > 0 else result
    if not isinstance(result, (list, tuple)):
        raise ScriptRuntimeError(
            f"script must return a list of paths, got {type(result).__name__}"
        )
    paths: PathSet = []
    for path in result:
        if isinstance(path, np.ndarray) and path.ndim == 0:
            continue
        if not isinstance(path, (list, tuple, np.ndarray)):
            continue
        pts: List[Tuple[float, float]] = []
        for pt in path:
            xy = _coerce_point(pt)
            if xy is not None:
                pts.append(xy)
        if len(pts) >= 2:
            paths.append(np.array(pts, dtype=np.float64))
    return paths


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

# Slack after the budget before the worker is killed; lets the in-worker
# trace hook report line-level overruns itself
_KILL_GRACE_S = 0.25

_REMOTE_ERRORS = {
    cls.kind: cls for cls in (ParseError, ScriptRuntimeError, ScriptTimeoutError)
}


def _execute(code: str, paths: PathSet, seed: int, budget: SandboxConfig) -> PathSet:
    """Compile and run *code* in this process under the line-trace budget."""
    fn = compile_script(code)
    api = ScriptApi(seed)
    tracer = _Budget(budget)

    previous = sys.gettrace()
    tracer.start()
    sys.settrace(tracer.global_trace)
    try:
        result = fn(to_script(paths), api, script_math(api))
    except ScriptTimeoutError:
        raise
    except Exception as exc:
        line = _script_line(exc.__traceback__)
        where = f" (line {line})" if line is not None else ""
        raise ScriptRuntimeError(f"{type(exc).__name__}: {exc}{where}") from None
    finally:
        sys.settrace(previous)
    logger.debug("script finished in %d steps", tracer.steps)

    try:
        return coerce_result(result)
    except ScriptRuntimeError:
        raise
    except Exception as exc:
        raise ScriptRuntimeError(
            f"could not read script result: {type(exc).__name__}: {exc}"
        ) from None


def _worker(conn, code: str, paths: PathSet, seed: int, budget: SandboxConfig) -> None:
    """Worker-process target: announce the start, run, send paths or an error back."""
    try:
        conn.send(("started", None))
        try:
            out = _execute(code, paths, seed, budget)
        except PlotGraphError as exc:
            conn.send(("error", (exc.kind, str(exc))))
        else:
            conn.send(("ok", out))
    finally:
        conn.close()


def _run_isolated(code: str, paths: PathSet, seed: int, budget: SandboxConfig) -> PathSet:
    """Run *code* in a worker process and kill it once the budget is spent."""
    mp = multiprocessing.get_context()
    receiver, sender = mp.Pipe(duplex=False)
    proc = mp.Process(
        target=_worker, args=(sender, code, list(paths), seed, budget), daemon=True
    )
    proc.start()
    sender.close()
    try:
        if not receiver.poll(budget.startup_timeout_s):
            raise ScriptTimeoutError(
                f"script worker did not start within {budget.startup_timeout_s:g}s"
            )
        receiver.recv()
        if not receiver.poll(budget.time_budget_s + _KILL_GRACE_S):
            raise ScriptTimeoutError(f"script exceeded {budget.time_budget_s:g}s")
        status, payload = receiver.recv()
    except EOFError:
        proc.join(1.0)
        raise ScriptRuntimeError(
            f"script worker exited without a result (exit code {proc.exitcode})"
        ) from None
    finally:
        receiver.close()
        if proc.is_alive():
            proc.terminate()
        proc.join()

    if status == "error":
        kind, message = payload
        raise _REMOTE_ERRORS.get(kind, ScriptRuntimeError)(message)
    return payload


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def run_script(code: str, paths: PathSet, seed: int, budget: SandboxConfig) -> PathSet:
    """Run a script against *paths*.

    Parameters
    ----------
    code : str
        Function body.
    paths : list[np.ndarray]
        Upstream PathSet, passed to the script as lists of tuples.
    seed : int
        Seed for ``api.random``, ``api.noise`` and ``math.random``.
    budget : SandboxConfig
        Step and time limits, and whether to run in a worker process.

    Returns
    -------
    list[np.ndarray]
        The script's paths.

    Raises
    ------
    ParseError
        Source rejected before running.
    ScriptTimeoutError
        Budget exceeded.
    ScriptRuntimeError
        Exception inside the script, a non-list return value, or a worker
        that died without answering.
    """
    # Static checks run here so rejected source never starts a worker
    compile_script(code)
    if budget.isolate:
        return _run_isolated(code, paths, seed, budget)
    return _execute(code, paths, seed, budget)


def evaluate_custom_code(params: CustomCodeParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput:
    sandbox = ctx.config.sandbox
    seed = sandbox.seed if params.seed is None else params.seed
    return paths_output(run_script(params.code, inputs.paths(), seed, sandbox))

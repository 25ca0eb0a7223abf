"""Graph evaluation: schedule nodes, run evaluators, memoize, collect errors.

Provides:
    - evaluate(): stateless entry point (graph + patches -> result)
    - Engine: holds the current graph and its cache between runs
    - EvaluationResult / RunStats: what a run returns

A run:
    1. Resolves the Output node (none -> empty result).
    2. Indexes incoming edges per node and collects the Output's ancestors.
    3. Finds dependency cycles among them (iterative Tarjan).  Nodes on a
       cycle, and nodes depending on one, fail with ``CycleError``.  The
       Output still merges its healthy inputs and is annotated.
    4. Orders the healthy nodes dependency-first from the Output, inputs
       in edge order.
    5. Per node: validates parameters, fingerprints inputs and parameters,
       reuses the cached output or runs the evaluator.  A ``PlotGraphError``
       fails that node only (empty output); any other exception is a bug
       and propagates.
    6. Tags each output path with the colour well of the Output input it
       came through.

Used by:
    - external editor / CLI callers
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from plotgraph.configs.loader import EngineConfig
from plotgraph.engine.cache import CachedOutput, ExecutionCache
from plotgraph.engine import dispatch
from plotgraph.graph.errors import CycleError, ParameterError, PlotGraphError
from plotgraph.graph.model import (
    Edge,
    Graph,
    Node,
    ParameterPatch,
    apply_patches,
    input_ports,
    resolve_port,
)
from plotgraph.graph.params import validate_params
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput
from plotgraph.utils.geometry import PathSet, is_drawable
from plotgraph.utils.hashing import combine, fingerprint
from plotgraph.utils.logging_config import log_context

logger = logging.getLogger(__name__)

_run_ids = itertools.count(1)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunStats:
    run_id: int = 0
    nodes_evaluated: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    errors: int = 0
    elapsed_ms: float = 0.0


@dataclass(frozen=True)
class EvaluationResult:
    """Output of one run.

    Parameters
    ----------
    paths : list[np.ndarray]
        Output node's PathSet, read-only arrays.
    colors : list[int | None]
        Colour-well index per path (parallel to *paths*).
    errors : dict[str, str]
        ``node id -> "<Kind>: <message>"`` for failing nodes only.
    stats : RunStats
        Counters for the run.
    """

    paths: PathSet = field(default_factory=list)
    colors: List[Optional[int]] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    stats: RunStats = field(default_factory=RunStats)


# ---------------------------------------------------------------------------
# Topology
# ---------------------------------------------------------------------------

Incoming = Dict[str, List[Tuple[Edge, str]]]


def index_incoming(graph: Graph, nodes: Dict[str, Node]) -> Incoming:
    """``target id -> [(edge, resolved port)]`` in edge order.

    Edges naming unknown nodes or ports are skipped with a warning.
    """
    incoming: Incoming = {node_id: [] for node_id in nodes}
    for edge in graph.edges:
        if edge.source not in nodes or edge.target not in nodes:
            logger.warning("Ignoring edge %s -> %s: unknown node", edge.source, edge.target)
            continue
        port = resolve_port(nodes[edge.target].type, edge.target_port)
        if port is None:
            logger.warning(
                "Ignoring edge %s -> %s: %s has no port %r",
                edge.source, edge.target, nodes[edge.target].type.value, edge.target_port,
            )
            continue
        incoming[edge.target].append((edge, port))
    return incoming


def collect_ancestors(root: str, incoming: Incoming) -> List[str]:
    """*root* and every node it depends on, in discovery order."""
    seen = {root}
    order = [root]
    stack = [root]
    while stack:
        node_id = stack.pop()
        for edge, _ in incoming[node_id]:
            if edge.source not in seen:
                seen.add(edge.source)
                order.append(edge.source)
                stack.append(edge.source)
    return order


def find_cyclic(node_ids: Sequence[str], incoming: Incoming) -> Set[str]:
    """Nodes on a dependency cycle: non-trivial SCCs and self-loops.

    Iterative Tarjan over the dependency edges (target -> source).
    """
    index: Dict[str, int] = {}
    low: Dict[str, int] = {}
    on_stack: Set[str] = set()
    scc_stack: List[str] = []
    cyclic: Set[str] = set()
    counter = 0
    allowed = set(node_ids)

    def deps(v: str) -> List[str]:
        return [e.source for e, _ in incoming[v] if e.source in allowed]

    for start in node_ids:
        if start in index:
            continue
        work = [(start, iter(deps(start)))]
        index[start] = low[start] = counter
        counter += 1
        scc_stack.append(start)
        on_stack.add(start)
        while work:
            v, children = work[-1]
            advanced = False
            for w in children:
                if w not in index:
                    index[w] = low[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    work.append((w, iter(deps(w))))
                    advanced = True
                    break
                if w in on_stack:
                    low[v] = min(low[v], index[w])
            if advanced:
                continue
            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[v])
            if low[v] == index[v]:
                component = []
                while True:
                    w = scc_stack.pop()
                    on_stack.discard(w)
                    component.append(w)
                    if w == v:
                        break
                if len(component) > 1 or v in deps(v):
                    cyclic.update(component)
    return cyclic


def find_tainted(cyclic: Set[str], node_ids: Sequence[str], incoming: Incoming) -> Set[str]:
    """Cyclic nodes plus every node that transitively depends on one."""
    dependants: Dict[str, List[str]] = {v: [] for v in node_ids}
    for v in node_ids:
        for edge, _ in incoming[v]:
            if edge.source in dependants:
                dependants[edge.source].append(v)
    tainted = set(cyclic)
    stack = list(cyclic)
    while stack:
        v = stack.pop()
        for d in dependants[v]:
            if d not in tainted:
                tainted.add(d)
                stack.append(d)
    return tainted


def topological_order(root: str, incoming: Incoming, skip: Set[str]) -> List[str]:
    """Dependency-first order of *root*'s ancestors, excluding *skip*.

    *root* itself is always last.  Inputs are visited in edge order, so
    the order is deterministic.
    """
    order: List[str] = []
    done: Set[str] = set()
    work = [(root, iter(incoming[root]))]
    visiting = {root}
    while work:
        v, children = work[-1]
        for edge, _ in children:
            src = edge.source
            if src in skip or src in done or src in visiting:
                continue
            visiting.add(src)
            work.append((src, iter(incoming[src])))
            break
        else:
            work.pop()
            visiting.discard(v)
            done.add(v)
            order.append(v)
    return order


# ---------------------------------------------------------------------------
# Per-node helpers
# ---------------------------------------------------------------------------

_EMPTY_FP = fingerprint({"paths": [], "raster": None})


def finalize_output(output: NodeOutput) -> NodeOutput:
    """Drop degenerate paths and freeze the arrays."""
    paths: PathSet = []
    for p in output.paths:
        arr = np.asarray(p, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != 2 or not is_drawable(arr):
            continue
        arr.flags.writeable = False
        paths.append(arr)
    return NodeOutput(paths=paths, raster=output.raster)


def output_fingerprint(output: NodeOutput) -> str:
    raster = None
    if output.raster is not None:
        r = output.raster
        raster = [r.lum, r.x, r.y, r.width, r.height]
    return fingerprint({"paths": list(output.paths), "raster": raster})


def nearest_color(node_id: str, nodes: Dict[str, Node], incoming: Incoming) -> Optional[int]:
    """Colour of *node_id*, else of the first coloured node up a single-input chain."""
    seen: Set[str] = set()
    current: Optional[str] = node_id
    while current is not None and current not in seen:
        seen.add(current)
        node = nodes[current]
        if node.color is not None:
            return node.color
        edges = incoming[current]
        current = edges[0][0].source if len(edges) == 1 else None
    return None


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


class _Run:
    """State of a single evaluation pass."""

    def __init__(self, graph: Graph, config: EngineConfig, cache: Optional[ExecutionCache]):
        self.graph = graph
        self.config = config
        self.cache = cache if config.cache_enabled else None
        self.nodes = graph.node_map()
        self.results: Dict[str, CachedOutput] = {}
        self.errors: Dict[str, str] = {}
        self.evaluated = 0
        self.hits = 0
        self.misses = 0

    def fail(self, node: Node, exc: PlotGraphError) -> None:
        self.errors[node.id] = exc.describe()
        logger.warning("Node %s (%s) failed: %s", node.id, node.type.value, exc.describe())

    def gather(self, node: Node, incoming: Incoming) -> Tuple[NodeInputs, str]:
        ports: Dict[str, List[NodeOutput]] = {p: [] for p in input_ports(node.type)}
        fps: Dict[str, List[str]] = {p: [] for p in ports}
        for edge, port in incoming[node.id]:
            upstream = self.results.get(edge.source)
            if upstream is None:
                continue
            ports[port].append(upstream.output)
            fps[port].append(upstream.fingerprint)
        inputs_fp = combine(*(combine(port, *fps[port]) for port in ports))
        return NodeInputs(ports=ports), inputs_fp

    def run_node(self, node: Node, incoming: Incoming) -> None:
        inputs, inputs_fp = self.gather(node, incoming)
        self.results[node.id] = CachedOutput(NodeOutput.empty(), _EMPTY_FP)
        try:
            params = validate_params(node.type, node.params)
        except ParameterError as exc:
            self.fail(node, exc)
            return
        params_fp = fingerprint([node.type, params])

        if self.cache is not None:
            cached = self.cache.get(node.id, inputs_fp, params_fp)
            if cached is not None:
                self.hits += 1
                self.results[node.id] = cached
                return
            self.misses += 1

        ctx = EvalContext(config=self.config, node_id=node.id)
        self.evaluated += 1
        try:
            raw = dispatch.EVALUATORS[node.type](params, inputs, ctx)
        except PlotGraphError as exc:
            self.fail(node, exc)
            return
        output = finalize_output(raw)
        output_fp = output_fingerprint(output)
        if self.cache is not None:
            self.results[node.id] = self.cache.put(node.id, inputs_fp, params_fp, output, output_fp)
        else:
            self.results[node.id] = CachedOutput(output, output_fp)

    def execute(self) -> EvaluationResult:
        output_node = self.graph.resolve_output()
        if output_node is None:
            logger.warning("Graph has no output node; nothing to evaluate")
            return EvaluationResult()

        incoming = index_incoming(self.graph, self.nodes)
        ancestors = collect_ancestors(output_node.id, incoming)
        cyclic = find_cyclic(ancestors, incoming)
        tainted = find_tainted(cyclic, ancestors, incoming)
        for node_id in ancestors:
            if node_id in tainted and node_id != output_node.id:
                on_cycle = "is on" if node_id in cyclic else "depends on"
                self.fail(self.nodes[node_id], CycleError(f"node {on_cycle} a dependency cycle"))

        skip = tainted - {output_node.id}
        for node_id in topological_order(output_node.id, incoming, skip):
            self.run_node(self.nodes[node_id], incoming)

        if output_node.id in tainted and output_node.id not in self.errors:
            self.fail(output_node, CycleError("some inputs depend on a dependency cycle"))

        return EvaluationResult(
            paths=list(self.results[output_node.id].output.paths),
            colors=self.tag_colors(output_node, incoming),
            errors=dict(self.errors),
        )

    def tag_colors(self, output_node: Node, incoming: Incoming) -> List[Optional[int]]:
        colors: List[Optional[int]] = []
        for edge, _ in incoming[output_node.id]:
            upstream = self.results.get(edge.source)
            if upstream is None:
                continue
            color = nearest_color(edge.source, self.nodes, incoming)
            colors.extend([color] * len(upstream.output.paths))
        total = len(self.results[output_node.id].output.paths)
        if len(colors) != total:
            # Output evaluator did not concatenate its inputs one to one
            colors = [output_node.color] * total
        return colors


def _run(graph: Graph, config: EngineConfig, cache: Optional[ExecutionCache]) -> EvaluationResult:
    run_id = next(_run_ids)
    with log_context(run=run_id):
        start = time.perf_counter()
        run = _Run(graph, config, cache)
        result = run.execute()
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        stats = RunStats(
            run_id=run_id,
            nodes_evaluated=run.evaluated,
            cache_hits=run.hits,
            cache_misses=run.misses,
            errors=len(result.errors),
            elapsed_ms=elapsed_ms,
        )
        log = logger.info if result.errors else logger.debug
        log(
            "Run %d: %d nodes, %d evaluated, %d cache hits, %d misses, %d errors, %d paths in %.1f ms",
            run_id, len(graph.nodes), stats.nodes_evaluated, stats.cache_hits,
            stats.cache_misses, stats.errors, len(result.paths), elapsed_ms,
        )
    return EvaluationResult(
        paths=result.paths, colors=result.colors, errors=result.errors, stats=stats
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def evaluate(
    graph: Graph,
    patches: Iterable[ParameterPatch] = (),
    cache: Optional[ExecutionCache] = None,
    config: Optional[EngineConfig] = None,
) -> EvaluationResult:
    """Evaluate *graph* after applying *patches* in order.

    Parameters
    ----------
    graph : Graph
        Graph snapshot.
    patches : Iterable[ParameterPatch]
        Applied before evaluation.
    cache : ExecutionCache, optional
        Reused across calls for incremental evaluation; ``None`` runs
        without memoization.
    config : EngineConfig, optional
        Defaults to ``EngineConfig()``.

    Returns
    -------
    EvaluationResult

    Raises
    ------
    ParameterError
        If a patch is invalid or names an unknown node.
    """
    graph = _patched(graph, patches)
    return _run(graph, config or EngineConfig(), cache)


def _patched(graph: Graph, patches: Iterable[ParameterPatch]) -> Graph:
    try:
        return apply_patches(graph, patches)
    except KeyError as exc:
        raise ParameterError(f"Patch targets unknown node: {exc.args[0]}") from None


class Engine:
    """Evaluator bound to one graph and one cache across runs.

    Usage:
        engine = Engine()
        engine.load(Graph.from_dict(doc))
        engine.apply(ParameterPatch("c1", "radius", 12))
        result = engine.evaluate()
    """

    def __init__(self, config: Optional[EngineConfig] = None, cache: Optional[ExecutionCache] = None):
        self.config = config or EngineConfig()
        self._cache = cache if cache is not None else ExecutionCache()
        self._graph: Optional[Graph] = None

    @property
    def graph(self) -> Optional[Graph]:
        return self._graph

    @property
    def cache(self) -> ExecutionCache:
        return self._cache

    def load(self, graph: Graph) -> None:
        """Replace the graph; cache entries of removed or retyped nodes are dropped."""
        if self._graph is not None:
            new_types = {n.id: n.type for n in graph.nodes}
            stale = [
                n.id for n in self._graph.nodes
                if new_types.get(n.id) is not n.type
            ]
            self._cache.drop(stale)
        self._graph = graph
        logger.debug("Loaded graph with %d nodes, %d edges", len(graph.nodes), len(graph.edges))

    def apply(self, patch: ParameterPatch) -> None:
        self._graph = _patched(self._require_graph(), (patch,))

    def apply_all(self, patches: Iterable[ParameterPatch]) -> None:
        self._graph = _patched(self._require_graph(), patches)

    def evaluate(self) -> EvaluationResult:
        return _run(self._require_graph(), self.config, self._cache)

    def _require_graph(self) -> Graph:
        if self._graph is None:
            raise RuntimeError("No graph loaded; call Engine.load() first")
        return self._graph

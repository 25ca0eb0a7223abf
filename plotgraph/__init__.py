"""plotgraph: node-graph evaluation engine for pen-plotter drawings.

A graph of typed nodes (shapes, iterators, transforms, generators, text,
image converters, custom scripts) is evaluated into an ordered list of
2-D polylines for rendering or plotting.

Architecture layers (strict one-way dependency):
    engine/ -> sandbox/ -> nodes/, generators/, raster/, text/ -> graph/, configs/ -> utils/

Key invariants:
    - A Path is a float64 (N, 2) numpy array with N >= 2
    - Drawing units throughout; y grows downward
    - Angles in degrees; positive turns clockwise on screen
    - Node failures are local: the run always returns a result
    - YAML-only configs
"""

__version__ = "0.1.0"

from plotgraph.engine import Engine, EvaluationResult, ExecutionCache, evaluate
from plotgraph.graph import Edge, Graph, Node, NodeType, ParameterPatch

__all__ = [
    "Edge",
    "Engine",
    "EvaluationResult",
    "ExecutionCache",
    "Graph",
    "Node",
    "NodeType",
    "ParameterPatch",
    "evaluate",
    "__version__",
]

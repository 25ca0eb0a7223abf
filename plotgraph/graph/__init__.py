"""Graph description, parameter records and the error taxonomy."""

from .errors import (
    CycleError,
    ParameterError,
    ParseError,
    PlotGraphError,
    ScriptRuntimeError,
    ScriptTimeoutError,
)
from .model import Edge, Graph, Node, NodeType, ParameterPatch, apply_patch, apply_patches

__all__ = [
    "CycleError",
    "Edge",
    "Graph",
    "Node",
    "NodeType",
    "ParameterError",
    "ParameterPatch",
    "ParseError",
    "PlotGraphError",
    "ScriptRuntimeError",
    "ScriptTimeoutError",
    "apply_patch",
    "apply_patches",
]

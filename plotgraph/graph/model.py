"""Graph description -- the vocabulary between the editor and the engine.

Nodes, edges and parameter patches are immutable, slotted dataclasses.
The editor owns the graph; the engine only ever sees snapshots of it
plus ``ParameterPatch`` commands, which produce a new snapshot.

Ports
-----
Every node type has a single input port ``"in"`` except ``mask``, which
reads the paths to filter on ``"paths"`` and the mask source on
``"mask"``.  An edge without a target port feeds the type's default
port.  Several edges into the same port are concatenated in edge order.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping

from pydantic.alias_generators import to_camel, to_snake

from plotgraph.graph.errors import ParameterError

# ---------------------------------------------------------------------------
# Node catalogue
# ---------------------------------------------------------------------------


class NodeType(str, enum.Enum):
    """Closed catalogue of node types."""

    LINE = "line"
    RECT = "rect"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    ARC = "arc"
    POLYGON = "polygon"
    TEXT = "text"
    SCRIPT_TEXT = "script-text"
    REPEAT = "repeat"
    GRID = "grid"
    RADIAL = "radial"
    TRANSLATE = "translate"
    ROTATE = "rotate"
    SCALE = "scale"
    PATH_LAYOUT = "path-layout"
    BYTEBEAT = "bytebeat"
    ATTRACTOR = "attractor"
    L_SYSTEM = "l-system"
    CUSTOM_CODE = "custom-code"
    SVG_IMPORT = "svg-import"
    IMAGE_IMPORT = "image-import"
    HALFTONE = "halftone"
    ASCII = "ascii"
    MASK = "mask"
    OUTPUT = "output"


DEFAULT_PORT = "in"

INPUT_PORTS: dict[NodeType, tuple[str, ...]] = {
    NodeType.MASK: ("paths", "mask"),
}
"""Input ports per type; types not listed expose only ``"in"``."""


def input_ports(node_type: NodeType) -> tuple[str, ...]:
    return INPUT_PORTS.get(node_type, (DEFAULT_PORT,))


def resolve_port(node_type: NodeType, port: str | None) -> str | None:
    """Map an edge's target port onto one of the node's ports.

    Returns ``None`` for a port the node does not have.
    """
    ports = input_ports(node_type)
    if port is None or port == DEFAULT_PORT:
        return ports[0]
    return port if port in ports else None


# ---------------------------------------------------------------------------
# Graph elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Node:
    """One node of the graph.

    Parameters
    ----------
    id : str
        Unique within the graph.
    type : NodeType
        Catalogue entry selecting the evaluator.
    params : Mapping[str, Any]
        Raw parameter record; validated by the engine on every run.
    color : int | None
        Colour-well index 1-4 used to tag output paths.
    """

    id: str
    type: NodeType
    params: Mapping[str, Any] = field(default_factory=dict)
    color: int | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Node id must be a non-empty string")
        if not isinstance(self.type, NodeType):
            try:
                object.__setattr__(self, "type", NodeType(self.type))
            except ValueError:
                raise ValueError(f"Unknown node type {self.type!r}") from None
        if self.color is not None and (
            not isinstance(self.color, int) or isinstance(self.color, bool) or not 1 <= self.color <= 4
        ):
            raise ValueError(f"color must be a colour-well index 1-4, got {self.color!r}")


@dataclass(frozen=True, slots=True)
class Edge:
    """Directed connection ``source -> target``.

    Parameters
    ----------
    source, target : str
        Node ids.
    source_port : str | None
        Informational; every node has a single output.
    target_port : str | None
        Input port on *target*; ``None`` selects its default port.
    """

    source: str
    target: str
    source_port: str | None = None
    target_port: str | None = None


@dataclass(frozen=True, slots=True)
class ParameterPatch:
    """Replace exactly one field of one node's parameter record.

    ``field == "color"`` sets the node's colour well instead.
    """

    node_id: str
    field: str
    value: Any

    def __post_init__(self) -> None:
        if self.field in ("id", "type"):
            raise ParameterError(f"Field {self.field!r} cannot be patched")
        if not self.field:
            raise ParameterError("Patch field must be a non-empty string")


@dataclass(frozen=True, slots=True)
class Graph:
    """Immutable graph snapshot.

    Parameters
    ----------
    nodes : tuple[Node, ...]
        Node ids must be unique.
    edges : tuple[Edge, ...]
        Order matters for inputs feeding the same port.
    output_id : str | None
        The Output node; ``None`` picks the first node of type ``output``.
    """

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    output_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id {node.id!r}")
            seen.add(node.id)

    # -- lookup -------------------------------------------------------------

    def node_map(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def get(self, node_id: str) -> Node:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(f"Unknown node {node_id!r}")

    def resolve_output(self) -> Node | None:
        """The Output node, or ``None`` when the graph has none."""
        if self.output_id is not None:
            node = self.node_map().get(self.output_id)
            return node
        for node in self.nodes:
            if node.type is NodeType.OUTPUT:
                return node
        return None

    # -- construction -------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Graph":
        """Build a graph from plain dicts as sent by the editor.

        Accepts ``{"nodes": [{"id", "type", "params"?, "color"?}],
        "edges": [{"source", "target", "sourcePort"?, "targetPort"?}],
        "output"?: id}``.  Snake-case port keys are accepted too.
        """
        nodes = [
            Node(
                id=str(n["id"]),
                type=NodeType(n["type"]),
                params=dict(n.get("params") or {}),
                color=n.get("color"),
            )
            for n in data.get("nodes", ())
        ]
        edges = [
            Edge(
                source=str(e["source"]),
                target=str(e["target"]),
                source_port=e.get("source_port", e.get("sourcePort")),
                target_port=e.get("target_port", e.get("targetPort")),
            )
            for e in data.get("edges", ())
        ]
        return cls(nodes=tuple(nodes), edges=tuple(edges), output_id=data.get("output"))

    def with_node(self, node: Node) -> "Graph":
        """Copy of the graph with the node of the same id replaced."""
        nodes = tuple(node if n.id == node.id else n for n in self.nodes)
        return replace(self, nodes=nodes)


# ---------------------------------------------------------------------------
# Patches
# ---------------------------------------------------------------------------


def _spellings(name: str) -> set[str]:
    """*name* plus its snake_case and camelCase forms."""
    snake = to_snake(name)
    return {name, snake, to_camel(snake)}


def apply_patch(graph: Graph, patch: ParameterPatch) -> Graph:
    """Return a new graph with *patch* applied.

    The field is matched in either spelling, so patching ``end_angle``
    replaces a stored ``endAngle``.

    Raises
    ------
    KeyError
        If the patched node does not exist.
    ParameterError
        If the new colour is not a colour-well index.
    """
    node = graph.get(patch.node_id)
    if patch.field == "color":
        try:
            patched = replace(node, color=patch.value)
        except (TypeError, ValueError) as exc:
            raise ParameterError(str(exc)) from exc
    else:
        # Records may hold either spelling; the patch replaces both
        spellings = _spellings(patch.field)
        params = {k: v for k, v in node.params.items() if k not in spellings}
        params[patch.field] = patch.value
        patched = replace(node, params=params)
    return graph.with_node(patched)


def apply_patches(graph: Graph, patches: Iterable[ParameterPatch]) -> Graph:
    """Apply *patches* in order."""
    for patch in patches:
        graph = apply_patch(graph, patch)
    return graph

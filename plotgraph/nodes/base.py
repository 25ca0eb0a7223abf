"""Values passed between the scheduler and the node evaluators.

Every evaluator has the signature::

    def evaluate_xxx(params: XxxParams, inputs: NodeInputs, ctx: EvalContext) -> NodeOutput

and is a pure function of those three arguments.  ``NodeInputs`` holds the
already-resolved upstream outputs per port; ``EvalContext`` carries the
engine configuration and the id of the node being evaluated (for log
messages only).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

import numpy as np

from plotgraph.configs.loader import EngineConfig
from plotgraph.raster.image import Raster
from plotgraph.utils.geometry import PathSet


@dataclass(frozen=True)
class NodeOutput:
    """What travels along an edge: paths, plus a raster for image sources."""

    paths: PathSet = field(default_factory=list)
    raster: Raster | None = None

    @classmethod
    def empty(cls) -> "NodeOutput":
        return cls()


@dataclass(frozen=True)
class NodeInputs:
    """Upstream outputs grouped by input port, in edge order."""

    ports: Mapping[str, Sequence[NodeOutput]] = field(default_factory=dict)

    def outputs(self, port: str = "in") -> Sequence[NodeOutput]:
        return self.ports.get(port, ())

    def paths(self, port: str = "in") -> PathSet:
        """All paths arriving on *port*, concatenated in edge order."""
        merged: PathSet = []
        for out in self.outputs(port):
            merged.extend(out.paths)
        return merged

    def raster(self, port: str = "in") -> Raster | None:
        """First raster arriving on *port*, if any."""
        for out in self.outputs(port):
            if out.raster is not None:
                return out.raster
        return None

    def connected(self, port: str = "in") -> bool:
        return bool(self.outputs(port))


@dataclass(frozen=True)
class EvalContext:
    config: EngineConfig
    node_id: str = ""


Evaluator = Callable[..., NodeOutput]


def paths_output(paths: Sequence[np.ndarray]) -> NodeOutput:
    """Wrap a path list as a ``NodeOutput``."""
    return NodeOutput(paths=list(paths))

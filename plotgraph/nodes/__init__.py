"""Node evaluators for shapes, iteration, transforms, text and imports."""

from .base import EvalContext, NodeInputs, NodeOutput

__all__ = ["EvalContext", "NodeInputs", "NodeOutput"]

"""Error taxonomy for graph evaluation.

Every error an evaluator may raise derives from ``PlotGraphError`` and
carries a ``kind`` tag.  The evaluator catches these per node and reports
them as ``"<kind>: <message>"``; anything else escaping an evaluator is an
engine defect and propagates.
"""

from __future__ import annotations


class PlotGraphError(Exception):
    """Base class for node-local evaluation errors."""

    kind = "Error"

    def describe(self) -> str:
        """Return the ``"<kind>: <message>"`` string reported to the editor."""
        return f"{self.kind}: {self}"


class ParseError(PlotGraphError):
    """Malformed bytebeat formula, L-system rules or script source."""

    kind = "ParseError"


class CycleError(PlotGraphError):
    """Node sits on, or depends on, a dependency cycle."""

    kind = "CycleError"


class ScriptRuntimeError(PlotGraphError):
    """Custom-code script raised or returned something that is not paths."""

    kind = "RuntimeError"


class ParameterError(PlotGraphError):
    """Out-of-range, missing or otherwise invalid node parameter."""

    kind = "ParameterError"


class ScriptTimeoutError(PlotGraphError, TimeoutError):
    """Custom-code script exceeded its time or step budget."""

    kind = "TimeoutError"

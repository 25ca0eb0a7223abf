"""Algorithmic generators: bytebeat, strange attractors, L-systems, path layout."""

from .attractor import PRESETS, START_POINTS
from .bytebeat import evaluate_sequence, parse_formula
from .lsystem import expand, parse_rules

__all__ = [
    "PRESETS",
    "START_POINTS",
    "evaluate_sequence",
    "expand",
    "parse_formula",
    "parse_rules",
]

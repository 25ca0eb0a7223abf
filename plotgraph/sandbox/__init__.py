"""Custom-code node: helper API and restricted script runner."""

from .api import PerlinNoise, ScriptApi
from .runner import check_script, coerce_result, compile_script, run_script

__all__ = [
    "PerlinNoise",
    "ScriptApi",
    "check_script",
    "coerce_result",
    "compile_script",
    "run_script",
]

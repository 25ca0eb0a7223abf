"""Graph evaluation engine: scheduler, dispatch table and execution cache."""

from .cache import CachedOutput, CacheStats, ExecutionCache
from .evaluator import Engine, EvaluationResult, RunStats, evaluate

__all__ = [
    "CacheStats",
    "CachedOutput",
    "Engine",
    "EvaluationResult",
    "ExecutionCache",
    "RunStats",
    "evaluate",
]

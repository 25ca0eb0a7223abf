"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Geometry on points, polylines and path sets (geometry)
    - YAML loading (fs)
    - Structural fingerprints for the execution cache (hashing)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (graph, engine, nodes, ...).

Convenience imports:
    from plotgraph.utils import geometry, hashing
    from plotgraph.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import geometry
from . import hashing
from . import logging_config

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    'fs',
    'geometry',
    'hashing',
    'logging_config',
    'setup_logging',
    'get_logger',
    'push_context',
]

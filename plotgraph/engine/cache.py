"""Memoization of node outputs keyed by content fingerprints.

An entry is keyed by ``(node_id, inputs_fp, params_fp)``.  The evaluator
recomputes both fingerprints bottom-up on every run, so a changed
parameter or any changed upstream output simply misses; there are no
dirty flags.  Each node keeps only its latest entry: a ``put`` under new
fingerprints supersedes the old one.

The cache is unbounded for the session and is meant for one graph, since
keys include node ids.  It is not thread-safe; evaluation is one run at a
time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from plotgraph.nodes.base import NodeOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedOutput:
    """A stored output and its own fingerprint (fed to dependants)."""

    output: NodeOutput
    fingerprint: str


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    entries: int


class ExecutionCache:
    """Per-node output cache."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, str, CachedOutput]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, node_id: str, inputs_fp: str, params_fp: str) -> Optional[CachedOutput]:
        """Entry for *node_id* if both fingerprints match, else ``None``."""
        entry = self._entries.get(node_id)
        if entry is not None and entry[0] == inputs_fp and entry[1] == params_fp:
            self._hits += 1
            return entry[2]
        self._misses += 1
        return None

    def put(
        self,
        node_id: str,
        inputs_fp: str,
        params_fp: str,
        output: NodeOutput,
        output_fp: str,
    ) -> CachedOutput:
        cached = CachedOutput(output=output, fingerprint=output_fp)
        self._entries[node_id] = (inputs_fp, params_fp, cached)
        return cached

    def drop(self, node_ids: Iterable[str]) -> int:
        """Forget the given nodes; returns how many entries were removed."""
        removed = 0
        for node_id in node_ids:
            if self._entries.pop(node_id, None) is not None:
                removed += 1
        if removed:
            logger.debug("Dropped %d cache entries", removed)
        return removed

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._entries

    @property
    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, entries=len(self._entries))

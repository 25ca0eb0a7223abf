"""Shared fixtures for plotgraph tests."""

from __future__ import annotations

import numpy as np
import pytest

from plotgraph.configs.loader import EngineConfig, LimitsConfig, SandboxConfig
from plotgraph.nodes.base import EvalContext, NodeInputs, NodeOutput


@pytest.fixture
def config() -> EngineConfig:
    """Default configuration with a short script budget."""
    return EngineConfig(sandbox=SandboxConfig(time_budget_s=0.5, max_steps=200_000, seed=7))


@pytest.fixture
def small_limits_config() -> EngineConfig:
    return EngineConfig(limits=LimitsConfig(max_lsystem_length=200, max_stamped_paths=20))


@pytest.fixture
def ctx(config: EngineConfig) -> EvalContext:
    return EvalContext(config=config, node_id="test")


@pytest.fixture
def square() -> np.ndarray:
    """Four corners of a 10x10 square; vertex centroid (5, 5)."""
    return np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])


@pytest.fixture
def make_inputs():
    """Factory for NodeInputs holding one upstream output on a port."""

    def _make(*paths: np.ndarray, port: str = "in", raster=None) -> NodeInputs:
        return NodeInputs(ports={port: [NodeOutput(paths=list(paths), raster=raster)]})

    return _make

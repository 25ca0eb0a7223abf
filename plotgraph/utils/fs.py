"""Filesystem helpers used before evaluation starts.

Provides:
    - load_yaml(): safe YAML loading with path-aware errors

Evaluation itself never touches the disk; configuration is read once by
``plotgraph.configs.loader`` and handed to the engine as frozen objects.
All paths use pathlib.Path.

Usage:
    from plotgraph.utils import fs
    data = fs.load_yaml("plotgraph/configs/engine.yaml")
"""

from pathlib import Path
from typing import Any, Dict, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content (None for an empty file)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails

    Notes
    -----
    Uses safe_load to prevent arbitrary code execution.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e

"""SHA-256 fingerprints for cache keys.

Provides:
    - fingerprint(): Hash any nesting of dicts, sequences, scalars,
      numpy arrays and pydantic models

Used by:
    - engine.cache: (node_id, inputs_fp, params_fp) keys
    - engine.evaluator: per-node output fingerprints

Deterministic hashing:
    - Structural encoding only, never object identity or ``id()``
    - Dict keys sorted; floats encoded with ``repr`` (round-trip exact)
    - Arrays hashed with dtype and shape so (2, 3) and (3, 2) differ
    - Results are hex strings (64 chars)

Usage:
    from plotgraph.utils import hashing
    fp = hashing.fingerprint({"type": "circle", "params": params})
"""

import enum
import hashlib
from typing import Any

import numpy as np
from pydantic import BaseModel


def fingerprint(obj: Any) -> str:
    """Compute a structural SHA-256 fingerprint of *obj*.

    Parameters
    ----------
    obj : Any
        Nesting of dict, list, tuple, str, int, float, bool, None,
        numpy arrays/scalars, Enum members and pydantic models

    Returns
    -------
    str
        SHA-256 hex digest (64 characters)

    Raises
    ------
    TypeError
        If *obj* contains a value with no structural encoding

    Examples
    --------
    >>> fingerprint({"b": 1, "a": 2}) == fingerprint({"a": 2, "b": 1})
    True
    >>> fingerprint([1.0]) == fingerprint([1])
    False
    """
    sha256 = hashlib.sha256()
    _update(sha256, obj)
    return sha256.hexdigest()


def combine(*fingerprints: str) -> str:
    """Fold several fingerprints into one, order-sensitive."""
    sha256 = hashlib.sha256()
    for fp in fingerprints:
        sha256.update(fp.encode('ascii'))
        sha256.update(b'|')
    return sha256.hexdigest()


def _update_array(sha256, a: np.ndarray) -> None:
    a = np.ascontiguousarray(a)
    sha256.update(f"nd:{a.dtype.str}:{a.shape}:".encode('ascii'))
    sha256.update(a.tobytes())


def _update(sha256, obj: Any) -> None:
    # Tags keep e.g. "1" and 1 and [1] apart
    if obj is None:
        sha256.update(b'N;')
    elif isinstance(obj, enum.Enum):
        sha256.update(f"e:{type(obj).__name__}.{obj.name};".encode('utf-8'))
    elif isinstance(obj, bool):
        sha256.update(b'T;' if obj else b'F;')
    elif isinstance(obj, (int, np.integer)):
        sha256.update(f"i:{int(obj)};".encode('ascii'))
    elif isinstance(obj, (float, np.floating)):
        sha256.update(f"f:{float(obj)!r};".encode('ascii'))
    elif isinstance(obj, str):
        data = obj.encode('utf-8')
        sha256.update(f"s:{len(data)}:".encode('ascii'))
        sha256.update(data)
    elif isinstance(obj, np.ndarray):
        _update_array(sha256, obj)
    elif isinstance(obj, BaseModel):
        sha256.update(f"m:{type(obj).__name__}:".encode('ascii'))
        _update(sha256, obj.model_dump())
    elif isinstance(obj, dict):
        sha256.update(f"d:{len(obj)}:".encode('ascii'))
        for key in sorted(obj, key=str):
            _update(sha256, str(key))
            _update(sha256, obj[key])
    elif isinstance(obj, (list, tuple)):
        sha256.update(f"l:{len(obj)}:".encode('ascii'))
        for item in obj:
            _update(sha256, item)
    else:
        raise TypeError(f"Cannot fingerprint object of type {type(obj).__name__}")

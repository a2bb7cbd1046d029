"""Deterministic fingerprint of a comparison's inputs.

Callers that cache results key them on this digest.  Every field of the
equipment variants, the financial parameters and the assumption set goes
into the hash, so changing any one of them changes the key.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from .assumptions import DEFAULT_ASSUMPTIONS, CostAssumptions


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def input_fingerprint(
    baseline: Any,
    alternative: Any,
    financials: Any,
    assumptions: CostAssumptions = DEFAULT_ASSUMPTIONS,
) -> str:
    """SHA-256 hex digest over the canonical JSON of all inputs."""
    payload = {
        "baseline": _plain(baseline),
        "alternative": _plain(alternative),
        "financials": _plain(financials),
        "assumptions": _plain(assumptions),
    }
    canonical = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

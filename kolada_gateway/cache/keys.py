"""Deterministic cache keys for Kolada endpoint requests."""

import json
from typing import Any, Mapping


def build_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Derive a cache key from an endpoint and its query parameters.

    Parameter names are sorted, so insertion order never changes the key.
    Values are JSON-serialized, which keeps "1" and 1 distinct.

    Example:
        build_key("/kpi")                          # "/kpi"
        build_key("/data", {"year": 2023, "kpi": "N15033"})
        # '/data?kpi="N15033"&year=2023'
    """
    if not params:
        return endpoint

    pairs = "&".join(
        f"{name}={json.dumps(params[name], sort_keys=True, ensure_ascii=False, default=str)}"
        for name in sorted(params)
    )
    return f"{endpoint}?{pairs}"

# src/tracking/models.py — v2
"""Tracking domain models: LatencyStats."""

from __future__ import annotations

from pydantic import BaseModel


class LatencyStats(BaseModel):
    """Aggregated latency of one measured key over its rolling window."""

    key: str
    count: int
    avg_ms: float
    min_ms: float
    max_ms: float
    last_ms: float
    last_update: float

"""
Mise - Observability (cost tracking).
"""

from mise.observability.costs import (
    CostTracker,
    estimate_cost,
    get_session_tracker,
    record_usage,
    reset_session_tracker,
)

__all__ = [
    "CostTracker",
    "estimate_cost",
    "get_session_tracker",
    "record_usage",
    "reset_session_tracker",
]

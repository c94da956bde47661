"""
Mise - Cost Tracking.

Token usage and estimated spend for embedding and generation calls.
The corpus/generator split exists to bound generation cost; this is
where that cost becomes visible.
"""

from datetime import datetime, timezone

# Per 1M tokens (OpenAI list pricing)
MODEL_COSTS = {
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4.1-nano": {"input": 0.10, "output": 0.40},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "text-embedding-3-small": {"input": 0.02, "output": 0.00},
    "text-embedding-3-large": {"input": 0.13, "output": 0.00},
}


def estimate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
) -> float:
    """
    Estimate the cost of a model call in USD.

    Unknown models are priced as gpt-4.1-mini.
    """
    costs = MODEL_COSTS.get(model, MODEL_COSTS["gpt-4.1-mini"])

    input_cost = (input_tokens / 1_000_000) * costs["input"]
    output_cost = (output_tokens / 1_000_000) * costs["output"]

    return input_cost + output_cost


class CostTracker:
    """
    Track cumulative costs across calls.

    Usage:
        tracker = CostTracker()
        tracker.add("text-embedding-3-small", 40, 0, stage="embedding")
        tracker.add("gpt-4.1-mini", 900, 2400, stage="generate")
        print(tracker.summary())
    """

    def __init__(self):
        self.calls: list[dict] = []
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cost = 0.0

    def add(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        stage: str = "unknown",
    ) -> float:
        """Add a call and return its estimated cost."""
        cost = estimate_cost(model, input_tokens, output_tokens)

        self.calls.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "model": model,
            "stage": stage,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "cost": cost,
        })

        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_cost += cost

        return cost

    def mark(self) -> int:
        """Position to pass to summary(since=...) for a per-request view."""
        return len(self.calls)

    def summary(self, since: int = 0) -> dict:
        """
        Get a summary of tracked costs.

        With `since`, only calls recorded after that mark are counted, so a
        shared tracker can still report what a single request spent.
        """
        calls = self.calls[since:]
        return {
            "total_calls": len(calls),
            "total_input_tokens": sum(c["input_tokens"] for c in calls),
            "total_output_tokens": sum(c["output_tokens"] for c in calls),
            "total_cost_usd": round(sum(c["cost"] for c in calls), 6),
            "by_model": self._group(calls, "model"),
            "by_stage": self._group(calls, "stage"),
        }

    @staticmethod
    def _group(calls: list[dict], key: str) -> dict[str, float]:
        grouped: dict[str, float] = {}
        for call in calls:
            grouped[call[key]] = grouped.get(call[key], 0.0) + call["cost"]
        return {k: round(v, 6) for k, v in grouped.items()}


def record_usage(tracker: CostTracker | None, model: str, usage, stage: str) -> None:
    """
    Record an OpenAI `usage` object (may be None) into a tracker.

    Embedding responses only carry prompt_tokens.
    """
    if tracker is None or usage is None:
        return
    input_tokens = getattr(usage, "prompt_tokens", 0) or 0
    output_tokens = getattr(usage, "completion_tokens", 0) or 0
    tracker.add(model, int(input_tokens), int(output_tokens), stage=stage)


# Process-wide tracker
_session_tracker: CostTracker | None = None


def get_session_tracker() -> CostTracker:
    """Get or create the process-wide cost tracker."""
    global _session_tracker
    if _session_tracker is None:
        _session_tracker = CostTracker()
    return _session_tracker


def reset_session_tracker() -> None:
    """Reset the process-wide cost tracker."""
    global _session_tracker
    _session_tracker = CostTracker()

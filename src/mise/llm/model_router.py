"""
Mise - Model Router.

Per-task model configuration for generation calls.

Tasks:
- generate: fill a meal-plan gap with new recipes (creative, varied)
- replace: suggest one alternative to an existing recipe
"""

from typing import TypedDict


class ModelConfig(TypedDict, total=False):
    """Configuration for model calls."""

    model: str
    temperature: float
    max_tokens: int


DEFAULT_MODEL = "gpt-4.1-mini"

# Generation runs warm for variety across a plan
TASK_CONFIGS: dict[str, ModelConfig] = {
    "generate": {
        "temperature": 0.8,
        "max_tokens": 8192,
    },
    "replace": {
        "temperature": 0.8,
        "max_tokens": 2000,
    },
}

DEFAULT_CONFIG: ModelConfig = {
    "temperature": 0.5,
    "max_tokens": 2000,
}


def get_task_config(task: str, *, model: str | None = None) -> ModelConfig:
    """
    Get model configuration for a task.

    Args:
        task: Task name ("generate", "replace")
        model: Model override (defaults to the configured generation model)

    Returns:
        A fresh config dict (safe to mutate)
    """
    config: ModelConfig = dict(TASK_CONFIGS.get(task, DEFAULT_CONFIG))  # type: ignore[assignment]

    if model is None:
        from mise.config import settings

        model = settings.generation_model or DEFAULT_MODEL
    config["model"] = model

    return config

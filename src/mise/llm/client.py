"""
Mise - LLM Client.

Wraps AsyncOpenAI with Instructor for validated structured outputs.
All generation calls go through here for consistency and observability.
"""

from typing import TypeVar

import instructor
from openai import AsyncOpenAI
from pydantic import BaseModel

from mise.config import settings
from mise.llm.model_router import get_task_config
from mise.llm.prompt_logger import log_prompt
from mise.observability.costs import CostTracker, record_usage

T = TypeVar("T", bound=BaseModel)

# Shared client instances, created on first use
_raw_client: AsyncOpenAI | None = None
_client: instructor.AsyncInstructor | None = None


def get_raw_async_client() -> AsyncOpenAI:
    """Get the plain AsyncOpenAI client (used for embeddings)."""
    global _raw_client

    if _raw_client is None:
        _raw_client = AsyncOpenAI(api_key=settings.openai_api_key)

    return _raw_client


def get_client() -> instructor.AsyncInstructor:
    """Get the Instructor-wrapped AsyncOpenAI client."""
    global _client

    if _client is None:
        _client = instructor.from_openai(get_raw_async_client())

    return _client


def reset_clients() -> None:
    """Drop cached clients (for tests and process shutdown)."""
    global _raw_client, _client
    _raw_client = None
    _client = None


async def call_llm(
    *,
    response_model: type[T],
    system_prompt: str,
    user_prompt: str,
    task: str = "generate",
    max_retries: int | None = None,
    client: instructor.AsyncInstructor | None = None,
    cost_tracker: CostTracker | None = None,
) -> T:
    """
    Make a structured LLM call with schema validation.

    Instructor re-asks the model up to max_retries times when the
    response does not validate; after that its exception propagates.

    Args:
        response_model: Pydantic model class for the response
        system_prompt: System message setting context
        user_prompt: User message with the actual request
        task: Task name for model config ("generate", "replace")
        max_retries: Validation retries (defaults to settings)
        client: Instructor client override
        cost_tracker: Optional tracker for token usage

    Returns:
        Instance of response_model with validated data
    """
    client = client or get_client()
    config = get_task_config(task)
    model = config.pop("model")

    if max_retries is None:
        max_retries = settings.generation_max_retries

    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]

    try:
        response, completion = await client.chat.completions.create_with_completion(
            model=model,
            messages=messages,
            response_model=response_model,
            max_retries=max_retries,
            **config,
        )
    except Exception as e:
        log_prompt(
            task=task,
            model=model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            response_model=response_model.__name__,
            error=str(e),
            config=dict(config),
        )
        raise

    record_usage(cost_tracker, model, getattr(completion, "usage", None), task)
    log_prompt(
        task=task,
        model=model,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        response_model=response_model.__name__,
        response=response,
        config=dict(config),
    )

    return response

"""
Mise - LLM Client.

Provides structured LLM calls via Instructor.
"""

from mise.llm.client import call_llm, get_client, get_raw_async_client
from mise.llm.model_router import get_task_config

__all__ = [
    "call_llm",
    "get_client",
    "get_raw_async_client",
    "get_task_config",
]

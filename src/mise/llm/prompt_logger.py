"""
Mise - Prompt Logger.

Writes every generation call to prompt_logs/<session>/NN_<task>.md so a
strange plan can be traced back to the prompt that produced it.

Off unless MISE_LOG_PROMPTS is set (env or .env) or the CLI passes
--log-prompts. Never writes when MISE_ENV=production, since prompts carry
household preferences and inventory.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from mise.config import settings

LOG_DIR = Path("prompt_logs")

# None means "follow settings.mise_log_prompts"
_override: bool | None = None
_session_dir: Path | None = None
_call_counter = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Force logging on or off for this process, ignoring MISE_LOG_PROMPTS."""
    global _override
    _override = enabled


def is_enabled() -> bool:
    if settings.is_production:
        return False
    if _override is not None:
        return _override
    return settings.mise_log_prompts


def _session_path() -> Path:
    global _session_dir
    if _session_dir is None:
        _session_dir = LOG_DIR / datetime.now().strftime("%Y%m%d_%H%M%S")
    _session_dir.mkdir(parents=True, exist_ok=True)
    return _session_dir


def _fenced(body: str, lang: str = "") -> str:
    return f"```{lang}\n{body}\n```"


def _render_response(response: Any, error: str | None) -> str:
    if error:
        return f"**ERROR:** {error}"
    if response is None:
        return "(no response)"
    data = response.model_dump(mode="json") if hasattr(response, "model_dump") else response
    return _fenced(json.dumps(data, indent=2, default=str), "json")


def log_prompt(
    *,
    task: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    response_model: str,
    response: Any = None,
    error: str | None = None,
    config: dict | None = None,
) -> Path | None:
    """
    Write one call (prompts plus parsed response or error) to the session dir.

    Args:
        task: Short label used in the file name ("generate", "replace")
        model: Model the call went to
        response_model: Name of the pydantic model the response was parsed into
        config: Call settings; everything except `model` goes in the header

    Returns:
        The file written, or None when logging is off
    """
    if not is_enabled():
        return None

    global _call_counter
    _call_counter += 1

    header = [
        f"# {task} (call {_call_counter})",
        "",
        f"- time: {datetime.now().isoformat(timespec='seconds')}",
        f"- model: {model}",
        f"- response model: {response_model}",
    ]
    extras = ", ".join(f"{k}={v}" for k, v in (config or {}).items() if k != "model")
    if extras:
        header.append(f"- config: {extras}")

    sections = [
        "\n".join(header),
        "## System prompt\n\n" + _fenced(system_prompt),
        "## User prompt\n\n" + _fenced(user_prompt),
        "## Response\n\n" + _render_response(response, error),
    ]

    path = _session_path() / f"{_call_counter:02d}_{task}.md"
    path.write_text("\n\n".join(sections) + "\n", encoding="utf-8")
    return path


def get_session_log_dir() -> Path | None:
    """Directory holding this run's logs; None if nothing has been written."""
    if not is_enabled() or _session_dir is None:
        return None
    return _session_dir


def reset_session() -> None:
    global _session_dir, _call_counter
    _session_dir = None
    _call_counter = 0

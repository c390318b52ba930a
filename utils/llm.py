"""
OpenAI LLM helpers — used for issue title and plan generation.
"""

from __future__ import annotations

import json
import logging
import re
import time

from openai import APIConnectionError, OpenAI, RateLimitError

import config

log = logging.getLogger(__name__)

_client: OpenAI | None = None


def get_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=config.OPENAI_API_KEY)
    return _client


MAX_RETRIES = 3
BASE_DELAY = 2  # seconds

_FENCE_RE = re.compile(r"^```\w*\n?|\n?```$")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def chat(
    system: str,
    user: str,
    model: str | None = None,
    json_mode: bool = False,
    temperature: float = 0.3,
    max_tokens: int = 2048,
) -> str:
    """Send a chat completion request and return the assistant message.

    Retries on rate limits and dropped connections with exponential backoff.
    """
    client = get_client()
    kwargs: dict = {
        "model": model or config.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    for attempt in range(MAX_RETRIES):
        try:
            resp = client.chat.completions.create(**kwargs)
            return resp.choices[0].message.content or ""
        except (RateLimitError, APIConnectionError) as e:
            if attempt == MAX_RETRIES - 1:
                raise
            delay = BASE_DELAY * (2 ** attempt)
            log.warning(
                "LLM request failed (attempt %d/%d), retrying in %ds: %s",
                attempt + 1, MAX_RETRIES, delay, e,
            )
            time.sleep(delay)

    return ""


def strip_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    return _FENCE_RE.sub("", text.strip()).strip()


def extract_json_object(text: str) -> dict:
    """Parse the outermost {...} in a reply that may have prose around it.

    Raises ValueError if nothing in the text parses as a JSON object.
    """
    match = _OBJECT_RE.search(text)
    raw = match.group(0) if match else text
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log.error("Failed to parse LLM JSON response: %s", text[:500])
        raise ValueError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data

"""OpenAI-compatible chat completion backend."""

from __future__ import annotations

import logging

import openai
from openai import OpenAI

from agentcat.backend.base import BackendError

logger = logging.getLogger(__name__)


class OpenAiCompletionBackend:
    """Chat-completion client for any OpenAI-compatible endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str | None = None,
        timeout_seconds: float = 600.0,
        client: OpenAI | None = None,
    ) -> None:
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout_seconds,
        )

    def complete(self, system_prompt: str, user_prompt: str, model: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.RateLimitError, openai.APIConnectionError, openai.APITimeoutError) as error:
            raise BackendError(f"Model backend unavailable: {error}", transient=True) from error
        except openai.OpenAIError as error:
            raise BackendError(f"Model backend error: {error}", transient=False) from error

        if not completion.choices:
            logger.warning("Model %s returned no choices", model)
            return ""
        return completion.choices[0].message.content or ""

"""Model invocation boundary.

The pipeline only ever sees ``ChatClient.complete``: an ordered list of
role-tagged messages in, one text completion out.  ``OpenAIChatClient`` is the
production implementation on top of the ``openai`` SDK; tests substitute an
in-memory double.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

import openai

from drama_engine.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["system", "user", "assistant"]
    content: str

    def as_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def system(content: str) -> ChatMessage:
    return ChatMessage(role="system", content=content)


def user(content: str) -> ChatMessage:
    return ChatMessage(role="user", content=content)


class ChatClient(Protocol):
    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        api_key: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Return the completion text, or raise ``UpstreamError``."""
        ...


class OpenAIChatClient:
    """Chat-completions client.

    ``api_key`` passed to :meth:`complete` is a caller-supplied credential and
    gets a one-off SDK client; otherwise the configured client is reused.
    """

    def __init__(self, settings=None, client: Optional[openai.OpenAI] = None) -> None:
        if settings is None:
            from drama_engine.config import get_settings  # noqa: PLC0415

            settings = get_settings()
        self._settings = settings
        self._client = client

    def _build_client(self, api_key: Optional[str]) -> openai.OpenAI:
        return openai.OpenAI(
            api_key=api_key or self._settings.openai_api_key,
            base_url=self._settings.openai_base_url,
            timeout=self._settings.request_timeout_sec,
        )

    def _client_for(self, api_key: Optional[str]) -> openai.OpenAI:
        if api_key:
            return self._build_client(api_key)
        if self._client is None:
            self._client = self._build_client(None)
        return self._client

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        api_key: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        kwargs: Dict[str, Any] = {
            "model": self._settings.llm_model,
            "messages": [m.as_payload() for m in messages],
            "temperature": self._settings.temperature,
        }
        if response_format is not None:
            kwargs["response_format"] = response_format

        try:
            response = self._client_for(api_key).chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            logger.error("model request failed: %s", exc)
            raise UpstreamError(f"model request failed: {exc}") from exc

        choices: List[Any] = list(response.choices or [])
        content = choices[0].message.content if choices else None
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("model returned empty content")
        return content

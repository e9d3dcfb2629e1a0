from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import httpx


@dataclass
class LLMMessage:
    role: str
    content: str


@dataclass
class LLMResponse:
    content: str
    raw: Any | None = None


class LLMError(RuntimeError):
    pass


class LLMProvider(ABC):
    """Abstract base class for any LLM backend (local or remote)."""

    @abstractmethod
    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        ...


class DummyLLMProvider(LLMProvider):
    """Offline provider used when no LLM is configured."""

    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        last_user = next(
            (m.content for m in reversed(messages) if m.role == "user"),
            "",
        )
        content = (
            "Lexi dummy LLM here.\n"
            "You said: " + last_user + "\n\n"
            "AI analysis is not configured; set LLM_PROVIDER=openai."
        )
        return LLMResponse(content=content, raw=None)


class OpenAIChatProvider(LLMProvider):
    """Provider for any OpenAI-compatible /chat/completions endpoint."""

    def __init__(
        self,
        api_base: str,
        api_key: str | None,
        model: str,
        timeout: float = 30.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.model = model
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=timeout))

    async def chat(self, messages: List[LLMMessage]) -> LLMResponse:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        try:
            async with self._client_factory() as client:
                r = await client.post(
                    f"{self.api_base}/chat/completions",
                    json=payload,
                    headers=headers,
                )
            r.raise_for_status()
            data = r.json()
            content = data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError(f"chat completion failed: {exc}") from exc
        return LLMResponse(content=content or "", raw=data)


def build_provider(settings) -> LLMProvider:
    if (settings.llm_provider or "").lower() == "openai":
        return OpenAIChatProvider(
            api_base=settings.llm_api_base,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
        )
    return DummyLLMProvider()

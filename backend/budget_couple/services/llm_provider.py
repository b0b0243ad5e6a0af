"""LLM provider abstraction for the finance chatbot.

Supports Ollama (local), OpenAI, Anthropic (Claude), and Google Gemini
with a unified interface. The provider receives a system prompt + message
history and returns the assistant's text response, or raises
``LLMProviderError`` when the call cannot be completed.
"""

from abc import ABC, abstractmethod

import httpx
import structlog

from budget_couple.config import settings

logger = structlog.get_logger()

PROVIDERS = ("ollama", "openai", "anthropic", "gemini")

# Runtime override for ai_chat_provider (None = use settings).
# In-memory only; a restart falls back to the environment.
_override_provider: str | None = None


class LLMProviderError(Exception):
    """The provider is not configured, unreachable, or returned an error."""

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")


def get_current_provider() -> str:
    """Return the effective provider (override or env)."""
    if _override_provider is not None:
        return _override_provider
    return settings.ai_chat_provider


def set_provider(provider: str) -> bool:
    """Set the runtime provider override; unknown names are ignored."""
    global _override_provider
    name = provider.lower()
    if name not in PROVIDERS:
        logger.warning("unknown_llm_provider", provider=provider)
        return False
    _override_provider = name
    logger.info("llm_provider_override", provider=name)
    return True


def clear_override() -> None:
    """Clear override, revert to env."""
    global _override_provider
    _override_provider = None


class LLMProviderBase(ABC):
    """Abstract base for LLM chat providers."""

    name = "?"

    @abstractmethod
    async def chat(
        self,
        system_prompt: str,
        messages: list[dict],
        temperature: float | None = None,
    ) -> str:
        """Send a chat request and return the assistant's text response.

        Args:
            system_prompt: System-level instructions (the financial context).
            messages: List of {"role": "user"|"assistant", "content": "..."}.
            temperature: Sampling temperature; defaults to the configured one.

        Raises:
            LLMProviderError: if the provider is unconfigured or the call fails.
        """

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the provider is reachable."""

    def get_model_name(self) -> str:
        """Return the configured model name for this provider."""
        return getattr(self, "model", "?")

    @staticmethod
    def _temperature(temperature: float | None) -> float:
        return settings.ai_chat_temperature if temperature is None else temperature


class OllamaChatProvider(LLMProviderBase):
    """Ollama-based provider using the /api/chat endpoint."""

    name = "ollama"

    def __init__(self) -> None:
        self.base_url = settings.llm_base_url.rstrip("/")
        self.model = settings.llm_model

    async def is_available(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
                if resp.status_code != 200:
                    return False
                data = resp.json()
                model_names = [m.get("name", "") for m in data.get("models", [])]
                return any(
                    n == self.model or n.startswith(f"{self.model}:")
                    for n in model_names
                )
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    async def chat(
        self,
        system_prompt: str,
        messages: list[dict],
        temperature: float | None = None,
    ) -> str:
        ollama_messages = [{"role": "system", "content": system_prompt}]
        ollama_messages.extend(
            {"role": msg["role"], "content": msg["content"]} for msg in messages
        )

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=5.0,
                    read=settings.llm_timeout,
                    write=5.0,
                    pool=5.0,
                )
            ) as client:
                resp = await client.post(
                    f"{self.base_url}/api/chat",
                    json={
                        "model": self.model,
                        "messages": ollama_messages,
                        "stream": False,
                        "options": {
                            "temperature": self._temperature(temperature),
                            "num_predict": settings.ai_chat_max_tokens,
                        },
                    },
                )
        except httpx.TimeoutException as e:
            logger.warning("ollama_chat_timeout")
            raise LLMProviderError(self.name, "request timed out") from e
        except httpx.ConnectError as e:
            logger.warning("ollama_chat_unreachable", base_url=self.base_url)
            raise LLMProviderError(self.name, "service unreachable") from e

        if resp.status_code != 200:
            logger.warning("ollama_chat_error", status=resp.status_code)
            raise LLMProviderError(self.name, f"HTTP {resp.status_code}")
        return resp.json().get("message", {}).get("content", "")


class OpenAIChatProvider(LLMProviderBase):
    """OpenAI-based provider using the chat completions API."""

    name = "openai"

    def __init__(self) -> None:
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model

    async def is_available(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        system_prompt: str,
        messages: list[dict],
        temperature: float | None = None,
    ) -> str:
        if not self.api_key:
            raise LLMProviderError(self.name, "API key not configured")

        from openai import AsyncOpenAI, OpenAIError

        client = AsyncOpenAI(api_key=self.api_key)

        openai_messages = [{"role": "system", "content": system_prompt}]
        openai_messages.extend(
            {"role": msg["role"], "content": msg["content"]} for msg in messages
        )

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=openai_messages,
                temperature=self._temperature(temperature),
                max_tokens=settings.ai_chat_max_tokens,
            )
        except OpenAIError as e:
            logger.error("openai_chat_error", error=str(e))
            raise LLMProviderError(self.name, str(e)) from e
        return response.choices[0].message.content or ""


class AnthropicChatProvider(LLMProviderBase):
    """Anthropic Claude provider using the messages API.

    Key difference: system prompt is a top-level parameter, not a message.
    """

    name = "anthropic"

    def __init__(self) -> None:
        self.api_key = settings.anthropic_api_key
        self.model = settings.anthropic_model

    async def is_available(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        system_prompt: str,
        messages: list[dict],
        temperature: float | None = None,
    ) -> str:
        if not self.api_key:
            raise LLMProviderError(self.name, "API key not configured")

        from anthropic import AnthropicError, AsyncAnthropic

        client = AsyncAnthropic(api_key=self.api_key)

        # Anthropic expects messages with role "user" or "assistant" only
        anthropic_messages = [
            {"role": msg["role"], "content": msg["content"]}
            for msg in messages
            if msg["role"] in ("user", "assistant")
        ]

        try:
            response = await client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=anthropic_messages,
                temperature=self._temperature(temperature),
                max_tokens=settings.ai_chat_max_tokens,
            )
        except AnthropicError as e:
            logger.error("anthropic_chat_error", error=str(e))
            raise LLMProviderError(self.name, str(e)) from e
        return response.content[0].text if response.content else ""


class GeminiChatProvider(LLMProviderBase):
    """Google Gemini provider using the google-genai SDK.

    Key differences:
    - role "assistant" → "model"
    - system instruction is a separate parameter
    """

    name = "gemini"

    def __init__(self) -> None:
        self.api_key = settings.gemini_api_key
        self.model = settings.gemini_model

    async def is_available(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        system_prompt: str,
        messages: list[dict],
        temperature: float | None = None,
    ) -> str:
        if not self.api_key:
            raise LLMProviderError(self.name, "API key not configured")

        from google import genai
        from google.genai import errors, types

        client = genai.Client(api_key=self.api_key)

        gemini_messages = [
            types.Content(
                role="model" if msg["role"] == "assistant" else "user",
                parts=[types.Part.from_text(text=msg["content"])],
            )
            for msg in messages
        ]

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=gemini_messages,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=self._temperature(temperature),
                    max_output_tokens=settings.ai_chat_max_tokens,
                ),
            )
        except errors.APIError as e:
            logger.error("gemini_chat_error", error=str(e))
            raise LLMProviderError(self.name, str(e)) from e
        return response.text or ""


def get_llm_provider() -> LLMProviderBase:
    """Factory: return the configured LLM provider."""
    provider = get_current_provider()
    if provider == "openai":
        return OpenAIChatProvider()
    if provider == "anthropic":
        return AnthropicChatProvider()
    if provider == "gemini":
        return GeminiChatProvider()
    return OllamaChatProvider()

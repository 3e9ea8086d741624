"""Language-model providers behind one interface.

Each provider maps the three model tiers onto concrete backing models, wraps
every client failure in a classified ProviderError, and exposes an
availability probe used only for diagnostics.
"""

from abc import ABC, abstractmethod

import structlog
from google import genai
from google.genai import types as genai_types
from openai import AsyncOpenAI

from logwarden.config import Settings, settings

from .errors import ProviderError, ProviderErrorType, classify_provider_error
from .models import AIProvider, ModelTier, ProviderConfig, ProviderResponse, ProviderUsage

logger = structlog.get_logger()


class LLMProvider(ABC):
    """Base class for language-model providers."""

    provider: AIProvider
    models: dict[ModelTier, str]
    model_labels: dict[ModelTier, str]
    default_tier: ModelTier = ModelTier.PREMIUM

    def model_for(self, tier: ModelTier | str) -> str:
        try:
            return self.models[ModelTier(tier)]
        except ValueError:
            return self.models[self.default_tier]

    def available_models(self) -> dict[str, str]:
        return {str(tier): label for tier, label in self.model_labels.items()}

    @abstractmethod
    async def analyze(
        self, system_prompt: str, user_prompt: str, config: ProviderConfig
    ) -> ProviderResponse:
        """Send both prompts and return the raw JSON reply. Raises ProviderError."""
        ...

    @abstractmethod
    async def check_availability(self) -> bool:
        """Probe the provider with a minimal request."""
        ...

    def _wrap(self, exc: Exception, label: str) -> ProviderError:
        error = ProviderError(
            f"{label} analysis failed: {exc}",
            classify_provider_error(exc),
            str(self.provider),
        )
        logger.warning(
            "provider_call_failed",
            provider=str(self.provider),
            error_type=str(error.error_type),
            error=str(exc),
        )
        return error


class OpenAIProvider(LLMProvider):
    provider = AIProvider.OPENAI
    models = {
        ModelTier.PREMIUM: "gpt-4o",
        ModelTier.STANDARD: "gpt-4o-mini",
        ModelTier.ECONOMY: "gpt-3.5-turbo",
    }
    model_labels = {
        ModelTier.PREMIUM: "GPT-4o (Latest, Most Capable)",
        ModelTier.STANDARD: "GPT-4o Mini (Balanced)",
        ModelTier.ECONOMY: "GPT-3.5 Turbo (Cost-Effective)",
    }
    probe_model = "gpt-3.5-turbo"

    def __init__(
        self,
        api_key: str = "",
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ProviderError(
                    "OPENAI_API_KEY not configured",
                    ProviderErrorType.AUTH_FAILED,
                    str(self.provider),
                )
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def analyze(
        self, system_prompt: str, user_prompt: str, config: ProviderConfig
    ) -> ProviderResponse:
        client = self._get_client()
        model = self.model_for(config.tier)
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
                temperature=config.temperature,
            )
            content = response.choices[0].message.content
        except Exception as exc:
            raise self._wrap(exc, "OpenAI") from exc

        usage = response.usage
        return ProviderResponse(
            content=content or "{}",
            provider=self.provider,
            model=model,
            usage=ProviderUsage(
                prompt_tokens=usage.prompt_tokens if usage else None,
                completion_tokens=usage.completion_tokens if usage else None,
                total_tokens=usage.total_tokens if usage else None,
            ),
        )

    async def check_availability(self) -> bool:
        if not self.configured:
            return False
        try:
            await self._get_client().chat.completions.create(
                model=self.probe_model,
                messages=[{"role": "user", "content": "test"}],
                max_tokens=1,
            )
            return True
        except Exception as exc:
            logger.info("provider_unavailable", provider=str(self.provider), error=str(exc))
            return False


class GeminiProvider(LLMProvider):
    provider = AIProvider.GCP_GEMINI
    models = {
        ModelTier.PREMIUM: "gemini-1.5-pro",
        ModelTier.STANDARD: "gemini-1.5-flash",
        ModelTier.ECONOMY: "gemini-1.5-flash-8b",
    }
    model_labels = {
        ModelTier.PREMIUM: "Gemini 1.5 Pro (Most Capable)",
        ModelTier.STANDARD: "Gemini 1.5 Flash (Balanced)",
        ModelTier.ECONOMY: "Gemini 1.5 Flash 8B (Cost-Effective)",
    }
    probe_model = "gemini-1.5-flash"

    def __init__(
        self,
        api_key: str = "",
        timeout: float = 30.0,
        client: genai.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ProviderError(
                    "GEMINI_API_KEY not configured",
                    ProviderErrorType.AUTH_FAILED,
                    str(self.provider),
                )
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=genai_types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
        return self._client

    async def analyze(
        self, system_prompt: str, user_prompt: str, config: ProviderConfig
    ) -> ProviderResponse:
        client = self._get_client()
        model = self.model_for(config.tier)
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=f"{system_prompt}\n\n{user_prompt}",
                config=genai_types.GenerateContentConfig(
                    temperature=config.temperature,
                    response_mime_type="application/json",
                ),
            )
            content = response.text
        except Exception as exc:
            raise self._wrap(exc, "Gemini") from exc

        usage = response.usage_metadata
        return ProviderResponse(
            content=content or "{}",
            provider=self.provider,
            model=model,
            usage=ProviderUsage(
                prompt_tokens=usage.prompt_token_count if usage else None,
                completion_tokens=usage.candidates_token_count if usage else None,
                total_tokens=usage.total_token_count if usage else None,
            ),
        )

    async def check_availability(self) -> bool:
        if not self.configured:
            return False
        try:
            await self._get_client().aio.models.generate_content(
                model=self.probe_model, contents="test"
            )
            return True
        except Exception as exc:
            logger.info("provider_unavailable", provider=str(self.provider), error=str(exc))
            return False


class ProviderRegistry:
    """Looks providers up by tag."""

    def __init__(self, providers: list[LLMProvider] | None = None) -> None:
        self._providers: dict[AIProvider, LLMProvider] = {}
        for provider in providers or []:
            self.register(provider)

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "ProviderRegistry":
        cfg = cfg or settings
        return cls(
            [
                OpenAIProvider(
                    api_key=cfg.openai_api_key, timeout=cfg.ai_request_timeout_seconds
                ),
                GeminiProvider(
                    api_key=cfg.gemini_api_key, timeout=cfg.ai_request_timeout_seconds
                ),
            ]
        )

    def register(self, provider: LLMProvider) -> None:
        self._providers[provider.provider] = provider

    def get(self, provider: AIProvider | str) -> LLMProvider:
        try:
            return self._providers[AIProvider(provider)]
        except (KeyError, ValueError):
            raise ProviderError(
                f"Unsupported AI provider: {provider}",
                ProviderErrorType.MODEL_ISSUE,
                str(provider),
            ) from None

    def available_models(self) -> dict[str, dict[str, str]]:
        return {str(tag): p.available_models() for tag, p in self._providers.items()}

    def model_catalogue(self) -> dict[str, dict[str, str]]:
        """Concrete backing model per provider and tier."""
        return {
            str(tag): {str(tier): model for tier, model in p.models.items()}
            for tag, p in self._providers.items()
        }

    async def check_availability(self) -> dict[str, bool]:
        return {str(tag): await p.check_availability() for tag, p in self._providers.items()}


_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """Get or create the singleton provider registry."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry.from_settings()
    return _registry

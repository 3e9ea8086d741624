"""Semantic (language-model) detection domain."""

from .config import SemanticConfig
from .detector import SemanticDetector, parse_verdict
from .errors import ProviderError, ProviderErrorType, classify_provider_error
from .models import AIProvider, ModelTier, ProviderConfig, ProviderResponse, SemanticVerdict
from .providers import (
    GeminiProvider,
    LLMProvider,
    OpenAIProvider,
    ProviderRegistry,
    get_provider_registry,
)

__all__ = [
    "AIProvider",
    "GeminiProvider",
    "LLMProvider",
    "ModelTier",
    "OpenAIProvider",
    "ProviderConfig",
    "ProviderError",
    "ProviderErrorType",
    "ProviderRegistry",
    "ProviderResponse",
    "SemanticConfig",
    "SemanticDetector",
    "SemanticVerdict",
    "classify_provider_error",
    "get_provider_registry",
    "parse_verdict",
]

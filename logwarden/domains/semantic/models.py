"""Pydantic models for provider selection and semantic verdicts."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AIProvider(StrEnum):
    OPENAI = "openai"
    GCP_GEMINI = "gcp_gemini"


class ModelTier(StrEnum):
    PREMIUM = "premium"
    STANDARD = "standard"
    ECONOMY = "economy"


class ProviderConfig(BaseModel):
    """Capability selection for one semantic call."""

    provider: AIProvider = AIProvider.OPENAI
    tier: ModelTier = ModelTier.STANDARD
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)


class ProviderUsage(BaseModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ProviderResponse(BaseModel):
    content: str
    provider: AIProvider
    model: str
    usage: ProviderUsage = Field(default_factory=ProviderUsage)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class SemanticVerdict(BaseModel):
    """Structured verdict parsed from a provider's JSON reply.

    Missing fields take neutral defaults; scores are clamped into range
    rather than rejected.
    """

    model_config = ConfigDict(populate_by_name=True)

    is_anomaly: bool = Field(default=False, alias="isAnomaly")
    risk_score: float = Field(default=0.0, alias="riskScore")
    anomaly_type: str = Field(default="unknown", alias="anomalyType")
    description: str = "No description available"
    confidence: float = 0.0
    explanation: str = ""
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("is_anomaly", mode="before")
    @classmethod
    def _coerce_flag(cls, v):
        return bool(v)

    @field_validator("risk_score", "confidence", mode="before")
    @classmethod
    def _coerce_number(cls, v):
        if v is None or isinstance(v, bool):
            return 0.0
        return v

    @field_validator("risk_score")
    @classmethod
    def _clamp_risk(cls, v: float) -> float:
        return _clamp(v, 0.0, 10.0)

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        return _clamp(v, 0.0, 1.0)

    @field_validator("anomaly_type", "description", "explanation", mode="before")
    @classmethod
    def _coerce_text(cls, v, info):
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return str(v)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _coerce_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]

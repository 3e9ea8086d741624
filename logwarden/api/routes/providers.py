"""Language-model provider catalogue."""

from fastapi import APIRouter, Query

from logwarden.domains.semantic.providers import get_provider_registry

router = APIRouter(prefix="/api/v1/providers", tags=["providers"])


@router.get("")
async def list_providers(probe: bool = Query(default=False)) -> dict:
    registry = get_provider_registry()
    result: dict = {
        "available_models": registry.available_models(),
        "models": registry.model_catalogue(),
    }
    if probe:
        result["availability"] = await registry.check_availability()
    return result

"""Model catalog endpoint."""

from fastapi import APIRouter, Depends

from parseai.agent.assistant import AssistantService, get_assistant_service
from parseai.api.deps import get_optional_user, get_usage_service
from parseai.auth.firebase import AuthUser
from parseai.models.schemas import ModelList
from parseai.services.usage import UsageService

router = APIRouter(prefix="/models", tags=["models"])


@router.get("", response_model=ModelList)
async def list_models(
    assistant: AssistantService = Depends(get_assistant_service),
    usage: UsageService = Depends(get_usage_service),
    user: AuthUser | None = Depends(get_optional_user),
) -> ModelList:
    """List selectable models with the caller's usage for today (UTC)."""
    config = assistant.config
    return ModelList(
        default=config.model_name,
        models=usage.describe(user.uid if user else None, config.models),
    )

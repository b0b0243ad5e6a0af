"""AI assistant API routes."""

import structlog
from fastapi import APIRouter, Depends

from budget_couple.api.deps import get_chat_provider, get_current_user, get_finance_store
from budget_couple.models.user import User
from budget_couple.schemas.ai import AIConfigUpdate, ChatRequest, ChatResponse, ProviderStatusResponse
from budget_couple.services.chat_service import ChatService
from budget_couple.services.llm_provider import (
    LLMProviderBase,
    clear_override,
    get_llm_provider,
    set_provider,
)
from budget_couple.services.ports import FinanceStore

logger = structlog.get_logger()
router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    message: ChatRequest,
    current_user: User = Depends(get_current_user),
    store: FinanceStore = Depends(get_finance_store),
    provider: LLMProviderBase = Depends(get_chat_provider),
):
    """Ask the financial assistant a question about the couple's finances."""
    service = ChatService(store, provider)
    try:
        return await service.chat(
            user_id=current_user.id,
            content=message.content,
            conversation_history=message.conversation_history,
            period=message.period,
        )
    except Exception as e:
        logger.error("chat_endpoint_error", error=str(e), error_type=type(e).__name__)
        return ChatResponse(message="", error=f"Server error: {type(e).__name__}")


@router.get("/status", response_model=ProviderStatusResponse)
async def ai_status(
    current_user: User = Depends(get_current_user),
    provider: LLMProviderBase = Depends(get_chat_provider),
):
    return ProviderStatusResponse(
        provider=provider.name,
        model=provider.get_model_name(),
        available=await provider.is_available(),
    )


@router.patch("/config", response_model=ProviderStatusResponse)
async def update_ai_config(
    body: AIConfigUpdate,
    current_user: User = Depends(get_current_user),
):
    """Switch the chat provider at runtime (in-memory, reset on restart)."""
    if body.reset:
        clear_override()
    elif body.provider:
        set_provider(body.provider)

    provider = get_llm_provider()
    logger.info("ai_config_updated", user_id=current_user.id, provider=provider.name)
    return ProviderStatusResponse(
        provider=provider.name,
        model=provider.get_model_name(),
        available=await provider.is_available(),
    )

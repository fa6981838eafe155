import asyncio
from functools import partial
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import List, Dict, Any, Tuple
import logging

from moodbuddy.core.models import MessageRole
from moodbuddy.web.dependencies import ServiceContainer, get_container, get_user_id
from moodbuddy.web.schemas import ChatRequest, ChatResponse, UserProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

@router.get("/check-openai")
async def check_openai(container: ServiceContainer = Depends(get_container)):
    """Доступен ли OpenAI для чата"""
    if container.ai.is_available():
        return {"available": True}
    return JSONResponse(status_code=404, content={"available": False})

def _prepare_chat(container: ServiceContainer, user_id: str,
                  payload: ChatRequest) -> Tuple[int, str]:
    """Разговор, контекст для модели и сохраненное сообщение пользователя"""
    memory = container.chat_memory
    memory.get_user_context(user_id)
    conversation = memory.get_current_conversation(user_id)

    # Контекст собирается до сохранения нового сообщения
    message_context: Dict[str, Any] = {}
    if payload.context:
        context = payload.context
    else:
        gathered = container.context_assembler.gather(user_id)
        context = container.context_assembler.render(gathered)
        if gathered.conversation_history:
            message_context["conversation_history"] = gathered.conversation_history

    memory.save_message(conversation.id, user_id, MessageRole.USER, payload.message, context=message_context)
    return conversation.id, context

@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    """
    Ответ чат-компаньона с учетом истории и недавних записей пользователя

    Синхронные обращения к хранилищу выполняются в executor.
    """
    loop = asyncio.get_event_loop()
    conversation_id, context = await loop.run_in_executor(
        None, _prepare_chat, container, user_id, payload
    )

    response = await container.ai.generate_response(payload.message, context)
    await loop.run_in_executor(
        None, partial(
            container.chat_memory.save_message,
            conversation_id, user_id, MessageRole.ASSISTANT, response.content,
            context={"provider": response.provider.value}
        )
    )

    logger.info(f"Chat reply for user {user_id} via {response.provider.value} ({response.response_time_ms}ms)")
    return ChatResponse(
        response=response.content,
        provider=response.provider.value,
        conversation_id=conversation_id
    )

@router.get("/chat/history", response_model=List[Dict[str, Any]])
def chat_history(
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    messages = container.chat_memory.get_recent_messages(user_id, limit=limit)
    return [message.to_dict() for message in messages]

@router.put("/chat/profile", response_model=Dict[str, Any])
def update_profile(
    payload: UserProfileUpdate,
    user_id: str = Depends(get_user_id),
    container: ServiceContainer = Depends(get_container)
):
    profile = container.chat_memory.update_user_profile(
        user_id,
        preferences=payload.preferences,
        mental_health_profile=payload.mental_health_profile,
        personal_details=payload.personal_details
    )
    return {
        "user_id": profile.user_id,
        "preferences": profile.preferences,
        "mental_health_profile": profile.mental_health_profile,
        "personal_details": profile.personal_details
    }

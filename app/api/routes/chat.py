from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import raise_generation_http_error
from app.core.rate_limit import rate_limit
from app.core.resume_store import JsonFileStore, get_store
from app.core.security import current_user_id, gemini_api_key
from app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    Conversation,
    ConversationCreateRequest,
    ConversationDetail,
    ConversationMessageRequest,
    ConversationMessageResponse,
    OnboardingRequest,
    OnboardingResponse,
    StoredUserContext,
    UserContext,
)
from app.services import chat_service
from app.services.generation import GenerationError

router = APIRouter(prefix="/chat")


def _owned_conversation(store: JsonFileStore, conversation_id: str, user_id: str) -> Conversation:
    conversation = store.get_conversation(conversation_id)
    if conversation is None or conversation.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation


@router.post("/message", response_model=ChatResponse)
@rate_limit()
async def chat_message(
    request: Request,
    payload: ChatRequest,
    api_key: str | None = Depends(gemini_api_key),
):
    _ = request
    try:
        return await chat_service.generate_chat_response(payload, api_key=api_key)
    except GenerationError as exc:
        raise_generation_http_error(exc)


@router.post("/onboarding-questions", response_model=OnboardingResponse)
@rate_limit()
async def onboarding_questions(
    request: Request,
    payload: OnboardingRequest,
    api_key: str | None = Depends(gemini_api_key),
):
    _ = request
    try:
        questions = await chat_service.generate_onboarding_questions(payload.goal, api_key=api_key)
    except GenerationError as exc:
        raise_generation_http_error(exc)
    return OnboardingResponse(questions=questions)


@router.get("/conversations", response_model=list[Conversation])
def list_conversations(
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return store.list_conversations(user_id)


@router.post("/conversations", response_model=Conversation)
def create_conversation(
    payload: ConversationCreateRequest,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return store.create_conversation(user_id=user_id, persona=payload.persona, title=payload.title)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    conversation = _owned_conversation(store, conversation_id, user_id)
    return ConversationDetail(**conversation.model_dump(), messages=store.list_messages(conversation_id))


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    _owned_conversation(store, conversation_id, user_id)
    store.delete_conversation(conversation_id)


@router.post("/conversations/{conversation_id}/messages", response_model=ConversationMessageResponse)
@rate_limit()
async def send_message(
    request: Request,
    conversation_id: str,
    payload: ConversationMessageRequest,
    user_id: str = Depends(current_user_id),
    api_key: str | None = Depends(gemini_api_key),
    store: JsonFileStore = Depends(get_store),
):
    _ = request
    try:
        return await chat_service.send_conversation_message(
            store,
            user_id=user_id,
            conversation_id=conversation_id,
            message=payload.message,
            persona=payload.persona,
            api_key=api_key,
        )
    except chat_service.ConversationNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found") from exc
    except GenerationError as exc:
        raise_generation_http_error(exc)


@router.get("/context", response_model=UserContext)
def get_context(
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return store.get_chat_context(user_id) or UserContext()


@router.put("/context", response_model=StoredUserContext)
def put_context(
    payload: UserContext,
    user_id: str = Depends(current_user_id),
    store: JsonFileStore = Depends(get_store),
):
    return store.upsert_chat_context(user_id, **payload.model_dump(exclude_unset=True))

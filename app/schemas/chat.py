from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Persona = Literal["strict_hr", "counsellor", "friend"]
MessageRole = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    role: MessageRole
    content: str
    created_at: datetime | None = None


class StoredChatMessage(ChatMessage):
    id: str
    conversation_id: str
    created_at: datetime


class UserContext(BaseModel):
    resume_text: str | None = Field(default=None, max_length=100000)
    job_description: str | None = Field(default=None, max_length=100000)
    current_qualification: str | None = Field(default=None, max_length=2000)
    parsed_resume_data: dict[str, Any] | None = None


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=8000)
    persona: Persona = "counsellor"
    conversation_history: list[ChatMessage] = Field(default_factory=list, max_length=200)
    user_context: UserContext | None = None


class ChatResponse(BaseModel):
    message: str
    persona: Persona


class Conversation(BaseModel):
    id: str
    user_id: str
    title: str = "New Conversation"
    persona: Persona = "counsellor"
    created_at: datetime
    updated_at: datetime


class ConversationDetail(Conversation):
    messages: list[StoredChatMessage] = Field(default_factory=list)


class ConversationCreateRequest(BaseModel):
    persona: Persona = "counsellor"
    title: str | None = Field(default=None, max_length=120)


class ConversationMessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=8000)
    persona: Persona | None = None


class ConversationMessageResponse(BaseModel):
    conversation: Conversation
    user_message: StoredChatMessage
    assistant_message: StoredChatMessage


class StoredUserContext(UserContext):
    user_id: str
    updated_at: datetime


class OnboardingRequest(BaseModel):
    goal: str = Field(min_length=1, max_length=2000)


class OnboardingResponse(BaseModel):
    questions: list[str]

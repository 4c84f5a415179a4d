from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from healthmate.models import MessageRole


class ChatCreate(BaseModel):
    title: str | None = None


class ChatUpdate(BaseModel):
    title: str | None = None


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: MessageRole
    content: str
    created_at: datetime


class ChatOut(BaseModel):
    id: int
    title: str
    is_active: bool
    messages: list[MessageOut] = []
    created_at: datetime
    updated_at: datetime


class ChatResponse(BaseModel):
    chat: ChatOut


class ChatSavedResponse(BaseModel):
    message: str
    chat: ChatOut


class ChatListResponse(BaseModel):
    chats: list[ChatOut]
    total: int
    total_pages: int
    current_page: int


class SendMessageResponse(BaseModel):
    message: str
    user_message: MessageOut
    ai_message: MessageOut

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from pixelshelf.schemas.common import CamelModel
from pixelshelf.schemas.user import UserSummary


class ChatCreateIn(CamelModel):
    user_id: str = Field(..., min_length=1)


class MessageIn(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageOut(CamelModel):
    id: str
    chat_id: str
    content: str
    sender_id: str
    receiver_id: str
    read: bool
    created_at: datetime


class LastMessage(CamelModel):
    content: str
    sender_id: str
    created_at: datetime


class ChatOut(CamelModel):
    id: str
    participants: List[UserSummary]


class ChatSummary(ChatOut):
    last_message: Optional[LastMessage] = None
    unread_count: int = 0


class ChatList(CamelModel):
    chats: List[ChatSummary]


class ChatDetail(ChatOut):
    messages: List[MessageOut]
